"""Audience target records constraining who may see a product."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Every constrained attribute shares its name with the CallerProfile field it
# is matched against.
TARGET_ATTRIBUTES: tuple[str, ...] = (
    "account_group",
    "affiliate_area",
    "affiliate_city",
    "affiliate_province",
    "membership_city",
    "province",
    "gender",
    "indigenous_details",
    "language",
    "race",
    "affiliate_eligibility",
    "membership_category",
    "earnings",
    "earnings_selfdirect",
    "earnings_selfindirect",
    "employment_benefits",
    "employment_status",
    "position_funding",
    "practice_years",
    "role_description",
    "work_hours",
    "client_age",
    "practice_area",
    "practice_services",
    "practice_settings",
    "membership_search_tools",
    "practice_promotion",
    "psychotherapy_supervision",
    "third_parties",
    "coto_status",
    "ot_grad_year",
    "ot_university",
    "ota_grad_year",
    "ota_college",
)


class AudienceTarget(BaseModel):
    """Allowed-value sets for a product; ``None`` or empty means unconstrained."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    product_id: str | None = Field(
        None,
        description="Product the target belongs to",
    )

    account_group: list[int] | None = None
    affiliate_area: list[int] | None = None
    affiliate_city: list[int] | None = None
    affiliate_province: list[int] | None = None
    membership_city: list[int] | None = None
    province: list[int] | None = None
    gender: list[int] | None = None
    indigenous_details: list[int] | None = None
    language: list[int] | None = None
    race: list[int] | None = None
    affiliate_eligibility: list[int] | None = None
    membership_category: list[int] | None = None
    earnings: list[int] | None = None
    earnings_selfdirect: list[int] | None = None
    earnings_selfindirect: list[int] | None = None
    employment_benefits: list[int] | None = None
    employment_status: list[int] | None = None
    position_funding: list[int] | None = None
    practice_years: list[int] | None = None
    role_description: list[int] | None = None
    work_hours: list[int] | None = None
    client_age: list[int] | None = None
    practice_area: list[int] | None = None
    practice_services: list[int] | None = None
    practice_settings: list[int] | None = None
    membership_search_tools: list[int] | None = None
    practice_promotion: list[int] | None = None
    psychotherapy_supervision: list[int] | None = None
    third_parties: list[int] | None = None
    coto_status: list[int] | None = None
    ot_grad_year: list[int] | None = None
    ot_university: list[int] | None = None
    ota_grad_year: list[int] | None = None
    ota_college: list[int] | None = None

    def constraints(self) -> dict[str, frozenset[int]]:
        """Return only the attributes that actually constrain the audience."""

        constrained: dict[str, frozenset[int]] = {}
        for attribute in TARGET_ATTRIBUTES:
            allowed = getattr(self, attribute)
            if allowed:
                constrained[attribute] = frozenset(allowed)
        return constrained

    @property
    def is_public(self) -> bool:
        return not self.constraints()
