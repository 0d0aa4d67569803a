"""Models describing who is asking for the catalog."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AccountKind(str, Enum):
    """Kind of account a caller signs in with."""

    ACCOUNT = "account"
    AFFILIATE = "affiliate"


class Privilege(str, Enum):
    """Privilege tier of a caller, lowest first."""

    SELF_SERVICE = "self_service"
    ADMIN = "admin"
    MAIN = "main"

    @property
    def is_elevated(self) -> bool:
        return self in (Privilege.ADMIN, Privilege.MAIN)


class CallerContext(BaseModel):
    """Identity triple attached to a catalog request by the HTTP layer."""

    model_config = ConfigDict(frozen=True)

    caller_id: str | None = None
    account_kind: AccountKind | None = None
    privilege: Privilege | None = None
    membership_category: int | None = Field(None, ge=0, le=14)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.caller_id)

    @property
    def is_elevated(self) -> bool:
        return self.privilege is not None and self.privilege.is_elevated

    @property
    def requires_filtering(self) -> bool:
        """Only identified self-service callers go through the filter layers."""
        return self.is_authenticated and self.privilege == Privilege.SELF_SERVICE


ANONYMOUS = CallerContext()


class CallerProfile(BaseModel):
    """Snapshot of a caller's attributes used by the filter layers.

    Scalar attributes hold a single choice value; list attributes hold every
    choice the caller selected on a multi-choice record.
    """

    model_config = ConfigDict(frozen=True)

    caller_id: str
    business_id: str | None = None
    active_membership: bool = False

    # Account
    account_group: int | None = None

    # Affiliate
    affiliate_area: list[int] = Field(default_factory=list)
    affiliate_city: list[int] = Field(default_factory=list)
    affiliate_province: list[int] = Field(default_factory=list)

    # Address
    membership_city: int | None = None
    province: int | None = None

    # Identity
    gender: int | None = None
    indigenous_details: list[int] = Field(default_factory=list)
    language: list[int] = Field(default_factory=list)
    race: list[int] = Field(default_factory=list)

    # Membership
    affiliate_eligibility: int | None = None
    membership_category: int | None = None

    # Employment
    earnings: int | None = None
    earnings_selfdirect: int | None = None
    earnings_selfindirect: int | None = None
    employment_benefits: list[int] = Field(default_factory=list)
    employment_status: int | None = None
    position_funding: list[int] = Field(default_factory=list)
    practice_years: int | None = None
    role_description: list[int] = Field(default_factory=list)
    work_hours: int | None = None

    # Practice
    client_age: list[int] = Field(default_factory=list)
    practice_area: list[int] = Field(default_factory=list)
    practice_services: list[int] = Field(default_factory=list)
    practice_settings: list[int] = Field(default_factory=list)

    # Preferences
    membership_search_tools: list[int] = Field(default_factory=list)
    practice_promotion: list[int] = Field(default_factory=list)
    psychotherapy_supervision: list[int] = Field(default_factory=list)
    third_parties: list[int] = Field(default_factory=list)

    # OT education
    coto_status: list[int] = Field(default_factory=list)
    ot_grad_year: int | None = None
    ot_university: int | None = None

    # OTA education
    ota_grad_year: int | None = None
    ota_college: int | None = None
