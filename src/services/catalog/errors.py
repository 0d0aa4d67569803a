"""Errors surfaced by the catalog resolution pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from fastapi import status

INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class CatalogServiceError(Exception):
    """A fatal catalog failure, usually the repository being unreachable.

    ``original_error`` is kept for diagnostics and logging only; it is never
    part of the payload returned to API callers.
    """

    message: str
    operation_id: str
    code: str = INTERNAL_ERROR
    original_error: str | None = None
    context: dict[str, Any] = field(default_factory=dict)
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def payload(self) -> dict[str, Any]:
        """Serialized representation suitable for JSON responses."""

        return {
            "error": self.code,
            "message": self.message,
            "operationId": self.operation_id,
        }


class ProfileNotFoundError(LookupError):
    """Raised by profile providers when a caller has no account record."""
