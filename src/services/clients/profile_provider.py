"""User profile provider abstractions and implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Annotated

from fastapi import Depends

from src.models.caller import CallerProfile
from src.services.catalog.errors import ProfileNotFoundError

logger = logging.getLogger(__name__)


class UserProfileProvider(ABC):
    """Builds the attribute snapshot of a caller.

    Implementations may fan out to several records, so the catalog asks for a
    profile at most once per filtering pass.
    """

    @abstractmethod
    async def build_profile(self, caller_id: str) -> CallerProfile:
        """Return the profile for ``caller_id``."""


class InMemoryUserProfileProvider(UserProfileProvider):
    """Profile provider serving pre-registered profiles."""

    def __init__(self, profiles: list[CallerProfile] | None = None) -> None:
        self._profiles: dict[str, CallerProfile] = {}
        for profile in profiles or []:
            self.register(profile)

    def register(self, profile: CallerProfile) -> None:
        self._profiles[profile.caller_id] = profile
        logger.debug("Registered caller profile %s", profile.caller_id)

    async def build_profile(self, caller_id: str) -> CallerProfile:
        try:
            return self._profiles[caller_id]
        except KeyError as exc:
            raise ProfileNotFoundError(f"No profile for caller {caller_id}") from exc


_profile_provider: UserProfileProvider = InMemoryUserProfileProvider()


def get_profile_provider() -> UserProfileProvider:
    """FastAPI dependency returning the configured profile provider."""

    return _profile_provider


ProfileProviderDependency = Annotated[
    UserProfileProvider, Depends(get_profile_provider)
]
