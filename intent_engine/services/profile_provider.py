"""
Identity Profile Lookup

The engine never owns firmographic data; it asks a ProfileProvider for the
identity's profile during each recomputation and treats a missing profile
as zero fit.
"""

import httpx
from typing import Dict, Optional, Protocol
from pydantic import ValidationError
from intent_engine.config import get_settings
from intent_engine.models.profile import IdentityProfile
from intent_engine.utils.observability import logger


class ProfileProvider(Protocol):
    """Protocol for profile sources (CRM, enrichment service, fixtures)."""

    async def get_profile(self, identity_id: str) -> Optional[IdentityProfile]:
        """
        Look up an identity's profile.

        Returns:
            The profile, or None when the identity is unknown
        """
        ...


class InMemoryProfileProvider:
    """Dictionary-backed provider for tests, demos and single-process setups."""

    def __init__(self, profiles: Optional[Dict[str, IdentityProfile]] = None):
        self._profiles: Dict[str, IdentityProfile] = dict(profiles or {})

    def set_profile(self, identity_id: str, profile: IdentityProfile) -> None:
        self._profiles[identity_id] = profile

    async def get_profile(self, identity_id: str) -> Optional[IdentityProfile]:
        return self._profiles.get(identity_id)


class HttpProfileProvider:
    """
    Fetches profiles from ``GET {base_url}/{identity_id}``.

    A 404, transport error or malformed body yields None so that scoring
    continues with zero fit.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self._base_url = (base_url or settings.profile_service_url or "").rstrip("/")
        self._timeout = timeout or settings.profile_service_timeout_seconds
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url)

    async def get_profile(self, identity_id: str) -> Optional[IdentityProfile]:
        if not self._base_url:
            return None

        url = f"{self._base_url}/{identity_id}"
        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=self._timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, timeout=self._timeout)

            if response.status_code == 404:
                logger.debug(f"No profile for {identity_id}")
                return None
            response.raise_for_status()
            return IdentityProfile.model_validate(response.json())

        except httpx.HTTPError as e:
            logger.bind(identity_id=identity_id, error=str(e)).warning(
                f"Profile lookup failed for {identity_id}: {e}"
            )
            return None
        except (ValueError, ValidationError) as e:
            logger.bind(identity_id=identity_id).warning(
                f"Malformed profile for {identity_id}: {e}"
            )
            return None
