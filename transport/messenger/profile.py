"""
Messenger User Profile Fetch

Reads the public profile of a page-scoped user from the Graph API.
No caching here - the session registry decides when to call this.
"""

import logging
from typing import Optional

import httpx

from .schemas import UserProfile

logger = logging.getLogger(__name__)

PROFILE_FIELDS = "first_name,last_name,gender,locale,timezone"


class ProfileFetchError(Exception):
    """Profile unavailable (network error or non-200 response)."""
    pass


class ProfileFetcher:
    """
    Graph API profile client.

    GET {platform}/{user_id}?fields=...&access_token=...
    """

    def __init__(
        self,
        platform_url: str,
        access_token: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.platform_url = platform_url.rstrip("/")
        self.access_token = access_token
        self.timeout = timeout
        self._client = client

    async def fetch(self, user_id: str) -> UserProfile:
        """
        Fetch the profile of a user.

        Raises:
            ProfileFetchError: Transport failure, non-200 or unparsable body
        """

        endpoint = f"{self.platform_url}/{user_id}"
        params = {
            "fields": PROFILE_FIELDS,
            "access_token": self.access_token,
        }

        try:
            if self._client is not None:
                response = await self._client.get(endpoint, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(endpoint, params=params, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.error(
                f"Unable to fetch profile: {e}",
                extra={"user_id": user_id, "error": str(e)},
            )
            raise ProfileFetchError("Network Error") from e

        if response.status_code != 200:
            raise ProfileFetchError(
                f"Graph API returned {response.status_code}"
            )

        try:
            return UserProfile(**response.json())
        except (TypeError, ValueError) as e:
            raise ProfileFetchError(f"Invalid profile body: {e}") from e
