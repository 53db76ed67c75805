"""
Per-user session state.

The registry owns every Session. Handlers get a reference to the session of
the current event and never write to it; only the profile fetch started by
resolve() populates profile and locale.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from config import FALLBACK_LOCALE
from transport.messenger.profile import ProfileFetchError
from transport.messenger.schemas import UserProfile

logger = logging.getLogger(__name__)


class ProfileSource(Protocol):
    async def fetch(self, user_id: str) -> UserProfile: ...


@dataclass
class Session:
    """One user's in-memory state."""

    user_id: str
    profile: Optional[UserProfile] = None
    locale: str = FALLBACK_LOCALE

    @property
    def first_name(self) -> str:
        if self.profile and self.profile.first_name:
            return self.profile.first_name
        return ""

    def set_profile(self, profile: UserProfile) -> None:
        self.profile = profile
        if profile.locale:
            self.locale = profile.locale


class SessionRegistry:
    """
    Process-wide user id -> Session map.

    Bounded: least recently used sessions are evicted beyond `capacity`, and
    sessions idle for longer than `ttl_seconds` are dropped on access.
    Concurrent first contact for the same user may create two sessions and
    fetch twice; the last registered one wins.
    """

    def __init__(
        self,
        profiles: ProfileSource,
        capacity: int = 10000,
        ttl_seconds: Optional[float] = None,
        fallback_locale: str = FALLBACK_LOCALE,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._profiles = profiles
        self._capacity = capacity
        self._ttl = ttl_seconds
        self._fallback_locale = fallback_locale
        self._clock = clock
        self._sessions: "OrderedDict[str, tuple[Session, float]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        """Membership without refreshing the entry."""
        item = self._sessions.get(user_id)
        if item is None:
            return False
        return self._ttl is None or self._clock() - item[1] <= self._ttl

    def get(self, user_id: str) -> Optional[Session]:
        """Cached session, or None if unknown or expired."""
        item = self._sessions.get(user_id)
        if item is None:
            return None

        session, last_seen = item
        now = self._clock()
        if self._ttl is not None and now - last_seen > self._ttl:
            del self._sessions[user_id]
            logger.debug("Session expired", extra={"user_id": user_id})
            return None

        self._sessions[user_id] = (session, now)
        self._sessions.move_to_end(user_id)
        return session

    def _register(self, session: Session) -> None:
        self._sessions[session.user_id] = (session, self._clock())
        self._sessions.move_to_end(session.user_id)
        while len(self._sessions) > self._capacity:
            evicted, _ = self._sessions.popitem(last=False)
            logger.debug("Session evicted", extra={"user_id": evicted})

    async def resolve(self, user_id: str) -> Session:
        """
        Session for a user, fetching the profile on first contact.

        Returns only once the profile fetch has settled, so callers can
        dispatch right away. Known users are returned without a fetch.
        """
        session = self.get(user_id)
        if session is not None:
            logger.info(
                f"Profile already exists PSID: {user_id} with locale: {session.locale}",
                extra={"user_id": user_id, "locale": session.locale},
            )
            return session

        session = Session(user_id=user_id, locale=self._fallback_locale)

        try:
            profile = await self._profiles.fetch(user_id)
        except ProfileFetchError as e:
            logger.warning(
                f"Profile is unavailable: {e}",
                extra={"user_id": user_id, "error": str(e)},
            )
        else:
            session.set_profile(profile)

        # Registered after the fetch so no caller sees a half-resolved session
        self._register(session)
        return session
