"""
Test suite for the session registry.

Verifies:
- First contact fetches the profile before returning
- Known users are served from the cache
- Fetch failure is non-fatal and keeps the fallback locale
- Capacity and idle TTL bound the map
"""

import asyncio

import pytest

from relay.session import Session, SessionRegistry
from transport.messenger.profile import ProfileFetchError
from transport.messenger.schemas import UserProfile


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestResolve:
    """Tests for SessionRegistry.resolve."""

    @pytest.mark.asyncio
    async def test_first_contact_populates_profile(self, fake_profiles):
        profiles = fake_profiles({"U1": {"first_name": "Ana", "locale": "de_DE"}})
        registry = SessionRegistry(profiles)

        session = await registry.resolve("U1")

        assert session.user_id == "U1"
        assert session.first_name == "Ana"
        assert session.locale == "de_DE"
        assert profiles.calls == ["U1"]
        assert "U1" in registry

    @pytest.mark.asyncio
    async def test_known_user_is_not_fetched_again(self, fake_profiles):
        profiles = fake_profiles({"U1": {"first_name": "Ana"}})
        registry = SessionRegistry(profiles)

        first = await registry.resolve("U1")
        second = await registry.resolve("U1")

        assert first is second
        assert profiles.calls == ["U1"]

    @pytest.mark.asyncio
    async def test_fetch_failure_keeps_defaults(self, fake_profiles):
        registry = SessionRegistry(fake_profiles(fail=True), fallback_locale="en_US")

        session = await registry.resolve("U1")

        assert session.profile is None
        assert session.first_name == ""
        assert session.locale == "en_US"
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_profile_without_locale_keeps_fallback(self, fake_profiles):
        registry = SessionRegistry(fake_profiles({"U1": {"first_name": "Ana"}}))

        session = await registry.resolve("U1")

        assert session.locale == "en_US"

    @pytest.mark.asyncio
    async def test_resolve_returns_only_after_fetch_settles(self):
        """Dispatch after resolve never overlaps the first fetch."""
        release = asyncio.Event()
        settled = []

        class SlowProfiles:
            async def fetch(self, user_id):
                await release.wait()
                settled.append(user_id)
                return UserProfile(first_name="Ana")

        registry = SessionRegistry(SlowProfiles())
        task = asyncio.create_task(registry.resolve("U1"))

        await asyncio.sleep(0)
        assert not task.done()
        assert registry.get("U1") is None

        release.set()
        session = await task

        assert settled == ["U1"]
        assert session.first_name == "Ana"

    @pytest.mark.asyncio
    async def test_failed_fetch_also_settles_before_return(self):
        class FailingProfiles:
            async def fetch(self, user_id):
                await asyncio.sleep(0)
                raise ProfileFetchError("Network Error")

        registry = SessionRegistry(FailingProfiles())

        session = await registry.resolve("U1")

        assert isinstance(session, Session)
        assert registry.get("U1") is session

    @pytest.mark.asyncio
    async def test_concurrent_first_contact_is_tolerated(self, fake_profiles):
        """Two fetches may happen; one session ends up registered."""
        profiles = fake_profiles({"U1": {"first_name": "Ana"}})
        registry = SessionRegistry(profiles)

        first, second = await asyncio.gather(registry.resolve("U1"), registry.resolve("U1"))

        assert first.first_name == second.first_name == "Ana"
        assert len(registry) == 1
        assert registry.get("U1") in (first, second)
        assert 1 <= len(profiles.calls) <= 2


class TestBounds:
    """Capacity and TTL eviction."""

    @pytest.mark.asyncio
    async def test_least_recently_used_is_evicted(self, fake_profiles):
        registry = SessionRegistry(fake_profiles(fail=True), capacity=2)

        await registry.resolve("U1")
        await registry.resolve("U2")
        registry.get("U1")
        await registry.resolve("U3")

        assert "U1" in registry
        assert "U2" not in registry
        assert "U3" in registry
        assert len(registry) == 2

    @pytest.mark.asyncio
    async def test_idle_session_expires(self, fake_profiles):
        clock = FakeClock()
        profiles = fake_profiles(fail=True)
        registry = SessionRegistry(profiles, ttl_seconds=60, clock=clock)

        await registry.resolve("U1")
        clock.now = 30
        assert registry.get("U1") is not None

        clock.now = 120
        assert registry.get("U1") is None

        await registry.resolve("U1")
        assert profiles.calls == ["U1", "U1"]

    def test_capacity_must_be_positive(self, fake_profiles):
        with pytest.raises(ValueError):
            SessionRegistry(fake_profiles(), capacity=0)

    @pytest.mark.asyncio
    async def test_membership_check_does_not_refresh_order(self, fake_profiles):
        registry = SessionRegistry(fake_profiles(fail=True), capacity=2)

        await registry.resolve("U1")
        await registry.resolve("U2")
        assert "U1" in registry
        await registry.resolve("U3")

        assert "U1" not in registry
        assert "U2" in registry

    @pytest.mark.asyncio
    async def test_membership_check_does_not_extend_ttl(self, fake_profiles):
        clock = FakeClock()
        registry = SessionRegistry(fake_profiles(fail=True), ttl_seconds=60, clock=clock)

        await registry.resolve("U1")
        clock.now = 50
        assert "U1" in registry

        clock.now = 70
        assert "U1" not in registry
        assert registry.get("U1") is None
