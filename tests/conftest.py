"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Persona, PersonaConfig, Settings  # noqa: E402
from relay.dispatch import HandlerContext  # noqa: E402
from relay.i18n import Translator  # noqa: E402
from transport.messenger.profile import ProfileFetchError  # noqa: E402
from transport.messenger.schemas import SendResult, UserProfile  # noqa: E402

APP_SECRET = "test_app_secret"
VERIFY_TOKEN = "T"


def make_settings(**overrides) -> Settings:
    values = dict(
        page_id="PAGE1",
        app_id="APP1",
        page_access_token="page_token",
        app_secret=APP_SECRET,
        verify_token=VERIFY_TOKEN,
        app_url="https://relay.example.com",
        shop_url="https://shop.example.com",
        graph_api_version="v19.0",
        port=1337,
        environment="test",
        fallback_locale="en_US",
        session_capacity=100,
        session_ttl_seconds=3600.0,
        http_timeout=5.0,
        personas=PersonaConfig(
            personas={
                "billing": Persona(id="persona_billing", name="Jessica"),
                "care": Persona(id="persona_care", name="Rose"),
                "order": Persona(id="persona_order", name="Jorge"),
                "sales": Persona(id="persona_sales", name="Laura"),
            }
        ),
    )
    values.update(overrides)
    return Settings(**values)


class FakeProfiles:
    """Profile source returning canned profiles, or failing for unknown users."""

    def __init__(self, profiles=None, fail=False):
        self.profiles = profiles or {}
        self.fail = fail
        self.calls = []

    async def fetch(self, user_id):
        self.calls.append(user_id)
        if self.fail or user_id not in self.profiles:
            raise ProfileFetchError("Graph API returned 404")
        return UserProfile(**self.profiles[user_id])


class RecordingGateway:
    """Stands in for OutboundGateway and records what would be sent."""

    def __init__(self):
        self.sent = []
        self.private_replies = []

    async def send_and_wait(self, user_id, spec):
        self.sent.append((user_id, spec))
        return [SendResult(ok=True, recipient={"id": user_id}) for _ in spec or []]

    async def send_private_reply(self, kind, object_id, spec):
        self.private_replies.append((kind, object_id, spec))
        return [SendResult(ok=True, recipient={kind: object_id}) for _ in spec or []]


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def translator():
    return Translator.from_directory()


@pytest.fixture
def context(settings, translator):
    return HandlerContext(
        translator=translator,
        personas=settings.personas,
        shop_url=settings.shop_url,
    )


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def fake_profiles():
    return FakeProfiles
