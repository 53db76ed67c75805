"""
Configuration management for the Messenger relay.

Loads environment variables from .env file and provides typed, immutable
access to configuration. Built once at startup and handed to every component.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)

logger = logging.getLogger(__name__)

GRAPH_DOMAIN = "https://graph.facebook.com"
FALLBACK_LOCALE = "en_US"

PERSONA_ROLES = ("billing", "care", "order", "sales")

# Display names used when the environment only provides persona ids
DEFAULT_PERSONA_NAMES = {
    "billing": "Jessica Cludder",
    "care": "Rose Jacobs",
    "order": "Jorge Roberts",
    "sales": "Laura Ramirez",
}


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""
    pass


@dataclass(frozen=True)
class Persona:
    """A named responder identity messages can be attributed to."""

    id: str
    name: str


@dataclass(frozen=True)
class PersonaConfig:
    """Read-only role -> persona mapping, loaded once at startup."""

    personas: Mapping[str, Persona] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "personas", MappingProxyType(dict(self.personas)))

    def get(self, role: str) -> Persona:
        """
        Look up the persona for a role.

        Roles without a configured persona id resolve to a persona with an
        empty id, which the gateway sends without attribution.
        """
        persona = self.personas.get(role)
        if persona is None:
            return Persona(id="", name=DEFAULT_PERSONA_NAMES.get(role, ""))
        return persona

    def __len__(self) -> int:
        return sum(1 for persona in self.personas.values() if persona.id)

    @classmethod
    def from_env(cls) -> "PersonaConfig":
        personas = {}
        for role in PERSONA_ROLES:
            persona_id = os.getenv(f"PERSONA_{role.upper()}", "")
            name = os.getenv(f"PERSONA_{role.upper()}_NAME", DEFAULT_PERSONA_NAMES[role])
            personas[role] = Persona(id=persona_id, name=name)
        return cls(personas=personas)


@dataclass(frozen=True)
class Settings:
    """Relay configuration from environment."""

    # Messenger app
    page_id: str
    app_id: str
    page_access_token: str
    app_secret: str
    verify_token: str

    # Public URLs
    app_url: str
    shop_url: str

    # Graph API
    graph_api_version: str

    # Server
    port: int
    environment: str

    # Sessions
    fallback_locale: str
    session_capacity: int
    session_ttl_seconds: float

    # Outbound
    http_timeout: float

    personas: PersonaConfig = field(default_factory=PersonaConfig)

    @property
    def platform_url(self) -> str:
        """Versioned Graph API base URL."""
        return f"{GRAPH_DOMAIN}/{self.graph_api_version}"

    @property
    def webhook_url(self) -> str:
        return f"{self.app_url}/webhook"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load configuration from environment variables.

        Missing secrets are kept as empty strings here; validate() decides
        whether the process may start.
        """
        return cls(
            page_id=os.getenv("PAGE_ID", ""),
            app_id=os.getenv("APP_ID", ""),
            page_access_token=os.getenv("PAGE_ACCESS_TOKEN", ""),
            app_secret=os.getenv("APP_SECRET", ""),
            verify_token=os.getenv("VERIFY_TOKEN", ""),
            app_url=os.getenv("APP_URL", ""),
            shop_url=os.getenv("SHOP_URL", ""),
            graph_api_version=os.getenv("GRAPH_API_VERSION", "v19.0"),
            port=int(os.getenv("PORT", "1337")),
            environment=os.getenv("ENVIRONMENT", "development"),
            fallback_locale=os.getenv("FALLBACK_LOCALE", FALLBACK_LOCALE),
            session_capacity=int(os.getenv("SESSION_CAPACITY", "10000")),
            session_ttl_seconds=float(os.getenv("SESSION_TTL_SECONDS", "86400")),
            http_timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            personas=PersonaConfig.from_env(),
        )

    def validate(self) -> None:
        """Raise ConfigurationError if required configuration is not set."""
        required = {
            "PAGE_ID": self.page_id,
            "APP_ID": self.app_id,
            "PAGE_ACCESS_TOKEN": self.page_access_token,
            "APP_SECRET": self.app_secret,
            "VERIFY_TOKEN": self.verify_token,
            "APP_URL": self.app_url,
            "SHOP_URL": self.shop_url,
        }
        missing = [name for name, value in required.items() if not value]

        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        if not self.app_url.startswith("https://"):
            raise ConfigurationError("APP_URL must be an https:// URL")

        if self.session_capacity <= 0:
            raise ConfigurationError("SESSION_CAPACITY must be positive")

        if len(self.personas) == 0:
            logger.warning(
                "No persona ids configured, messages will use the page identity"
            )
