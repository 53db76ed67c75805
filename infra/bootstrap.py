"""
Infrastructure initialization and bootstrap.

Builds every relay component once from Settings and wires them together.
Nothing here reads the environment; configuration is passed in.
"""

from typing import Optional

import httpx

from config import Settings
from relay.dispatch import HandlerContext
from relay.handlers import create_router
from relay.i18n import LOCALES_DIR, Translator
from relay.session import SessionRegistry
from relay.triage import EventTriage
from transport.messenger.profile import ProfileFetcher
from transport.messenger.sender import OutboundGateway


class RelayBootstrap:
    """
    Process-wide component container.

    One instance per application; it owns the shared HTTP client and the
    session registry.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        translator: Optional[Translator] = None,
    ):
        self.settings = settings
        self.client = client or httpx.AsyncClient(timeout=settings.http_timeout)
        self.translator = translator or Translator.from_directory(
            LOCALES_DIR, settings.fallback_locale
        )

        self.profiles = ProfileFetcher(
            settings.platform_url,
            settings.page_access_token,
            client=self.client,
            timeout=settings.http_timeout,
        )
        self.gateway = OutboundGateway(
            settings.platform_url,
            settings.page_access_token,
            client=self.client,
            timeout=settings.http_timeout,
        )
        self.sessions = SessionRegistry(
            self.profiles,
            capacity=settings.session_capacity,
            ttl_seconds=settings.session_ttl_seconds,
            fallback_locale=settings.fallback_locale,
        )
        self.context = HandlerContext(
            translator=self.translator,
            personas=settings.personas,
            shop_url=settings.shop_url,
        )
        self.triage = EventTriage(
            self.sessions,
            create_router(),
            self.context,
            self.gateway,
        )

    async def aclose(self) -> None:
        """Flush pending sends and close the HTTP client."""
        await self.gateway.drain()
        await self.client.aclose()

    def __repr__(self) -> str:
        return (
            f"RelayBootstrap(platform={self.settings.platform_url}, "
            f"locales={self.translator.locales}, "
            f"personas={len(self.settings.personas)})"
        )
