"""
Payload dispatch.

A PayloadDispatcher is an exact-match table from payload identifier to a
pure handler. Returning None means "no match" for that dispatcher; the
PayloadRouter walks the registered dispatchers and falls back to a default
handler when none of them answers.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from config import PersonaConfig

from .i18n import Translator
from .responses import ResponseSpec
from .session import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandlerContext:
    """Read-only collaborators every handler may use."""

    translator: Translator
    personas: PersonaConfig
    shop_url: str = ""

    def t(self, session: Session, key: str, **params) -> str:
        """Translate a key in the session's locale."""
        return self.translator.translate(key, session.locale, **params)


Handler = Callable[[Session, HandlerContext], Optional[ResponseSpec]]
Fallback = Callable[[Session, HandlerContext, str], ResponseSpec]


class PayloadDispatcher:
    """Exact string match of payload identifier -> handler."""

    def __init__(self, name: str, handlers: Mapping[str, Handler]):
        self.name = name
        self._handlers = dict(handlers)

    @property
    def payloads(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, payload: str) -> bool:
        return payload in self._handlers

    def dispatch(self, session: Session, payload: str, context: HandlerContext) -> Optional[ResponseSpec]:
        handler = self._handlers.get(payload)
        if handler is None:
            return None
        response = handler(session, context)
        return response or None


class PayloadRouter:
    """
    Tries each dispatcher in registration order.

    The first non-empty response wins; otherwise the fallback handler
    composes the default reply.
    """

    def __init__(self, dispatchers: list[PayloadDispatcher], fallback: Fallback):
        self.dispatchers = list(dispatchers)
        self.fallback = fallback

    def route(self, session: Session, payload: str, context: HandlerContext) -> ResponseSpec:
        for dispatcher in self.dispatchers:
            response = dispatcher.dispatch(session, payload, context)
            if response is not None:
                logger.debug(
                    f"Payload {payload} handled by {dispatcher.name}",
                    extra={"user_id": session.user_id},
                )
                return response

        logger.info(
            f"No handler for payload {payload}",
            extra={"user_id": session.user_id},
        )
        return self.fallback(session, context, payload)
