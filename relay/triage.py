"""
Event triage.

Classifies each webhook entry and routes it to its handling path:

    entry -> normalize -> (receipt: drop)
                       -> pageChange: private reply to the post/comment
                       -> message/postback/referral: resolve session ->
                          route payload or text -> send

Update Flow:
  webhook -> process_batch -> triage(entry) -> gateway.deliver
"""

import asyncio
import logging
from typing import Any, Optional

from transport.messenger.normalize import UnrecognizedEventError, normalize_entry
from transport.messenger.schemas import EventEnvelope
from transport.messenger.sender import OutboundGateway

from .dispatch import HandlerContext, PayloadRouter
from .handlers import core
from .responses import ResponseSpec
from .session import Session, SessionRegistry

logger = logging.getLogger(__name__)

PRIVATE_REPLY_TARGETS = {
    "post": "post_id",
    "comment": "comment_id",
}


class EventTriage:
    """
    Per-entry pipeline shared by all concurrent webhook deliveries.

    Holds no per-request state; sessions live in the registry.
    """

    def __init__(
        self,
        sessions: SessionRegistry,
        router: PayloadRouter,
        context: HandlerContext,
        gateway: OutboundGateway,
    ):
        self.sessions = sessions
        self.router = router
        self.context = context
        self.gateway = gateway

    async def process_batch(self, entries: list[dict[str, Any]]) -> None:
        """
        Triage every entry of a webhook batch.

        Entries are started in array order but run concurrently; a failing
        entry is logged and does not affect the others.
        """
        results = await asyncio.gather(
            *(self.triage(entry) for entry in entries),
            return_exceptions=True,
        )
        for entry, result in zip(entries, results):
            if isinstance(result, UnrecognizedEventError):
                logger.warning(
                    f"Discarding entry: {result}",
                    extra={"entry_id": entry.get("id")},
                )
            elif isinstance(result, BaseException):
                logger.error(
                    f"Triage failed: {result}",
                    exc_info=result,
                    extra={"entry_id": entry.get("id")},
                )

    async def triage(self, entry: dict[str, Any]) -> Optional[ResponseSpec]:
        """
        Handle one entry.

        Returns the response that was handed to the gateway, or None when
        the event was discarded.

        Raises:
            UnrecognizedEventError: Entry shape not understood
        """
        envelope = normalize_entry(entry)

        if envelope.kind == "pageChange":
            return await self.handle_page_change(envelope)

        if envelope.kind in ("read", "delivery"):
            logger.debug(f"Got a {envelope.kind} event")
            return None

        session = await self.sessions.resolve(envelope.sender_id)

        response = self.respond(session, envelope)
        if response:
            await self.gateway.send_and_wait(session.user_id, response)
        return response

    def respond(self, session: Session, envelope: EventEnvelope) -> ResponseSpec:
        """Compose the reply to a message, postback or referral."""
        try:
            if envelope.kind == "message":
                return self.handle_message(session, envelope)
            return self.handle_payload(session, envelope.payload)
        except Exception as e:
            logger.error(
                f"Handler error: {e}",
                exc_info=True,
                extra={"user_id": session.user_id},
            )
            return core.error_reply(session, self.context)

    def handle_message(self, session: Session, envelope: EventEnvelope) -> ResponseSpec:
        logger.info(
            f"Received message from {session.user_id}: {(envelope.text or '')[:50]}",
            extra={"user_id": session.user_id},
        )

        if envelope.is_quick_reply and envelope.payload:
            return self.handle_payload(session, envelope.payload)

        if envelope.has_attachments:
            return core.attachment_fallback(session, self.context)

        return self.handle_text(session, envelope.text or "")

    def handle_text(self, session: Session, message: str) -> ResponseSpec:
        """
        Keyword routing for free text.

        Greetings and #get_started restart the conversation, the localized
        help keyword opens support, anything else gets the fallback.
        """
        translator = self.context.translator
        lowered = message.lower()

        greetings = translator.lookup("keywords.greetings", session.locale) or []
        if lowered == translator.lookup("keywords.get_started", session.locale) or lowered in greetings:
            return self.handle_payload(session, "GET_STARTED")

        help_keyword = translator.lookup("keywords.help", session.locale)
        if help_keyword and help_keyword in lowered:
            return self.handle_payload(session, "SUPPORT_HELP")

        return core.text_fallback(session, self.context, message)

    def handle_payload(self, session: Session, payload: Optional[str]) -> ResponseSpec:
        payload = (payload or "").upper()
        logger.info(
            f"Received payload: {payload} for {session.user_id}",
            extra={"user_id": session.user_id},
        )
        return self.router.route(session, payload, self.context)

    async def handle_page_change(self, envelope: EventEnvelope) -> Optional[ResponseSpec]:
        """Private reply to new posts and comments on the page feed."""
        if envelope.change_field != "feed":
            logger.info(f"Unsupported page change field: {envelope.change_field}")
            return None

        target = PRIVATE_REPLY_TARGETS.get(envelope.item_type)
        if target is None:
            logger.info(f"Unsupported feed change type: {envelope.item_type}")
            return None

        if not envelope.object_id:
            logger.warning(f"Feed {envelope.item_type} change without an object id")
            return None

        # Private replies go to an object, not a known user
        session = Session(
            user_id=envelope.object_id,
            locale=self.context.translator.default_locale,
        )
        response = core.private_reply(session, self.context, envelope.item_type)
        await self.gateway.send_private_reply(target, envelope.object_id, response)
        return response
