"""
Messenger Input Normalization

PURE CONVERSION - NO LOGIC, NO NETWORK CALLS

Converts one webhook entry into an EventEnvelope.
- changes:   pageChange (feed field, item type, object id)
- messaging: first event only -> message / postback / referral / read / delivery
"""

import logging
from typing import Any

from .schemas import EventEnvelope

logger = logging.getLogger(__name__)


class UnrecognizedEventError(Exception):
    """Entry or event shape the relay does not know how to handle."""
    pass


def normalize_entry(entry: dict[str, Any]) -> EventEnvelope:
    """
    Convert a webhook entry into an EventEnvelope.

    Only the first messaging event of an entry is considered; batched events
    after it are not processed.

    Raises:
        UnrecognizedEventError: Neither changes nor messaging present, or
            an event of unknown type
    """

    if "changes" in entry:
        return _normalize_change(entry)

    messaging = entry.get("messaging")
    if not messaging:
        raise UnrecognizedEventError(
            f"Entry {entry.get('id', '<unknown>')} has no messaging or changes"
        )

    if len(messaging) > 1:
        logger.warning(
            f"Entry carries {len(messaging)} messaging events, only the first is processed",
            extra={"entry_id": entry.get("id")},
        )

    return normalize_event(messaging[0])


def normalize_event(event: dict[str, Any]) -> EventEnvelope:
    """Convert a single messaging event into an EventEnvelope."""

    # Receipts carry no sender action worth answering
    if "read" in event:
        return EventEnvelope(kind="read", raw=event)

    if "delivery" in event:
        return EventEnvelope(kind="delivery", raw=event)

    try:
        sender_id = event["sender"]["id"]
    except (KeyError, TypeError):
        raise UnrecognizedEventError("Messaging event without sender.id")

    if "message" in event:
        return _normalize_message(event, sender_id)

    if "postback" in event:
        return _normalize_postback(event, sender_id)

    if "referral" in event:
        return EventEnvelope(
            kind="referral",
            sender_id=sender_id,
            payload=(event["referral"] or {}).get("ref"),
            raw=event,
        )

    raise UnrecognizedEventError(
        f"Unsupported messaging event with keys: {sorted(event)}"
    )


def _normalize_message(event: dict[str, Any], sender_id: str) -> EventEnvelope:
    """
    Normalize a message event.

    Quick replies carry a payload identifier, plain messages carry text,
    attachments are flagged without being downloaded.
    """
    message = event["message"] or {}
    quick_reply = message.get("quick_reply")

    if quick_reply:
        return EventEnvelope(
            kind="message",
            sender_id=sender_id,
            text=message.get("text"),
            payload=quick_reply.get("payload"),
            is_quick_reply=True,
            raw=event,
        )

    text = message.get("text")
    return EventEnvelope(
        kind="message",
        sender_id=sender_id,
        text=text.strip() if text else None,
        has_attachments=bool(message.get("attachments")),
        raw=event,
    )


def _normalize_postback(event: dict[str, Any], sender_id: str) -> EventEnvelope:
    """
    Normalize a postback event.

    Threads opened from an m.me link or ad carry the ref in postback.referral
    and that takes precedence over the button payload.
    """
    postback = event["postback"] or {}
    referral = postback.get("referral")

    if referral and referral.get("type") == "OPEN_THREAD":
        payload = referral.get("ref")
    else:
        payload = postback.get("payload")

    return EventEnvelope(
        kind="postback",
        sender_id=sender_id,
        text=postback.get("title"),
        payload=payload,
        raw=event,
    )


def _normalize_change(entry: dict[str, Any]) -> EventEnvelope:
    try:
        change = entry["changes"][0]
    except (IndexError, TypeError):
        raise UnrecognizedEventError("Entry has an empty changes list")

    field = change.get("field")
    value = change.get("value") or {}
    item_type = value.get("item")

    if item_type == "post":
        object_id = value.get("post_id")
    elif item_type == "comment":
        object_id = value.get("comment_id")
    else:
        object_id = None

    return EventEnvelope(
        kind="pageChange",
        sender_id=(value.get("from") or {}).get("id"),
        change_field=field,
        item_type=item_type,
        object_id=object_id,
        raw=change,
    )
