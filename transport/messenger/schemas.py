"""
Messenger Transport Layer - Pydantic Schemas

PURE DATA MODELS - NO LOGIC
Defines the contract between the Messenger Platform and the relay.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


# ============================================================================
# WEBHOOK PAYLOAD SCHEMAS (INPUT)
# ============================================================================

class MessengerWebhookPayload(BaseModel):
    """
    Full Messenger webhook payload.

    ref: https://developers.facebook.com/docs/messenger-platform/webhooks
    """

    object: Optional[str] = Field(None, description="'page' for page subscriptions")
    entry: list[dict[str, Any]] = Field(default_factory=list, description="Batched entries")

    class Config:
        extra = "allow"  # Meta may add fields


# ============================================================================
# EVENT ENVELOPE (THE CONTRACT)
# ============================================================================

EventKind = Literal["message", "postback", "referral", "pageChange", "delivery", "read"]


class EventEnvelope(BaseModel):
    """
    Normalized view of one inbound Messenger event.

    message/postback/referral carry sender_id plus either free text or a
    discrete payload identifier. pageChange carries the feed change details.
    """

    kind: EventKind
    sender_id: Optional[str] = Field(None, description="Page-scoped user id")
    text: Optional[str] = Field(None, description="Free text of a message")
    payload: Optional[str] = Field(None, description="Postback, quick reply or referral payload")
    is_quick_reply: bool = False
    has_attachments: bool = False
    change_field: Optional[str] = None
    item_type: Optional[str] = None
    object_id: Optional[str] = None
    raw: dict[str, Any] = Field(default_factory=dict, description="Original event")

    class Config:
        frozen = True


# ============================================================================
# PROFILE (GRAPH API)
# ============================================================================

class UserProfile(BaseModel):
    """User profile as returned by the Graph API."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    locale: Optional[str] = None
    timezone: Optional[float] = None

    class Config:
        extra = "ignore"


# ============================================================================
# SEND API (OUTPUT)
# ============================================================================

class SendRequest(BaseModel):
    """Body posted to /me/messages."""

    recipient: dict[str, str]
    message: dict[str, Any]
    persona_id: Optional[str] = None


class SendResult(BaseModel):
    """Outcome of sending one message unit."""

    ok: bool
    recipient: dict[str, str]
    status_code: Optional[int] = None
    message_id: Optional[str] = None
    error: Optional[str] = None
