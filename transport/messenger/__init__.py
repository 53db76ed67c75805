"""Messenger Transport Layer - Module Exports"""

from .normalize import (
    UnrecognizedEventError,
    normalize_entry,
    normalize_event,
)
from .profile import ProfileFetchError, ProfileFetcher
from .schemas import (
    EventEnvelope,
    MessengerWebhookPayload,
    SendRequest,
    SendResult,
    UserProfile,
)
from .security import SignatureVerificationError, verify_signature, verify_webhook_challenge
from .sender import OutboundGateway, build_request_body

__all__ = [
    # Schemas
    "EventEnvelope",
    "MessengerWebhookPayload",
    "SendRequest",
    "SendResult",
    "UserProfile",
    # Normalization
    "normalize_entry",
    "normalize_event",
    "UnrecognizedEventError",
    # Security
    "verify_signature",
    "verify_webhook_challenge",
    "SignatureVerificationError",
    # Profile
    "ProfileFetcher",
    "ProfileFetchError",
    # Sender
    "OutboundGateway",
    "build_request_body",
]
