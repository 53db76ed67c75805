"""
Messenger Signature Verification

SECURITY BOUNDARY - Verify the X-Hub-Signature HMAC on webhook calls.
No relay imports. No retries.
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature"


class SignatureVerificationError(Exception):
    """Signature present but does not match the request body."""
    pass


def compute_signature(raw_body: bytes, app_secret: str) -> str:
    """Hex HMAC-SHA1 of the raw body keyed by the app secret."""
    return hmac.new(
        key=app_secret.encode("utf-8"),
        msg=raw_body,
        digestmod=hashlib.sha1,
    ).hexdigest()


def verify_signature(
    raw_body: bytes,
    signature_header: Optional[str],
    app_secret: str,
) -> bool:
    """
    Verify the Meta HMAC-SHA1 signature of a webhook request.

    Messenger sends:
    - X-Hub-Signature header with "sha1=<hex>"
    - Request body

    Args:
        raw_body: Raw request body bytes, exactly as received
        signature_header: Value of X-Hub-Signature, or None
        app_secret: Facebook app secret

    Returns:
        True if the signature matches, False if the header is absent

    Raises:
        SignatureVerificationError: Header present but wrong or malformed
    """

    if not signature_header:
        logger.warning("Couldn't validate the signature: header missing")
        return False

    method, _, signature_hash = signature_header.partition("=")
    if method != "sha1" or not signature_hash:
        raise SignatureVerificationError(
            f"Malformed {SIGNATURE_HEADER} header"
        )

    expected_hash = compute_signature(raw_body, app_secret)

    # Compare (constant-time to prevent timing attacks)
    if not hmac.compare_digest(signature_hash.encode("utf-8"), expected_hash.encode("utf-8")):
        raise SignatureVerificationError("Couldn't validate the request signature")

    return True


def verify_webhook_challenge(
    hub_mode: Optional[str],
    hub_verify_token: Optional[str],
    hub_challenge: Optional[str],
    verify_token: str,
) -> str:
    """
    Verify webhook subscription challenge from Messenger.

    Messenger calls GET /webhook with:
    - hub.mode=subscribe
    - hub.challenge=random_string
    - hub.verify_token=configured_token

    Returns:
        The challenge string to echo back

    Raises:
        HTTPException(404): mode or token missing
        HTTPException(403): wrong mode or token
    """

    if not hub_mode or not hub_verify_token:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Missing hub.mode or hub.verify_token"
        )

    if hub_mode != "subscribe" or not hmac.compare_digest(
        hub_verify_token.encode("utf-8"), verify_token.encode("utf-8")
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid hub.mode or hub.verify_token"
        )

    logger.info("WEBHOOK_VERIFIED")
    return hub_challenge or ""
