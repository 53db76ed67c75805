"""
Messenger Webhook Handler

Receives Messenger platform events and hands them to the triage pipeline.

Security:
  - X-Hub-Signature verified against the raw body before anything else
  - Forged or corrupted requests never reach triage (403)

Update Flow:
  webhook -> verify signature -> ack 200 EVENT_RECEIVED -> triage (background)
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse

from transport.messenger.schemas import MessengerWebhookPayload
from transport.messenger.security import (
    SIGNATURE_HEADER,
    SignatureVerificationError,
    verify_signature,
    verify_webhook_challenge,
)

# Setup logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=["Messenger Webhook"])


# ============================================================================
# WEBHOOK CHALLENGE (Setup only)
# ============================================================================

@router.get("/webhook", response_class=PlainTextResponse)
async def messenger_webhook_challenge(
    request: Request,
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
) -> str:
    """
    Verify webhook subscription challenge from Meta.

    Returns:
        The challenge string (plain text)

    Raises:
        HTTPException(403): Wrong mode or token
        HTTPException(404): Mode or token missing
    """
    settings = request.app.state.relay.settings
    return verify_webhook_challenge(
        hub_mode, hub_verify_token, hub_challenge, settings.verify_token
    )


# ============================================================================
# WEBHOOK RECEIVER (Event processing)
# ============================================================================

@router.post("/webhook", response_class=PlainTextResponse)
async def messenger_webhook_receiver(
    request: Request,
    background_tasks: BackgroundTasks,
) -> str:
    """
    Receive Messenger events via webhook.

    Flow:
    1. Get raw body
    2. Verify signature (403 if it does not match)
    3. Accept page events only (404 otherwise)
    4. Acknowledge with EVENT_RECEIVED, triage after the response is sent

    The acknowledgment does not depend on how triage goes.
    """
    relay = request.app.state.relay

    # Step 1: Raw body for signature verification
    body = await request.body()

    # Step 2: Verify signature (security boundary)
    try:
        verify_signature(body, request.headers.get(SIGNATURE_HEADER), relay.settings.app_secret)
    except SignatureVerificationError as e:
        logger.warning(f"Signature verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Signature verification failed"
        )

    # Step 3: Parse and check the subscription object
    try:
        data = json.loads(body)
    except ValueError as e:
        logger.warning(f"Invalid JSON body: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload"
        )

    if not isinstance(data, dict) or data.get("object") != "page":
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not a page subscription event"
        )

    try:
        payload = MessengerWebhookPayload(**data)
    except ValueError as e:
        logger.warning(f"Invalid webhook payload: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook payload"
        )

    # Step 4: Acknowledge now, process after the response
    background_tasks.add_task(relay.triage.process_batch, payload.entry)
    logger.debug(f"Accepted {len(payload.entry)} entries")

    return "EVENT_RECEIVED"
