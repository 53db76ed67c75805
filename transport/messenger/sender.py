"""
Messenger Send API Gateway

Serializes composed responses and posts them to /me/messages.
Best-effort, at-most-once: no retries, failures are logged and the next
unit is still sent.
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from relay.responses import MessageUnit, ResponseSpec

from .schemas import SendRequest, SendResult

logger = logging.getLogger(__name__)

PRIVATE_REPLY_KINDS = ("post_id", "comment_id")


def build_request_body(recipient: dict[str, str], unit: MessageUnit) -> dict[str, Any]:
    """
    Send API body for one unit.

    persona_id travels at the top level, next to recipient and message.
    """
    request = SendRequest(
        recipient=recipient,
        message=unit.message,
        persona_id=unit.persona_id,
    )
    return request.model_dump(exclude_none=True)


class OutboundGateway:
    """
    Send API client shared by every pipeline.

    Pure I/O: no composition, no routing, no session access.
    """

    def __init__(
        self,
        platform_url: str,
        access_token: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.endpoint = f"{platform_url.rstrip('/')}/me/messages"
        self.access_token = access_token
        self.timeout = timeout
        self._client = client
        # Strong references to fire-and-forget sends until they finish
        self._pending: set[asyncio.Task] = set()

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        params = {"access_token": self.access_token}
        if self._client is not None:
            return await self._client.post(
                self.endpoint, params=params, json=body, timeout=self.timeout
            )
        async with httpx.AsyncClient() as client:
            return await client.post(
                self.endpoint, params=params, json=body, timeout=self.timeout
            )

    async def send_unit(self, recipient: dict[str, str], unit: MessageUnit) -> SendResult:
        """Send one unit. Never raises; the outcome is in the result."""

        body = build_request_body(recipient, unit)

        try:
            response = await self._post(body)
        except httpx.HTTPError as e:
            logger.error(
                f"Unable to send message: {e}",
                extra={"recipient": recipient, "error": str(e)},
            )
            return SendResult(ok=False, recipient=recipient, error=f"HTTP request failed: {e}")

        if response.status_code != 200:
            error_text = response.text
            logger.error(
                f"Send API error: {response.status_code} - {error_text}",
                extra={
                    "recipient": recipient,
                    "status_code": response.status_code,
                    "error_body": error_text,
                },
            )
            return SendResult(
                ok=False,
                recipient=recipient,
                status_code=response.status_code,
                error=f"Send API returned {response.status_code}",
            )

        try:
            message_id = response.json().get("message_id")
        except (AttributeError, ValueError):
            message_id = None

        logger.debug(
            "Message sent",
            extra={"recipient": recipient, "message_id": message_id},
        )
        return SendResult(
            ok=True,
            recipient=recipient,
            status_code=response.status_code,
            message_id=message_id,
        )

    async def deliver(
        self,
        recipient: dict[str, str],
        spec: Optional[ResponseSpec],
    ) -> list[SendResult]:
        """
        Send every unit of a response in order.

        A failure of one unit does not cancel the following ones.
        """
        results = []
        for unit in spec or []:
            if unit.delay_ms:
                await asyncio.sleep(unit.delay_ms / 1000)
            results.append(await self.send_unit(recipient, unit))

        failed = sum(1 for result in results if not result.ok)
        if failed:
            logger.warning(
                f"{failed} of {len(results)} units failed",
                extra={"recipient": recipient},
            )
        return results

    async def send_and_wait(self, user_id: str, spec: Optional[ResponseSpec]) -> list[SendResult]:
        """Send a response to a user and wait until every unit settled."""
        return await self.deliver({"id": user_id}, spec)

    def send(self, user_id: str, spec: Optional[ResponseSpec]) -> asyncio.Task:
        """Fire-and-forget variant of send_and_wait. Needs a running loop."""
        task = asyncio.create_task(self.send_and_wait(user_id, spec))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def send_private_reply(
        self,
        kind: str,
        object_id: str,
        spec: Optional[ResponseSpec],
    ) -> list[SendResult]:
        """Reply privately to the author of a page post or comment."""
        if kind not in PRIVATE_REPLY_KINDS:
            raise ValueError(f"Unsupported private reply target: {kind}")
        return await self.deliver({kind: object_id}, spec)

    async def drain(self) -> None:
        """Wait for outstanding fire-and-forget sends (used on shutdown)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
