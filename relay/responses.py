"""
Outbound message composition.

Builders for the Messenger message bodies the handlers return. A handler's
result is a ResponseSpec: an ordered list of MessageUnit, or None when the
handler has nothing to say.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class MessageUnit:
    """One outbound message, optionally attributed to a persona."""

    message: dict[str, Any]
    persona_id: Optional[str] = None
    delay_ms: int = 0


ResponseSpec = list[MessageUnit]


@dataclass(frozen=True)
class QuickReply:
    title: str
    payload: str


@dataclass(frozen=True)
class Button:
    """Postback or web_url button of a button template."""

    title: str
    payload: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        if self.url is not None:
            return {"type": "web_url", "title": self.title, "url": self.url}
        return {"type": "postback", "title": self.title, "payload": self.payload}


def text(body: str) -> MessageUnit:
    return MessageUnit(message={"text": body})


def text_with_persona(body: str, persona_id: Optional[str]) -> MessageUnit:
    """Text unit sent on behalf of a persona (no attribution if id is empty)."""
    return MessageUnit(message={"text": body}, persona_id=persona_id or None)


def quick_replies(body: str, replies: list[QuickReply], delay_ms: int = 0) -> MessageUnit:
    return MessageUnit(
        message={
            "text": body,
            "quick_replies": [
                {
                    "content_type": "text",
                    "title": reply.title,
                    "payload": reply.payload,
                }
                for reply in replies
            ],
        },
        delay_ms=delay_ms,
    )


def button_template(title: str, buttons: list[Button]) -> MessageUnit:
    return MessageUnit(
        message={
            "attachment": {
                "type": "template",
                "payload": {
                    "template_type": "button",
                    "text": title,
                    "buttons": [button.to_dict() for button in buttons],
                },
            }
        }
    )
