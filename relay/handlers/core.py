"""Welcome flow, fallbacks and page-feed private replies."""

from relay.dispatch import HandlerContext, PayloadDispatcher
from relay.responses import Button, QuickReply, ResponseSpec, button_template, quick_replies, text
from relay.session import Session


def _menu(session: Session, ctx: HandlerContext, key: str):
    return quick_replies(
        ctx.t(session, key),
        [
            QuickReply(ctx.t(session, "menu.help"), "SUPPORT_HELP"),
            QuickReply(ctx.t(session, "menu.start_over"), "GET_STARTED"),
        ],
    )


def get_started(session: Session, ctx: HandlerContext) -> ResponseSpec:
    buttons = []
    if ctx.shop_url:
        buttons.append(Button(ctx.t(session, "menu.shop"), url=ctx.shop_url))
    buttons.append(Button(ctx.t(session, "menu.help"), payload="SUPPORT_HELP"))

    return [
        text(ctx.t(session, "get_started.welcome", userFirstName=session.first_name)),
        button_template(ctx.t(session, "get_started.guidance"), buttons),
    ]


def text_fallback(session: Session, ctx: HandlerContext, message: str) -> ResponseSpec:
    """Reply to free text nobody understood."""
    return [
        text(ctx.t(session, "fallback.any", message=message)),
        _menu(session, ctx, "get_started.help"),
    ]


def payload_fallback(session: Session, ctx: HandlerContext, payload: str) -> ResponseSpec:
    """Reply to a payload no dispatcher knows (stale buttons, old referrals)."""
    return [
        text(ctx.t(session, "fallback.payload")),
        _menu(session, ctx, "get_started.help"),
    ]


def attachment_fallback(session: Session, ctx: HandlerContext) -> ResponseSpec:
    return [_menu(session, ctx, "fallback.attachment")]


def private_reply(session: Session, ctx: HandlerContext, item_type: str) -> ResponseSpec:
    return [
        quick_replies(
            ctx.t(session, "private_reply.welcome", item=item_type),
            [
                QuickReply(ctx.t(session, "menu.help"), "SUPPORT_HELP"),
                QuickReply(ctx.t(session, "menu.start_over"), "GET_STARTED"),
            ],
        )
    ]


def error_reply(session: Session, ctx: HandlerContext) -> ResponseSpec:
    return [text(ctx.t(session, "error.generic"))]


dispatcher = PayloadDispatcher(
    "core",
    {
        "GET_STARTED": get_started,
    },
)
