"""Customer support conversation (SUPPORT_* payloads)."""

from relay.dispatch import HandlerContext, PayloadDispatcher
from relay.responses import QuickReply, ResponseSpec, quick_replies, text_with_persona
from relay.session import Session

from . import survey


def support_help(session: Session, ctx: HandlerContext) -> ResponseSpec:
    return [
        quick_replies(
            ctx.t(session, "support.prompt", userFirstName=session.first_name),
            [
                QuickReply(ctx.t(session, "support.order"), "SUPPORT_ORDER"),
                QuickReply(ctx.t(session, "support.inquiry"), "SUPPORT_INQUIRY"),
                QuickReply(ctx.t(session, "support.billing"), "SUPPORT_BILLING"),
                QuickReply(ctx.t(session, "support.other"), "SUPPORT_OTHER"),
            ],
        )
    ]


def _issue(session: Session, ctx: HandlerContext, role: str, topic_key: str) -> ResponseSpec:
    persona = ctx.personas.get(role)
    return [
        text_with_persona(
            ctx.t(
                session,
                "support.issue",
                userFirstName=session.first_name,
                agentFirstName=persona.name,
                topic=ctx.t(session, topic_key),
            ),
            persona.id,
        )
    ]


def support_order(session: Session, ctx: HandlerContext) -> ResponseSpec:
    return _issue(session, ctx, "order", "support.order")


def support_inquiry(session: Session, ctx: HandlerContext) -> ResponseSpec:
    # Inquiries go to the order team
    return _issue(session, ctx, "order", "support.order")


def support_billing(session: Session, ctx: HandlerContext) -> ResponseSpec:
    return _issue(session, ctx, "billing", "support.billing")


def support_sales(session: Session, ctx: HandlerContext) -> ResponseSpec:
    persona = ctx.personas.get("sales")
    return [
        text_with_persona(
            ctx.t(
                session,
                "support.style",
                userFirstName=session.first_name,
                agentFirstName=persona.name,
            ),
            persona.id,
        )
    ]


def support_other(session: Session, ctx: HandlerContext) -> ResponseSpec:
    persona = ctx.personas.get("care")
    return [
        text_with_persona(
            ctx.t(
                session,
                "support.default",
                userFirstName=session.first_name,
                agentFirstName=persona.name,
            ),
            persona.id,
        )
    ]


def support_end(session: Session, ctx: HandlerContext) -> ResponseSpec:
    """Closing message from customer care followed by the rating survey."""
    persona = ctx.personas.get("care")
    return [
        text_with_persona(ctx.t(session, "support.end"), persona.id),
        survey.agent_rating(session, ctx, persona.name),
    ]


dispatcher = PayloadDispatcher(
    "support",
    {
        "SUPPORT_HELP": support_help,
        "SUPPORT_ORDER": support_order,
        "SUPPORT_INQUIRY": support_inquiry,
        "SUPPORT_BILLING": support_billing,
        "SUPPORT_SALES": support_sales,
        "SUPPORT_OTHER": support_other,
        "SUPPORT_END": support_end,
    },
)
