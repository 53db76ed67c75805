"""Customer satisfaction survey (CSAT_* payloads)."""

from relay.dispatch import HandlerContext, PayloadDispatcher
from relay.responses import MessageUnit, QuickReply, ResponseSpec, quick_replies, text
from relay.session import Session

# Gives the user time to read the closing message first
RATING_DELAY_MS = 4000


def agent_rating(session: Session, ctx: HandlerContext, agent_name: str) -> MessageUnit:
    """Quick-reply rating prompt for the agent who handled the conversation."""
    return quick_replies(
        ctx.t(session, "survey.prompt", agentFirstName=agent_name),
        [
            QuickReply("\U0001F600", "CSAT_GOOD"),
            QuickReply("\U0001F642", "CSAT_AVERAGE"),
            QuickReply("\U0001F641", "CSAT_BAD"),
        ],
        delay_ms=RATING_DELAY_MS,
    )


def csat_good(session: Session, ctx: HandlerContext) -> ResponseSpec:
    return [text(ctx.t(session, "survey.positive"))]


def csat_average(session: Session, ctx: HandlerContext) -> ResponseSpec:
    return [text(ctx.t(session, "survey.neutral"))]


def csat_bad(session: Session, ctx: HandlerContext) -> ResponseSpec:
    return [text(ctx.t(session, "survey.negative"))]


dispatcher = PayloadDispatcher(
    "survey",
    {
        "CSAT_GOOD": csat_good,
        "CSAT_AVERAGE": csat_average,
        "CSAT_BAD": csat_bad,
    },
)
