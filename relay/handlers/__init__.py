"""Payload handlers grouped by conversation."""

from relay.dispatch import PayloadRouter

from . import core, support, survey


def create_router() -> PayloadRouter:
    """Router over every registered dispatcher with the default fallback."""
    return PayloadRouter(
        [core.dispatcher, support.dispatcher, survey.dispatcher],
        fallback=core.payload_fallback,
    )


__all__ = ["core", "support", "survey", "create_router"]
