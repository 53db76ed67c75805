"""
Conversation relay core.

Session registry, event triage and payload dispatch for Messenger events.
Import submodules directly (relay.triage, relay.session, ...).
"""
