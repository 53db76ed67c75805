"""
Webhook module - FastAPI route handlers for different platforms.

Includes:
- messenger.py: Subscription challenge and event receiver
"""

from webhook.messenger import router as messenger_router

__all__ = ["messenger_router"]
