"""
FastAPI Application Entry Point

Integrates:
  - Messenger webhook (verification + event receiver)
  - Health checks

Run: uvicorn main:app --reload --host 0.0.0.0 --port 1337
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import Settings
from infra import RelayBootstrap
from webhook.messenger import router as messenger_router

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

OK_BODY = {"status": 200, "code": 200, "message": "Ok"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: startup and shutdown handlers.

    Missing configuration aborts startup.
    """
    relay: RelayBootstrap = app.state.relay
    settings = relay.settings

    # Startup
    settings.validate()
    logger.info("=" * 60)
    logger.info("Messenger relay starting up...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Graph API: {settings.platform_url}")
    logger.info(f"Webhook: {settings.webhook_url}")
    logger.info(f"Locales: {', '.join(relay.translator.locales)}")
    if len(settings.personas) == 0:
        logger.info(
            "Is this the first time running? Create the personas and set "
            "PERSONA_BILLING, PERSONA_CARE, PERSONA_ORDER and PERSONA_SALES"
        )
    if settings.page_id:
        logger.info(f"Test your app by messaging: https://m.me/{settings.page_id}")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("Messenger relay shutting down...")
    await relay.aclose()


def create_app(
    settings: Optional[Settings] = None,
    relay: Optional[RelayBootstrap] = None,
) -> FastAPI:
    """Create the application with its components wired once."""
    if relay is None:
        relay = RelayBootstrap(settings or Settings.from_env())

    app = FastAPI(
        title="Messenger Relay",
        description="Webhook relay for Messenger conversations",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.relay = relay

    # Middleware for logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        logger.debug(f"{request.method} {request.url.path}")
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )

    # Include routers
    app.include_router(messenger_router)

    # Ping routes
    @app.get("/")
    async def root():
        return OK_BODY

    @app.get("/health")
    async def health():
        return OK_BODY

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.relay.settings
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
    )
