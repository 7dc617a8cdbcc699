"""
Application wiring for sectunnel's session API.
"""

import logging
from typing import Optional

from fastapi import FastAPI

from .api.routes import router
from .config import Settings, get_settings
from .session import SessionController

logger = logging.getLogger("sectunnel")


def configure_logging(level: str = "INFO"):
    """Configure root logging for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def create_app(
    settings: Optional[Settings] = None,
    controller: Optional[SessionController] = None
) -> FastAPI:
    """Build the API app around a session controller."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="sectunnel",
        description="Live session state for the tunnel relay",
        version="0.1.0"
    )
    app.state.settings = settings
    app.state.session_controller = controller or SessionController(
        idle_timeout=settings.session_idle_timeout
    )
    app.include_router(router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok"}

    logger.info("sectunnel API ready")
    return app
