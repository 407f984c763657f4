"""FastAPI main application."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lastcard import __version__
from lastcard.api.gateway import RealtimeGateway
from lastcard.api.routes import router
from lastcard.config import settings

# Configure logging for the app (must be after imports but before app usage)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stdout,
)
logging.getLogger("lastcard").setLevel(settings.log_level.upper())
logger = logging.getLogger(__name__)


def create_app(gateway: RealtimeGateway | None = None) -> FastAPI:
    """Build the application around a gateway.

    Args:
        gateway: Gateway to serve; a fresh in-memory one by default

    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Last card server %s starting (%s)", __version__, settings.environment)
        yield
        logger.info(
            "Shutting down with %d sessions and %d games",
            len(app.state.gateway.registry),
            len(app.state.gateway.engines),
        )

    app = FastAPI(
        title="Last Card API",
        description="Lobby and real-time multiplayer server for a shedding card game",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.gateway = gateway or RealtimeGateway()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, "http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


def main() -> None:
    """Run the application."""
    uvicorn.run(
        "lastcard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
