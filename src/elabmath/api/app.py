"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import settings
from ..placeholders import PlaceholderScanner
from ..units import get_unit_system
from .routes import router

logger = logging.getLogger(__name__)

# Global scanner instance
_scanner: Optional[PlaceholderScanner] = None


def get_scanner() -> PlaceholderScanner:
    """Get the global scanner instance."""
    global _scanner
    if _scanner is None:
        _scanner = PlaceholderScanner(settings=settings)
    return _scanner


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # Unit configuration errors must stop the server before it takes requests
    get_unit_system()
    get_scanner()
    logger.info("Unit system ready")
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="elabmath",
        description="Inline math expressions with units for lab notebook documents",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(router, prefix="/api")

    return app
