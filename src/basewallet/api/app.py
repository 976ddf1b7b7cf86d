"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from basewallet.config import get_settings
from basewallet.core import WalletCore, create_core

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: build the core unless one was injected
    owns_core = app.state.core is None
    if owns_core:
        app.state.core = create_core()
    yield
    # Shutdown
    if owns_core:
        await app.state.core.aclose()
        app.state.core = None


def create_app(core: Optional[WalletCore] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        core: WalletCore to serve; built from settings at startup when None
    """
    settings = get_settings()

    app = FastAPI(
        title="Base Wallet API",
        description="Swap quotes, prices and balances on Base",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.core = core

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    from basewallet.api.routes import balances, health, quotes, tokens

    app.include_router(health.router, tags=["Health"])
    app.include_router(tokens.router, prefix="/api/v1")
    app.include_router(quotes.router, prefix="/api/v1")
    app.include_router(balances.router, prefix="/api/v1")

    return app


# Default app instance
app = create_app()
