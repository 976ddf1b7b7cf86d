"""Bot handlers module."""

from aiogram import Router

from basewallet.bot.handlers import portfolio, quotes, start


def setup_routers() -> Router:
    """Create and configure all routers."""
    main_router = Router()

    main_router.include_router(start.router)
    main_router.include_router(quotes.router)
    main_router.include_router(portfolio.router)

    return main_router
