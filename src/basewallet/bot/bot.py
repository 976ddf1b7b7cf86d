"""Bot initialization and runner."""

import asyncio
import logging
from typing import Optional

from aiogram import Bot, Dispatcher

from basewallet.bot.handlers import setup_routers
from basewallet.config import get_settings
from basewallet.core import WalletCore, create_core

logger = logging.getLogger(__name__)


def create_dispatcher(core: WalletCore) -> Dispatcher:
    """Dispatcher with all routers; handlers receive ``core`` as workflow data."""
    dp = Dispatcher()
    dp["core"] = core
    dp.include_router(setup_routers())
    return dp


def create_bot(core: WalletCore) -> tuple[Bot, Dispatcher]:
    """Create bot and dispatcher instances."""
    settings = get_settings()

    if not settings.telegram_bot_token:
        raise ValueError("TELEGRAM_BOT_TOKEN is not set")

    # No default parse_mode - replies are plain text
    bot = Bot(token=settings.telegram_bot_token)
    return bot, create_dispatcher(core)


async def run_bot(core: Optional[WalletCore] = None) -> None:
    """Run the bot in polling mode."""
    # Configure logging - reduce noise from libraries
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiogram").setLevel(logging.INFO)

    logger.info("Starting Base Wallet bot...")

    core = core or create_core()
    bot, dp = create_bot(core)

    try:
        # Delete webhook if any and start polling
        await bot.delete_webhook(drop_pending_updates=True)
        logger.info("Starting polling...")
        await dp.start_polling(bot)
    finally:
        await bot.session.close()
        await core.aclose()


def main() -> None:
    """Entry point for bot-only mode."""
    asyncio.run(run_bot())


if __name__ == "__main__":
    main()
