"""Main entry point - serves the HTTP API and the Telegram bot from one WalletCore."""

import asyncio
import logging
import signal
from typing import Optional

import uvicorn
from aiogram import Bot, Dispatcher

from basewallet.api.app import create_app
from basewallet.bot.bot import create_bot
from basewallet.config import Settings, get_settings
from basewallet.core import WalletCore, create_core
from basewallet.errors import WalletCoreError

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Per-request client logs drown out the core's own messages
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiogram").setLevel(logging.INFO)


class Application:
    """Owns the shared WalletCore and the surfaces built on it.

    The API always runs; the bot runs only when a Telegram token is
    configured. Both stop when ``shutdown`` is called.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.core: Optional[WalletCore] = None
        self.bot: Optional[Bot] = None
        self.dp: Optional[Dispatcher] = None
        self.server: Optional[uvicorn.Server] = None
        self._stop = asyncio.Event()

    async def run(self) -> None:
        logger.info(f"Starting Base Wallet ({self.settings.environment})")
        self.core = create_core(self.settings)
        await self._probe_chain()

        services = [asyncio.create_task(self._serve_api(), name="api")]
        if self.settings.telegram_bot_token:
            self.bot, self.dp = create_bot(self.core)
            services.append(asyncio.create_task(self._poll_bot(), name="bot"))
        else:
            logger.warning("TELEGRAM_BOT_TOKEN not set - bot disabled")

        stop = asyncio.create_task(self._stop.wait(), name="stop")
        try:
            # A service that exits on its own brings the application down too
            done, _ = await asyncio.wait([stop, *services], return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if task is not stop and task.exception():
                    logger.error(f"{task.get_name()} stopped with an error: {task.exception()}")
        finally:
            await self._stop_services(services)
            stop.cancel()
            await self.core.aclose()
            logger.info("Base Wallet stopped")

    async def _probe_chain(self) -> None:
        """Log whether the RPC endpoint answers for the configured chain."""
        try:
            health = await self.core.check_health(deadline=self.core.new_deadline("startup probe"))
        except WalletCoreError as e:
            logger.warning(f"RPC endpoint not reachable at startup: {e}")
            return
        if health["chain_ok"]:
            logger.info(f"Connected to chain {health['chain_id']}")
        else:
            logger.error(
                f"RPC endpoint reports chain {health['chain_id']}, "
                f"expected {health['expected_chain_id']}"
            )

    async def _serve_api(self) -> None:
        config = uvicorn.Config(
            create_app(self.core),
            host=self.settings.api_host,
            port=self.settings.api_port,
            log_level="debug" if self.settings.debug else "info",
        )
        self.server = uvicorn.Server(config)
        logger.info(f"API listening on {self.settings.api_host}:{self.settings.api_port}")
        await self.server.serve()

    async def _poll_bot(self) -> None:
        await self.bot.delete_webhook(drop_pending_updates=True)
        logger.info("Bot polling started")
        await self.dp.start_polling(self.bot, handle_signals=False)

    async def _stop_services(self, services: list[asyncio.Task]) -> None:
        if self.server is not None:
            self.server.should_exit = True
            await asyncio.wait(services, timeout=5)

        for task in services:
            if not task.done():
                task.cancel()
        await asyncio.gather(*services, return_exceptions=True)

        if self.bot is not None:
            await self.bot.session.close()

    def shutdown(self) -> None:
        logger.info("Shutdown requested")
        self._stop.set()


async def _main() -> None:
    settings = get_settings()
    configure_logging(settings)

    app = Application(settings)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, app.shutdown)

    await app.run()


def main() -> None:
    """Run API and bot until SIGINT/SIGTERM."""
    asyncio.run(_main())


if __name__ == "__main__":
    main()
