"""Shared error reporting for command handlers."""

import logging

from aiogram.types import Message

from basewallet.bot.formatting import format_error
from basewallet.bot.parsing import CommandUsageError
from basewallet.errors import WalletCoreError

logger = logging.getLogger(__name__)


async def answer_error(message: Message, error: Exception, command: str) -> None:
    """Reply with a user-facing message for a failed command."""
    if isinstance(error, CommandUsageError):
        await message.answer(str(error))
        return
    if isinstance(error, WalletCoreError):
        logger.info(f"/{command} failed: {type(error).__name__}: {error}")
    else:
        logger.error(f"/{command} failed unexpectedly: {type(error).__name__}: {error}", exc_info=error)
    await message.answer(format_error(error))
