"""Portfolio handler."""

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from basewallet.bot.formatting import format_portfolio
from basewallet.bot.handlers.common import answer_error
from basewallet.bot.parsing import PORTFOLIO_USAGE, parse_single_arg
from basewallet.core import WalletCore

router = Router()


@router.message(Command("portfolio"))
async def cmd_portfolio(message: Message, command: CommandObject, core: WalletCore) -> None:
    """Non-zero balances of an address with USD values."""
    try:
        address = parse_single_arg(command.args, PORTFOLIO_USAGE)
        balances = await core.all_balances(address, deadline=core.new_deadline("portfolio"))
    except Exception as e:
        await answer_error(message, e, "portfolio")
        return

    await message.answer(format_portfolio(address, balances))
