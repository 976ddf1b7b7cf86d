"""Quote, price and token info handlers."""

import logging

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from basewallet.bot.formatting import format_price, format_quote, format_token
from basewallet.bot.handlers.common import answer_error
from basewallet.bot.parsing import (
    PRICE_USAGE,
    TOKEN_USAGE,
    parse_buy_args,
    parse_quote_args,
    parse_single_arg,
)
from basewallet.core import WalletCore

logger = logging.getLogger(__name__)

router = Router()


@router.message(Command("quote"))
async def cmd_quote(message: Message, command: CommandObject, core: WalletCore) -> None:
    """Exact-input quote: /quote 0.1 ETH USDC [0.5%]."""
    try:
        request = parse_quote_args(command.args)
        quote = await core.quote_exact_input(
            request.token_in,
            request.token_out,
            request.amount,
            slippage_tolerance=request.slippage,
            deadline=core.new_deadline("quote"),
        )
    except Exception as e:
        await answer_error(message, e, "quote")
        return

    await message.answer(format_quote(quote))


@router.message(Command("buy"))
async def cmd_buy(message: Message, command: CommandObject, core: WalletCore) -> None:
    """Exact-output quote: /buy 1000 PUMP 0.05 [ETH] [1%]."""
    try:
        request = parse_buy_args(command.args)
        quote = await core.quote_exact_output(
            request.token_in,
            request.token_out,
            request.amount_out,
            max_amount_in=request.max_amount_in,
            slippage_tolerance=request.slippage,
            deadline=core.new_deadline("buy quote"),
        )
    except Exception as e:
        await answer_error(message, e, "buy")
        return

    await message.answer(format_quote(quote))


@router.message(Command("price"))
async def cmd_price(message: Message, command: CommandObject, core: WalletCore) -> None:
    """USD price of a token."""
    try:
        symbol = parse_single_arg(command.args, PRICE_USAGE)
        deadline = core.new_deadline("price")
        token = await core.resolve_token(symbol, deadline=deadline)
        price = await core.oracle.price_of(token, deadline=deadline)
    except Exception as e:
        await answer_error(message, e, "price")
        return

    await message.answer(format_price(token, price))


@router.message(Command("token"))
async def cmd_token(message: Message, command: CommandObject, core: WalletCore) -> None:
    """Token details by symbol or contract address."""
    try:
        value = parse_single_arg(command.args, TOKEN_USAGE)
        token = await core.resolve_token(value, deadline=core.new_deadline("token lookup"))
    except Exception as e:
        await answer_error(message, e, "token")
        return

    await message.answer(format_token(token))
