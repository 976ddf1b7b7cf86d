"""Command argument parsing for the bot.

Pure functions: they take the argument string of a command (aiogram's
``CommandObject.args``) and return a request object or raise CommandUsageError
carrying the usage text to show.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

QUOTE_USAGE = (
    "Usage: /quote <amount> <from> <to> [slippage%]\n"
    "Example: /quote 0.1 ETH USDC 0.5%"
)
BUY_USAGE = (
    "Usage: /buy <amount> <token> <max_in> [pay_token=ETH] [slippage%]\n"
    "Example: /buy 1000 PUMP 0.05 ETH 1%"
)
PRICE_USAGE = "Usage: /price <token>\nExample: /price ETH"
PORTFOLIO_USAGE = "Usage: /portfolio <address>"
TOKEN_USAGE = "Usage: /token <symbol or address>"


class CommandUsageError(ValueError):
    """Arguments do not match the command's usage."""

    def __init__(self, usage: str, detail: str = ""):
        self.usage = usage
        self.detail = detail
        super().__init__(f"{detail}\n\n{usage}" if detail else usage)


@dataclass(frozen=True)
class QuoteRequest:
    amount: Decimal
    token_in: str
    token_out: str
    slippage: Optional[Decimal] = None


@dataclass(frozen=True)
class BuyRequest:
    amount_out: Decimal
    token_out: str
    max_amount_in: Decimal
    token_in: str = "ETH"
    slippage: Optional[Decimal] = None


def split_args(args: Optional[str]) -> list[str]:
    return args.split() if args else []


def parse_amount(value: str, usage: str) -> Decimal:
    try:
        amount = Decimal(value.replace(",", ""))
    except InvalidOperation:
        raise CommandUsageError(usage, f"Invalid amount: {value}")
    if not amount.is_finite() or amount <= 0:
        raise CommandUsageError(usage, "Amount must be a positive number.")
    return amount


def is_slippage(value: str) -> bool:
    """True for "1%", "0.5" and similar numeric tokens."""
    try:
        Decimal(value.rstrip("%"))
    except InvalidOperation:
        return False
    return True


def parse_slippage(value: str, usage: str) -> Decimal:
    """Slippage in percent: "0.5%" or "0.5" -> Decimal("0.5")."""
    try:
        slippage = Decimal(value.rstrip("%"))
    except InvalidOperation:
        raise CommandUsageError(usage, f"Invalid slippage: {value}")
    if not slippage.is_finite() or slippage < 0 or slippage >= 100:
        raise CommandUsageError(usage, "Slippage must be between 0% and 100%.")
    return slippage


def parse_quote_args(args: Optional[str]) -> QuoteRequest:
    """``<amount> <from> <to> [slippage%]``."""
    parts = split_args(args)
    if len(parts) not in (3, 4):
        raise CommandUsageError(QUOTE_USAGE)

    amount = parse_amount(parts[0], QUOTE_USAGE)
    slippage = parse_slippage(parts[3], QUOTE_USAGE) if len(parts) == 4 else None
    return QuoteRequest(amount=amount, token_in=parts[1], token_out=parts[2], slippage=slippage)


def parse_buy_args(args: Optional[str]) -> BuyRequest:
    """``<amount> <token> <max_in> [pay_token] [slippage%]``.

    A fourth argument that looks numeric is taken as the slippage.
    """
    parts = split_args(args)
    if len(parts) not in (3, 4, 5):
        raise CommandUsageError(BUY_USAGE)

    amount_out = parse_amount(parts[0], BUY_USAGE)
    max_in = parse_amount(parts[2], BUY_USAGE)
    token_in = "ETH"
    slippage = None

    extra = parts[3:]
    if len(extra) == 2:
        token_in = extra[0]
        slippage = parse_slippage(extra[1], BUY_USAGE)
    elif len(extra) == 1:
        if is_slippage(extra[0]):
            slippage = parse_slippage(extra[0], BUY_USAGE)
        else:
            token_in = extra[0]

    return BuyRequest(
        amount_out=amount_out,
        token_out=parts[1],
        max_amount_in=max_in,
        token_in=token_in,
        slippage=slippage,
    )


def parse_single_arg(args: Optional[str], usage: str) -> str:
    parts = split_args(args)
    if len(parts) != 1:
        raise CommandUsageError(usage)
    return parts[0]
