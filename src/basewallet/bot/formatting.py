"""Message formatting for bot replies (plain text, no keyboards)."""

from decimal import Decimal

from basewallet.errors import WalletCoreError
from basewallet.routing.base import Quote, TradeType
from basewallet.services.balances import TokenBalance
from basewallet.tokens.registry import Token

GENERIC_ERROR = "Something went wrong. Please try again later."


def format_amount(value: Decimal, places: int = 6) -> str:
    """Human amount: grouped thousands, trailing zeros trimmed.

    Values below 1 keep four significant digits.
    """
    if value == 0:
        return "0"
    if abs(value) >= 1:
        text = f"{value:,.{places}f}"
    else:
        digits = max(places, -value.adjusted() + 3)
        text = f"{value:.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_usd(value: Decimal) -> str:
    if value == 0:
        return "$0.00"
    if abs(value) < Decimal("0.01"):
        return f"${format_amount(value)}"
    return f"${value:,.2f}"


def format_percent(value: Decimal) -> str:
    return f"{format_amount(value, places=2)}%"


def format_quote(quote: Quote) -> str:
    """Reply for /quote and /buy."""
    tin = quote.token_in.symbol
    tout = quote.token_out.symbol

    if quote.trade_type == TradeType.EXACT_INPUT:
        lines = [
            f"Quote: {format_amount(quote.amount_in)} {tin} -> {tout}",
            "",
            f"You receive: ~{format_amount(quote.expected_output)} {tout}",
            f"Minimum received: {format_amount(quote.minimum_output)} {tout}",
        ]
    else:
        lines = [
            f"Buy: {format_amount(quote.expected_output)} {tout} with {tin}",
            "",
            f"You pay: ~{format_amount(quote.amount_in)} {tin}",
            f"Maximum paid: {format_amount(quote.maximum_input)} {tin}",
        ]

    lines += [
        f"Rate: 1 {tin} = {format_amount(quote.effective_rate)} {tout}",
        f"Price impact: {format_percent(quote.price_impact)}",
        f"Pool fee: {format_percent(quote.fee)}",
        f"Slippage tolerance: {format_percent(quote.slippage_tolerance)}",
        f"Route: {' -> '.join(quote.route.symbols)}",
    ]
    if quote.price_impact >= Decimal("5"):
        lines += ["", "Warning: high price impact for this size."]
    return "\n".join(lines)


def format_price(token: Token, price: Decimal) -> str:
    if price == 0:
        return f"{token.symbol}: price unavailable"
    return f"{token.symbol}: {format_usd(price)}"


def format_token(token: Token) -> str:
    lines = [
        f"{token.name} ({token.symbol})",
        f"Address: {token.address}",
        f"Decimals: {token.decimals}",
    ]
    if token.is_native:
        lines.append(f"Native asset; pools use wrapped {token.pool_address}")
    return "\n".join(lines)


def format_portfolio(address: str, balances: list[TokenBalance]) -> str:
    if not balances:
        return f"Portfolio {address}\n\nNo token balances found."

    lines = [f"Portfolio {address}", ""]
    total = Decimal(0)
    for item in balances:
        total += item.usd_value
        value = format_usd(item.usd_value) if item.usd_value else "n/a"
        lines.append(f"{item.symbol}: {format_amount(item.balance)} ({value})")
    lines += ["", f"Total: {format_usd(total)}"]
    return "\n".join(lines)


def format_error(error: BaseException) -> str:
    """User-facing text for a failed command."""
    if isinstance(error, WalletCoreError):
        return error.user_message
    return GENERIC_ERROR
