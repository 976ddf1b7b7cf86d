"""Tests for bot command parsing, formatting and handlers."""

from decimal import Decimal

import pytest
from aiogram.filters import CommandObject

from basewallet.bot.bot import create_bot
from basewallet.bot.formatting import (
    GENERIC_ERROR,
    format_amount,
    format_error,
    format_percent,
    format_portfolio,
    format_price,
    format_quote,
    format_usd,
)
from basewallet.bot.handlers.portfolio import cmd_portfolio
from basewallet.bot.handlers.quotes import cmd_buy, cmd_price, cmd_quote, cmd_token
from basewallet.bot.handlers.start import HELP_TEXT, cmd_help
from basewallet.bot.parsing import (
    BUY_USAGE,
    QUOTE_USAGE,
    CommandUsageError,
    parse_buy_args,
    parse_quote_args,
    parse_single_arg,
)
from basewallet.errors import ProviderError
from basewallet.pools import FeeTier
from basewallet.services import TokenBalance

OWNER = "0x000000000000000000000000000000000000dEaD"


class FakeMessage:
    """Collects replies instead of sending them."""

    def __init__(self):
        self.from_user = None
        self.answers = []

    async def answer(self, text, **kwargs):
        self.answers.append(text)


def command(name, args=None):
    return CommandObject(prefix="/", command=name, args=args)


@pytest.fixture
def cbeth_weth(chain, tokens):
    return chain.add_pool(tokens["CBETH"], tokens["WETH"], FeeTier.MEDIUM, Decimal(1), liquidity=1000 * 10**18)


class TestParsing:
    """Tests for command argument parsing."""

    def test_quote_args(self):
        request = parse_quote_args("0.1 ETH USDC")
        assert request.amount == Decimal("0.1")
        assert (request.token_in, request.token_out) == ("ETH", "USDC")
        assert request.slippage is None

    def test_quote_slippage_percent(self):
        assert parse_quote_args("1,000 USDC ETH 0.5%").slippage == Decimal("0.5")
        assert parse_quote_args("1,000 USDC ETH 0.5%").amount == Decimal(1000)

    @pytest.mark.parametrize("args", [None, "", "1 ETH", "1 ETH USDC 1 extra"])
    def test_quote_wrong_arity(self, args):
        with pytest.raises(CommandUsageError) as exc_info:
            parse_quote_args(args)
        assert str(exc_info.value) == QUOTE_USAGE

    @pytest.mark.parametrize("amount", ["abc", "0", "-2", "NaN"])
    def test_quote_bad_amount(self, amount):
        with pytest.raises(CommandUsageError) as exc_info:
            parse_quote_args(f"{amount} ETH USDC")
        assert exc_info.value.usage == QUOTE_USAGE
        assert exc_info.value.detail

    def test_quote_bad_slippage(self):
        with pytest.raises(CommandUsageError):
            parse_quote_args("1 ETH USDC 150%")

    def test_buy_defaults_to_eth(self):
        request = parse_buy_args("1000 PUMP 0.05")
        assert request.token_in == "ETH"
        assert request.token_out == "PUMP"
        assert request.max_amount_in == Decimal("0.05")
        assert request.slippage is None

    def test_buy_numeric_fourth_arg_is_slippage(self):
        request = parse_buy_args("1000 PUMP 0.05 1%")
        assert request.token_in == "ETH"
        assert request.slippage == Decimal(1)

    def test_buy_pay_token_and_slippage(self):
        request = parse_buy_args("1000 PUMP 150 USDC 2")
        assert request.token_in == "USDC"
        assert request.slippage == Decimal(2)

    def test_buy_wrong_arity(self):
        with pytest.raises(CommandUsageError) as exc_info:
            parse_buy_args("1000 PUMP")
        assert str(exc_info.value) == BUY_USAGE

    def test_single_arg(self):
        assert parse_single_arg(" ETH ", "usage") == "ETH"
        with pytest.raises(CommandUsageError):
            parse_single_arg("ETH USDC", "usage")


class TestFormatting:
    """Tests for reply formatting."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal(0), "0"),
            (Decimal("1234.5"), "1,234.5"),
            (Decimal("2.000000"), "2"),
            (Decimal("0.5"), "0.5"),
            (Decimal("0.000123456"), "0.0001235"),
        ],
    )
    def test_format_amount(self, value, expected):
        assert format_amount(value) == expected

    def test_format_usd(self):
        assert format_usd(Decimal(0)) == "$0.00"
        assert format_usd(Decimal("3000")) == "$3,000.00"
        assert format_usd(Decimal("0.003")) == "$0.003"

    def test_format_percent(self):
        assert format_percent(Decimal("0.3")) == "0.3%"
        assert format_percent(Decimal("1.05")) == "1.05%"

    def test_price_unavailable(self, tokens):
        assert format_price(tokens["ENB"], Decimal(0)) == "ENB: price unavailable"
        assert format_price(tokens["USDC"], Decimal(1)) == "USDC: $1.00"

    def test_portfolio(self, tokens):
        balances = [
            TokenBalance("ETH", Decimal("1.5"), 15 * 10**17, Decimal(4500), tokens["ETH"]),
            TokenBalance("ENB", Decimal(10), 10 * 10**18, Decimal(0), tokens["ENB"]),
        ]
        text = format_portfolio(OWNER, balances)
        assert "ETH: 1.5 ($4,500.00)" in text
        assert "ENB: 10 (n/a)" in text
        assert text.endswith("Total: $4,500.00")

    def test_empty_portfolio(self):
        assert "No token balances found." in format_portfolio(OWNER, [])

    def test_format_error(self):
        assert format_error(ProviderError("eth_call", 3)).startswith("Network is not responding")
        assert format_error(RuntimeError("boom")) == GENERIC_ERROR

    @pytest.mark.asyncio
    async def test_exact_input_quote(self, core, cbeth_weth):
        quote = await core.quote_exact_input("cbETH", "WETH", "1")
        text = format_quote(quote)

        assert text.startswith("Quote: 1 cbETH -> WETH")
        assert "Pool fee: 0.3%" in text
        assert "Route: cbETH -> WETH" in text
        assert "Warning" not in text

    @pytest.mark.asyncio
    async def test_exact_output_quote(self, core, cbeth_weth):
        quote = await core.quote_exact_output("cbETH", "WETH", "1")
        text = format_quote(quote)

        assert text.startswith("Buy: 1 WETH with cbETH")
        assert "Maximum paid:" in text

    @pytest.mark.asyncio
    async def test_high_impact_warning(self, core, cbeth_weth):
        quote = await core.quote_exact_input("cbETH", "WETH", "100")
        assert "Warning: high price impact" in format_quote(quote)


class TestHandlers:
    """Tests for command handlers with an in-memory chain."""

    @pytest.mark.asyncio
    async def test_quote(self, core, cbeth_weth):
        message = FakeMessage()
        await cmd_quote(message, command("quote", "1 cbETH WETH 1%"), core)

        assert len(message.answers) == 1
        assert message.answers[0].startswith("Quote: 1 cbETH -> WETH")
        assert "Slippage tolerance: 1%" in message.answers[0]

    @pytest.mark.asyncio
    async def test_quote_usage(self, core):
        message = FakeMessage()
        await cmd_quote(message, command("quote"), core)
        assert message.answers == [QUOTE_USAGE]

    @pytest.mark.asyncio
    async def test_quote_unknown_token(self, core):
        message = FakeMessage()
        await cmd_quote(message, command("quote", "1 ETH NOPE"), core)
        assert message.answers[0].startswith("Unsupported token: NOPE")

    @pytest.mark.asyncio
    async def test_buy_shortfall(self, core, cbeth_weth):
        message = FakeMessage()
        await cmd_buy(message, command("buy", "1 WETH 0.5 cbETH"), core)

        assert message.answers[0].startswith("Price too high.")
        assert "you could get approximately" in message.answers[0]

    @pytest.mark.asyncio
    async def test_price(self, core, eth_usdc_pool):
        message = FakeMessage()
        await cmd_price(message, command("price", "ETH"), core)
        assert message.answers == ["ETH: $3,000.00"]

    @pytest.mark.asyncio
    async def test_price_network_failure(self, core, chain):
        chain.fail("get_code", ProviderError("eth_getCode", 3))
        message = FakeMessage()
        await cmd_price(message, command("price", "PUMP"), core)
        # Oracle degrades to the static price instead of failing
        assert message.answers == ["PUMP: price unavailable"]

    @pytest.mark.asyncio
    async def test_token(self, core):
        message = FakeMessage()
        await cmd_token(message, command("token", "eth"), core)
        assert message.answers[0].startswith("Ethereum (ETH)")
        assert "Native asset" in message.answers[0]

    @pytest.mark.asyncio
    async def test_portfolio(self, core, chain, tokens):
        chain.set_balance(tokens["USDC"], OWNER, 12_340_000)
        message = FakeMessage()
        await cmd_portfolio(message, command("portfolio", OWNER), core)

        assert "USDC: 12.34 ($12.34)" in message.answers[0]

    @pytest.mark.asyncio
    async def test_portfolio_invalid_address(self, core):
        message = FakeMessage()
        await cmd_portfolio(message, command("portfolio", "0x12"), core)
        assert message.answers == ["Invalid address: 0x12"]

    @pytest.mark.asyncio
    async def test_help(self):
        message = FakeMessage()
        await cmd_help(message)
        assert message.answers == [HELP_TEXT]

    def test_create_bot_requires_token(self, core):
        with pytest.raises(ValueError):
            create_bot(core)
