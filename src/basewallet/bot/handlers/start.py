"""Start and help command handlers."""

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from basewallet.core import WalletCore

router = Router()

HELP_TEXT = """Base Wallet Commands

Prices & Tokens:
  /price <token>      - USD price (e.g. /price ETH)
  /token <token>      - Token details by symbol or address

Swap Quotes:
  /quote <amount> <from> <to> [slippage%]
              Example: /quote 0.1 ETH USDC 0.5%
  /buy <amount> <token> <max_in> [pay_token=ETH] [slippage%]
              Example: /buy 1000 PUMP 0.05 ETH 1%

Portfolio:
  /portfolio <address> - Token balances with USD values

Quotes are computed from Uniswap V3 pools on Base and are not executed."""


@router.message(CommandStart())
async def cmd_start(message: Message, core: WalletCore) -> None:
    """Handle /start command - show welcome."""
    first_name = message.from_user.first_name if message.from_user else None
    symbols = ", ".join(core.registry.supported_symbols)

    welcome_text = f"""Welcome to Base Wallet, {first_name or 'there'}!

Swap quotes, prices and balances on Base, straight from Uniswap V3 pools.

Supported tokens:
{symbols}
(any other ERC-20 works by contract address)

Type /help for commands."""

    await message.answer(welcome_text)


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    """Handle /help command."""
    await message.answer(HELP_TEXT)
