"""SwapRouter02 calldata for quoted routes.

Path bytes: tokenA (20) + fee (3) + tokenB (20) [+ fee (3) + tokenC (20)].
Exact-output paths are encoded output token first.
"""

from eth_abi import encode
from eth_utils import to_bytes, to_checksum_address

from basewallet.chain.abi import selector
from basewallet.errors import InvalidAddressError
from basewallet.routing.base import Quote, TradeType
from basewallet.tokens.registry import Token

# SwapRouter02 structs carry no deadline field
EXACT_INPUT = selector("exactInput((bytes,address,uint256,uint256))")
EXACT_OUTPUT = selector("exactOutput((bytes,address,uint256,uint256))")


def encode_path(tokens: list[str], fees: list[int]) -> bytes:
    """Canonical V3 path: token (20) + fee (3) + token (20) + ..."""
    if len(tokens) != len(fees) + 1:
        raise ValueError("Path needs exactly one more token than fees")
    out = to_bytes(hexstr=to_checksum_address(tokens[0]))
    for fee, token in zip(fees, tokens[1:]):
        out += int(fee).to_bytes(3, "big")
        out += to_bytes(hexstr=to_checksum_address(token))
    return out


def route_path(path: tuple[Token, ...], fees: list[int], trade_type: TradeType) -> bytes:
    """Encoded path for a route, reversed for exact output."""
    addresses = [token.pool_address for token in path]
    if trade_type == TradeType.EXACT_OUTPUT:
        return encode_path(addresses[::-1], fees[::-1])
    return encode_path(addresses, fees)


def build_swap_transaction(quote: Quote, recipient: str) -> dict:
    """Unsigned router transaction ``{to, data, value}`` for a quote.

    Args:
        quote: Quote from the quote engine
        recipient: Address receiving the output tokens

    Returns:
        Transaction dict; ``value`` is non-zero only for a native input
    """
    try:
        recipient = to_checksum_address(recipient)
    except ValueError:
        raise InvalidAddressError(f"Invalid recipient address: {recipient}")

    params = quote.swap_params
    if quote.trade_type == TradeType.EXACT_INPUT:
        # (path, recipient, amountIn, amountOutMinimum)
        function_selector = EXACT_INPUT
        amounts = (params.amount_in, params.amount_out)
    else:
        # (path, recipient, amountOut, amountInMaximum)
        function_selector = EXACT_OUTPUT
        amounts = (params.amount_out, params.amount_in)

    data = function_selector + encode(
        ["(bytes,address,uint256,uint256)"],
        [(params.path, recipient, *amounts)],
    )

    return {
        "to": params.router,
        "data": "0x" + data.hex(),
        "value": params.value if quote.token_in.is_native else 0,
    }
