"""Minimal ABI encoding for the contract reads the core performs.

Only the handful of view functions we call are described here; calldata is
built from 4-byte selectors plus eth_abi-encoded arguments, and return data is
decoded with eth_abi.
"""

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak, to_bytes, to_checksum_address

from basewallet.errors import ContractCallError

NATIVE_ADDRESS = "0x0000000000000000000000000000000000000000"


def selector(signature: str) -> bytes:
    """4-byte function selector for a canonical signature like ``slot0()``."""
    return keccak(text=signature)[:4]


# Pool (Uniswap V3)
SLOT0 = selector("slot0()")
LIQUIDITY = selector("liquidity()")
TOKEN0 = selector("token0()")
TOKEN1 = selector("token1()")
FEE = selector("fee()")

# ERC-20
DECIMALS = selector("decimals()")
SYMBOL = selector("symbol()")
NAME = selector("name()")
BALANCE_OF = selector("balanceOf(address)")


def encode_call(function_selector: bytes, types: list[str] = (), args: list = ()) -> bytes:
    """Build calldata: selector followed by ABI-encoded arguments."""
    if not types:
        return function_selector
    return function_selector + encode(list(types), list(args))


def encode_balance_of(owner: str) -> bytes:
    return encode_call(BALANCE_OF, ["address"], [to_checksum_address(owner)])


def _decode(types: list[str], data: bytes, what: str) -> tuple:
    if not data:
        raise ContractCallError(f"{what}: empty return data")
    try:
        return decode(types, data)
    except (DecodingError, OverflowError, ValueError) as e:
        raise ContractCallError(f"{what}: cannot decode return data ({e})")


def decode_uint(data: bytes, what: str = "uint") -> int:
    return _decode(["uint256"], data, what)[0]


def decode_address(data: bytes, what: str = "address") -> str:
    return to_checksum_address(_decode(["address"], data, what)[0])


def decode_slot0(data: bytes) -> tuple[int, int]:
    """Return (sqrtPriceX96, tick).

    Only the first two words are decoded; forks differ in the trailing fields.
    """
    if len(data) < 64:
        raise ContractCallError(f"slot0: short return data ({len(data)} bytes)")
    sqrt_price_x96, tick = _decode(["uint160", "int24"], data[:64], "slot0")
    return sqrt_price_x96, tick


def decode_string(data: bytes, what: str = "string") -> str:
    """Decode an ERC-20 string field, accepting legacy bytes32 encodings."""
    if len(data) == 32:
        return data.rstrip(b"\x00").decode("utf-8", errors="replace")
    return _decode(["string"], data, what)[0]


def compute_pool_address(factory: str, token_a: str, token_b: str, fee: int, init_code_hash: str) -> str:
    """Deterministic CREATE2 address of a V3 pool.

    salt = keccak(abi.encode(token0, token1, fee)) with tokens sorted by address.
    """
    token0, token1 = sorted([token_a, token_b], key=lambda a: a.lower())
    salt = keccak(
        encode(
            ["address", "address", "uint24"],
            [to_checksum_address(token0), to_checksum_address(token1), fee],
        )
    )
    packed = b"\xff" + to_bytes(hexstr=factory) + salt + to_bytes(hexstr=init_code_hash)
    return to_checksum_address(keccak(packed)[12:])
