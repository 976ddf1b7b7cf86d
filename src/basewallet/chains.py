"""Base (chain id 8453) contract addresses used by the wallet core.

Tokens, curated pools and routing preferences. Addresses are written in
checksum form; Token normalizes them again on construction.
"""

from dataclasses import dataclass

BASE_CHAIN_ID = 8453

# ======================
# Tokens
# ======================

NATIVE = "0x0000000000000000000000000000000000000000"
WETH = "0x4200000000000000000000000000000000000006"
USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
USDBC = "0xd9aAEc86B65D86f6A7B5B1b0c42FFA531710b6CA"
CBETH = "0x2Ae3F1Ec7F1F5012CFEab0185bfc7aa3cf0DEc22"
PUMP = "0x32c43d8D7245924f9232D69200fbE139aC05227B"
ENB = "0xF73978B3A7D1d4974abAE11f696c1b4408c027A0"


@dataclass(frozen=True)
class TokenSpec:
    """Static description of a built-in token."""

    symbol: str
    address: str
    decimals: int
    name: str


BASE_TOKEN_SPECS: tuple[TokenSpec, ...] = (
    TokenSpec("ETH", NATIVE, 18, "Ethereum"),
    TokenSpec("WETH", WETH, 18, "Wrapped Ether"),
    TokenSpec("USDC", USDC, 6, "USD Coin"),
    TokenSpec("USDbC", USDBC, 6, "USD Base Coin"),
    TokenSpec("cbETH", CBETH, 18, "Coinbase Wrapped Staked ETH"),
    TokenSpec("PUMP", PUMP, 18, "PUMP"),
    TokenSpec("ENB", ENB, 18, "Everybody Needs Base"),
)

# ======================
# Pools (Uniswap V3)
# ======================

# WETH/USDC 0.05%, the reference ETH/USD price source
WETH_USDC_POOL = "0xFb53Fe0c27ABEF48602cCA25be1314D8f94Af9E6"

# Curated pools for pairs whose factory derivation is unreliable
PUMP_WETH_POOL = "0x47eDbFC8E489eD5C7eb2b7b8E7a5e32dc2Aec515"
ENB_WETH_POOL = "0xfAB2F613D2b4c43AE304860f759575359EaC0566"

# Intermediate tokens for two-hop routes, in order of preference
ROUTING_TOKENS: tuple[str, ...] = (WETH, USDC)
