"""Error taxonomy for the wallet core.

Every failure the core can report to a caller derives from WalletCoreError.
Surfaces (bot, API) present ``user_message``; the other attributes carry the
structured details a caller needs to offer alternatives.
"""

from decimal import Decimal
from typing import Optional


class WalletCoreError(Exception):
    """Base class for typed wallet core failures."""

    @property
    def user_message(self) -> str:
        return str(self)


class UnsupportedTokenError(WalletCoreError):
    """Symbol or address could not be resolved to a token."""

    def __init__(self, token: str, supported: Optional[list[str]] = None, reason: str = ""):
        self.token = token
        self.supported = supported or []
        self.reason = reason
        message = f"Unsupported token: {token}"
        if reason:
            message = f"{message} ({reason})"
        if self.supported:
            message = f"{message}\nSupported tokens: {', '.join(self.supported)}"
        super().__init__(message)


class NoRouteError(WalletCoreError):
    """No direct or two-hop pool with liquidity connects the pair."""

    def __init__(self, token_in: str, token_out: str, reason: str = ""):
        self.token_in = token_in
        self.token_out = token_out
        message = f"No liquidity route found for {token_in} -> {token_out}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InsufficientLiquidityError(WalletCoreError):
    """Exact-output trade cannot be filled within the caller's budget.

    ``required_input`` is None when the pools cannot supply the requested
    output at any price. ``achievable_output`` is the exact-input result for
    ``max_input`` over the same route, when it could be computed.
    """

    def __init__(
        self,
        message: str,
        token_in: Optional[str] = None,
        token_out: Optional[str] = None,
        required_input: Optional[Decimal] = None,
        max_input: Optional[Decimal] = None,
        achievable_output: Optional[Decimal] = None,
    ):
        self.token_in = token_in
        self.token_out = token_out
        self.required_input = required_input
        self.max_input = max_input
        self.achievable_output = achievable_output
        super().__init__(message)

    @property
    def shortfall_ratio(self) -> Optional[Decimal]:
        """Fraction of the required input covered by the budget (max / required)."""
        if not self.required_input or self.max_input is None:
            return None
        return self.max_input / self.required_input

    @property
    def user_message(self) -> str:
        if self.required_input is None or self.max_input is None:
            return str(self)
        text = (
            f"Price too high. Required: {self.required_input} {self.token_in}, "
            f"maximum: {self.max_input} {self.token_in}."
        )
        if self.achievable_output is not None:
            text += (
                f"\nWith {self.max_input} {self.token_in} you could get approximately "
                f"{self.achievable_output} {self.token_out}."
            )
        return text


class RpcError(WalletCoreError):
    """JSON-RPC level failure returned by the node (or an HTTP error status)."""

    RATE_LIMIT_CODES = frozenset({-32016, -32005, 429})
    NON_RETRYABLE_CODES = frozenset({-32601, -32602})

    def __init__(self, code: Optional[int], message: str, http_status: Optional[int] = None):
        self.code = code
        self.http_status = http_status
        super().__init__(f"RPC error {code}: {message}" if code is not None else message)

    @property
    def is_rate_limit(self) -> bool:
        return self.code in self.RATE_LIMIT_CODES or self.http_status == 429

    @property
    def is_retryable(self) -> bool:
        return self.code not in self.NON_RETRYABLE_CODES


class ContractCallError(RpcError):
    """Call reverted or returned data that does not decode as expected."""

    def __init__(self, message: str, code: Optional[int] = 3):
        super().__init__(code, message)

    @property
    def is_retryable(self) -> bool:
        return False


class ProviderError(WalletCoreError):
    """Chain read failed after all retry attempts."""

    def __init__(self, operation: str, attempts: int, original: Optional[BaseException] = None):
        self.operation = operation
        self.attempts = attempts
        self.original = original
        detail = f": {type(original).__name__}: {original}" if original else ""
        super().__init__(f"{operation} failed after {attempts} attempt(s){detail}")

    @property
    def user_message(self) -> str:
        return "Network is not responding right now. Please try again in a moment."


class ZeroAmountError(WalletCoreError, ValueError):
    """Requested amount is zero or negative."""

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Amount must be greater than 0 (got {amount})")


class InvalidAmountError(WalletCoreError, ValueError):
    """Amount is not a number or has more decimals than the token supports."""


class InvalidSlippageError(WalletCoreError, ValueError):
    """Slippage tolerance outside [0, 100)."""


class InvalidAddressError(WalletCoreError, ValueError):
    """Value is not a well-formed EVM address."""


class QuoteComputationError(WalletCoreError):
    """Pool math produced an impossible result (e.g. zero required input)."""


class DeadlineExceededError(WalletCoreError):
    """Caller's deadline elapsed or the operation was cancelled."""

    @property
    def user_message(self) -> str:
        return "Request timed out. Please try again."
