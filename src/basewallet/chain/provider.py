"""Chain data provider: JSON-RPC reads with a single retry policy.

All contract state the core needs (pool slot0/liquidity/tokens/fee, ERC-20
metadata and balances, native balances, deployed code) is read through
ChainDataProvider. Each read is one logical operation executed by ``call``:

- up to ``max_attempts`` attempts against the current connection
- fixed delay between ordinary failures, doubled and growing with the attempt
  number when the node reports a rate limit (error code in the response body
  or HTTP 429)
- connectivity failures trigger an ``eth_chainId`` health probe before the
  next attempt; a failing probe swaps in a fresh connection
- reverts and undecodable return data are not retried

Related reads (e.g. the five fields of a pool) go out as one JSON-RPC batch.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import httpx
from eth_utils import to_bytes, to_checksum_address

from basewallet.chain import abi
from basewallet.errors import ContractCallError, ProviderError, RpcError
from basewallet.utils.deadline import Deadline

logger = logging.getLogger(__name__)

T = TypeVar("T")

# JSON-RPC error code for "execution reverted"
REVERT_CODE = 3
# Generic server error; geth-style nodes report data-less reverts under it
SERVER_ERROR_CODE = -32000


@dataclass(frozen=True)
class PoolState:
    """Raw on-chain state of a V3 pool, as read in one batch."""

    address: str
    token0: str
    token1: str
    fee: int
    sqrt_price_x96: int
    tick: int
    liquidity: int


@dataclass(frozen=True)
class TokenMetadata:
    """ERC-20 metadata read from the token contract."""

    address: str
    symbol: str
    decimals: int
    name: str


class RpcConnection:
    """One HTTP JSON-RPC connection (an httpx.AsyncClient) to the node.

    A retired connection accepts no new requests and closes its client once
    the requests already in flight have finished.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)
        self._in_flight = 0
        self._retired = False

    @property
    def retired(self) -> bool:
        return self._retired

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def request(self, method: str, params: list) -> Any:
        """Send a single JSON-RPC request and return its ``result``."""
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        body = await self._post(payload)
        if not isinstance(body, dict):
            raise RpcError(None, f"{method}: unexpected response shape")
        return _unwrap(body, method)

    async def batch(self, calls: list[tuple[str, list]]) -> list[Union[Any, RpcError]]:
        """Send a JSON-RPC batch.

        Returns one entry per call, in call order: the ``result`` value, or an
        RpcError instance for elements the node answered with an error.
        """
        first_id = next(self._ids)
        ids = [first_id] + [next(self._ids) for _ in calls[1:]]
        payload = [
            {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}
            for request_id, (method, params) in zip(ids, calls)
        ]
        body = await self._post(payload)

        if isinstance(body, dict):
            # Some nodes answer a whole batch with a single error object
            _unwrap(body, "batch")
            raise RpcError(None, "batch: expected a list response")

        by_id = {item.get("id"): item for item in body if isinstance(item, dict)}
        results: list[Union[Any, RpcError]] = []
        for request_id, (method, _) in zip(ids, calls):
            item = by_id.get(request_id)
            if item is None:
                results.append(RpcError(None, f"{method}: missing from batch response"))
                continue
            try:
                results.append(_unwrap(item, method))
            except RpcError as e:
                results.append(e)
        return results

    async def _post(self, payload: Union[dict, list]) -> Any:
        if self._retired or self._client.is_closed:
            raise httpx.ConnectError("RPC connection has been retired")

        self._in_flight += 1
        try:
            response = await self._client.post(self.url, json=payload)
        finally:
            self._in_flight -= 1
            if self._retired and self._in_flight == 0:
                await self._client.aclose()

        if response.status_code == 429:
            raise RpcError(429, "rate limited", http_status=429)
        if response.status_code >= 400:
            # JSON-RPC errors may still be in the body
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                _unwrap(body, "request", http_status=response.status_code)
            raise RpcError(None, f"HTTP {response.status_code}", http_status=response.status_code)

        try:
            return response.json()
        except ValueError:
            raise RpcError(None, "invalid JSON in RPC response", http_status=response.status_code)

    async def retire(self) -> None:
        """Stop accepting requests; close once in-flight requests drain."""
        self._retired = True
        if self._in_flight == 0:
            await self._client.aclose()

    async def aclose(self) -> None:
        self._retired = True
        await self._client.aclose()


def _unwrap(body: dict, method: str, http_status: Optional[int] = None) -> Any:
    """Return ``result`` from a JSON-RPC response object or raise its error."""
    error = body.get("error")
    if error is not None:
        if not isinstance(error, dict):
            raise RpcError(None, f"{method}: {error}", http_status=http_status)
        code = error.get("code")
        message = f"{method}: {error.get('message', 'unknown error')}"
        if _is_revert(code, error):
            raise ContractCallError(message, code=code)
        raise RpcError(code, message, http_status=http_status)
    if "result" not in body:
        raise RpcError(None, f"{method}: response has neither result nor error")
    return body["result"]


def _is_revert(code: Any, error: dict) -> bool:
    if code == REVERT_CODE:
        return True
    if code != SERVER_ERROR_CODE:
        return False
    message = str(error.get("message", "")).lower()
    return error.get("data") is not None or "execution reverted" in message


def _hex_to_bytes(value: str) -> bytes:
    return to_bytes(hexstr=value) if value and value != "0x" else b""


def _call_params(to: str, data: bytes) -> list:
    return [{"to": to, "data": "0x" + data.hex()}, "latest"]


def _raise_first_error(results: list) -> None:
    for item in results:
        if isinstance(item, RpcError):
            raise item


class ChainDataProvider:
    """Retrying reader over a long-lived RPC connection."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10.0,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        connection_factory: Optional[Callable[[], RpcConnection]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize provider.

        Args:
            rpc_url: JSON-RPC endpoint
            timeout: Per-request timeout in seconds
            max_attempts: Attempts per read before giving up
            retry_delay: Base delay between attempts in seconds
            connection_factory: Builds fresh connections (initial and on reconnect)
            sleep: Wait function used between attempts when no deadline is given
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._connection_factory = connection_factory or (lambda: RpcConnection(rpc_url, timeout))
        self._sleep = sleep
        self._connection = self._connection_factory()
        self._reconnect_lock = asyncio.Lock()
        self.reconnects = 0

    @classmethod
    def from_settings(cls, settings) -> "ChainDataProvider":
        return cls(
            rpc_url=settings.rpc_url,
            timeout=settings.rpc_timeout,
            max_attempts=settings.rpc_max_attempts,
            retry_delay=settings.rpc_retry_delay,
        )

    @property
    def connection(self) -> RpcConnection:
        return self._connection

    def backoff_delay(self, attempt: int, error: BaseException) -> float:
        """Delay before the attempt following ``attempt`` (1-based)."""
        if isinstance(error, RpcError) and error.is_rate_limit:
            return self.retry_delay * attempt * 2
        return self.retry_delay

    async def call(
        self,
        fn: Callable[[RpcConnection], Awaitable[T]],
        description: str,
        deadline: Optional[Deadline] = None,
    ) -> T:
        """Run ``fn`` against the current connection with retries.

        Raises:
            ContractCallError: Call reverted or returned undecodable data
            RpcError: Node rejected the request as malformed (not retried)
            ProviderError: All attempts failed; ``original`` holds the last error
            DeadlineExceededError: Deadline elapsed or was cancelled
        """
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_attempts + 1):
            if deadline:
                deadline.check()
            conn = self._connection
            connectivity_failure = False

            try:
                if deadline:
                    return await deadline.bound(fn(conn))
                return await fn(conn)
            except RpcError as e:
                if not e.is_retryable:
                    raise
                last_error = e
            except httpx.TransportError as e:
                last_error = e
                connectivity_failure = True

            if attempt == self.max_attempts:
                break

            delay = self.backoff_delay(attempt, last_error)
            logger.warning(
                f"{description} failed (attempt {attempt}/{self.max_attempts}): "
                f"{type(last_error).__name__}: {last_error}. Retrying in {delay:.2f}s"
            )
            if deadline:
                await deadline.sleep(delay)
            else:
                await self._sleep(delay)

            if connectivity_failure:
                await self._recover_connection(conn)

        logger.error(f"{description} failed after {self.max_attempts} attempts: {last_error}")
        raise ProviderError(description, self.max_attempts, last_error) from last_error

    async def _recover_connection(self, conn: RpcConnection) -> None:
        """Probe ``conn``; replace it with a fresh connection if unreachable."""
        if conn is not self._connection:
            return

        try:
            await asyncio.wait_for(conn.request("eth_chainId", []), timeout=self.timeout)
            return
        except RpcError:
            # Node answered, so the transport is fine
            return
        except (httpx.TransportError, asyncio.TimeoutError) as e:
            logger.warning(f"RPC health probe failed ({type(e).__name__}); reconnecting")

        async with self._reconnect_lock:
            if self._connection is not conn:
                return
            self._connection = self._connection_factory()
            self.reconnects += 1

        await conn.retire()
        logger.info(f"RPC connection replaced (reconnect #{self.reconnects})")

    async def aclose(self) -> None:
        await self._connection.aclose()

    # ------------------------------------------------------------------
    # Typed reads
    # ------------------------------------------------------------------

    async def get_chain_id(self, deadline: Optional[Deadline] = None) -> int:
        """Network health probe."""
        result = await self.call(lambda conn: conn.request("eth_chainId", []), "eth_chainId", deadline)
        return int(result, 16)

    async def get_code(self, address: str, deadline: Optional[Deadline] = None) -> bytes:
        result = await self.call(
            lambda conn: conn.request("eth_getCode", [address, "latest"]),
            f"eth_getCode {address}",
            deadline,
        )
        return _hex_to_bytes(result)

    async def get_native_balance(self, address: str, deadline: Optional[Deadline] = None) -> int:
        result = await self.call(
            lambda conn: conn.request("eth_getBalance", [address, "latest"]),
            f"eth_getBalance {address}",
            deadline,
        )
        return int(result, 16)

    async def eth_call(self, to: str, data: bytes, deadline: Optional[Deadline] = None) -> bytes:
        result = await self.call(
            lambda conn: conn.request("eth_call", _call_params(to, data)),
            f"eth_call {to}",
            deadline,
        )
        return _hex_to_bytes(result)

    async def batch_eth_call(
        self,
        calls: list[tuple[str, bytes]],
        description: str = "batch eth_call",
        deadline: Optional[Deadline] = None,
    ) -> list[bytes]:
        """Several eth_calls in one round trip; any failing element fails the read."""

        async def read(conn: RpcConnection) -> list[bytes]:
            results = await conn.batch([("eth_call", _call_params(to, data)) for to, data in calls])
            _raise_first_error(results)
            return [_hex_to_bytes(r) for r in results]

        return await self.call(read, description, deadline)

    async def get_pool_state(self, address: str, deadline: Optional[Deadline] = None) -> PoolState:
        """token0, token1, fee, slot0 and liquidity of a pool in one batch."""
        address = to_checksum_address(address)
        token0, token1, fee, slot0, liquidity = await self.batch_eth_call(
            [
                (address, abi.TOKEN0),
                (address, abi.TOKEN1),
                (address, abi.FEE),
                (address, abi.SLOT0),
                (address, abi.LIQUIDITY),
            ],
            description=f"pool state {address}",
            deadline=deadline,
        )
        sqrt_price_x96, tick = abi.decode_slot0(slot0)
        return PoolState(
            address=address,
            token0=abi.decode_address(token0, "token0"),
            token1=abi.decode_address(token1, "token1"),
            fee=abi.decode_uint(fee, "fee"),
            sqrt_price_x96=sqrt_price_x96,
            tick=tick,
            liquidity=abi.decode_uint(liquidity, "liquidity"),
        )

    async def get_token_metadata(self, address: str, deadline: Optional[Deadline] = None) -> TokenMetadata:
        """decimals, symbol and name of an ERC-20 in one batch.

        ``name()`` is optional; tokens that revert on it get their symbol as name.
        """
        address = to_checksum_address(address)

        async def read(conn: RpcConnection) -> list:
            results = await conn.batch(
                [
                    ("eth_call", _call_params(address, abi.DECIMALS)),
                    ("eth_call", _call_params(address, abi.SYMBOL)),
                    ("eth_call", _call_params(address, abi.NAME)),
                ]
            )
            _raise_first_error(results[:2])
            return results

        decimals_raw, symbol_raw, name_raw = await self.call(read, f"token metadata {address}", deadline)
        decimals = abi.decode_uint(_hex_to_bytes(decimals_raw), "decimals")
        if decimals > 77:
            raise ContractCallError(f"decimals: implausible value {decimals}")
        symbol = abi.decode_string(_hex_to_bytes(symbol_raw), "symbol")
        if not symbol:
            raise ContractCallError("symbol: empty")

        name = symbol
        if not isinstance(name_raw, RpcError):
            try:
                name = abi.decode_string(_hex_to_bytes(name_raw), "name") or symbol
            except ContractCallError:
                logger.debug(f"Token {address} has no decodable name()")

        return TokenMetadata(address=address, symbol=symbol, decimals=decimals, name=name)

    async def get_erc20_balance(self, token: str, owner: str, deadline: Optional[Deadline] = None) -> int:
        data = await self.eth_call(to_checksum_address(token), abi.encode_balance_of(owner), deadline)
        return abi.decode_uint(data, "balanceOf")
