from contextlib import asynccontextmanager
from typing import Any

from web3 import AsyncHTTPProvider, AsyncWeb3

from creator_coins.core.config import get_rpc_urls_for_chain
from creator_coins.core.utils.retry import retry_async

# Public Base endpoints throttle hard; only throttling and gateway errors retry.
_RETRYABLE_HTTP_STATUS = {429, 502, 503, 504}
_THROTTLE_RPC_CODES = {429, -32005}
_THROTTLE_MARKERS = ("too many requests", "rate limit", "limit exceeded")
_RPC_ATTEMPTS = 3


class RpcThrottledError(Exception):
    def __init__(self, error: dict[str, Any]):
        self.error = error
        super().__init__(str(error.get("message") or error))


def _http_status(exc: Exception) -> int | None:
    for candidate in (exc, getattr(exc, "response", None)):
        for attr in ("status", "status_code"):
            value = getattr(candidate, attr, None)
            if isinstance(value, int):
                return value
    return None


def is_throttled_rpc_error(error: dict[str, Any]) -> bool:
    if error.get("code") in _THROTTLE_RPC_CODES:
        return True
    message = str(error.get("message") or "").lower()
    return any(marker in message for marker in _THROTTLE_MARKERS)


def _should_retry_rpc(exc: Exception) -> bool:
    return isinstance(exc, RpcThrottledError) or (
        _http_status(exc) in _RETRYABLE_HTTP_STATUS
    )


class ThrottleAwareProvider(AsyncHTTPProvider):
    """HTTP provider that retries throttled JSON-RPC calls with backoff.

    A call still throttled after the last attempt returns its error response
    so web3 raises the usual RPC error.
    """

    async def make_request(self, method, params):  # type: ignore[override]
        rpc_request = self.form_request(method, params)
        payload = self.encode_rpc_dict(rpc_request)

        async def _send() -> dict[str, Any]:
            response = self.decode_rpc_response(
                await self._make_request(method, payload)
            )
            if isinstance(response, dict):
                response.setdefault("id", rpc_request.get("id"))
                error = response.get("error")
                if isinstance(error, dict) and is_throttled_rpc_error(error):
                    raise RpcThrottledError(error)
            return response

        try:
            return await retry_async(
                _send,
                label=f"RPC {method} on {self.endpoint_uri}",
                attempts=_RPC_ATTEMPTS,
                should_retry=_should_retry_rpc,
            )
        except RpcThrottledError as exc:
            return {"jsonrpc": "2.0", "id": rpc_request.get("id"), "error": exc.error}


def get_transaction_chain_id(transaction: dict) -> int:
    if "chainId" not in transaction:
        raise ValueError("Transaction does not contain chainId")
    return int(transaction["chainId"])


def get_web3s_from_chain_id(chain_id: int) -> list[AsyncWeb3]:
    headers = AsyncHTTPProvider.get_request_headers()
    return [
        AsyncWeb3(ThrottleAwareProvider(rpc, request_kwargs={"headers": headers}))
        for rpc in get_rpc_urls_for_chain(chain_id)
    ]


@asynccontextmanager
async def web3s_from_chain_id(chain_id: int):
    """Yield one ``AsyncWeb3`` per configured RPC; providers close on exit."""
    web3s = get_web3s_from_chain_id(chain_id)
    try:
        yield web3s
    finally:
        for web3 in web3s:
            await web3.provider.disconnect()


@asynccontextmanager
async def web3_from_chain_id(chain_id: int):
    async with web3s_from_chain_id(chain_id) as web3s:
        yield web3s[0]
