import time
from typing import Any

import httpx
from loguru import logger

from creator_coins.core.constants.base import DEFAULT_HTTP_TIMEOUT
from creator_coins.core.utils.retry import exponential_backoff_s, retry_async

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUSES
    return isinstance(exc, httpx.TransportError)


def _retry_delay(attempt: int, exc: Exception) -> float:
    """Honor a numeric ``Retry-After`` header, else back off exponentially."""
    if isinstance(exc, httpx.HTTPStatusError):
        header = exc.response.headers.get("Retry-After", "")
        if header.replace(".", "", 1).isdigit():
            return float(header)
    return exponential_backoff_s(attempt)


class ApiClient:
    """Shared httpx plumbing for the HTTP collaborators.

    Subclasses set ``api_key_header`` when the service expects a key header.
    """

    api_key_header: str | None = None

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self.headers = {"Content-Type": "application/json"}
        if api_key and self.api_key_header:
            self.headers[self.api_key_header] = api_key

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _authed_request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request with the client headers and raise on 4xx/5xx."""
        url = self._url(url)
        started = time.monotonic()
        resp = await self.client.request(
            method, url, headers={**self.headers, **(headers or {})}, **kwargs
        )
        log = logger.warning if resp.is_error else logger.debug
        log(
            f"{method} {url} -> HTTP {resp.status_code} "
            f"in {time.monotonic() - started:.2f}s"
        )
        resp.raise_for_status()
        return resp

    async def _request_with_retry(
        self, method: str, url: str, *, max_retries: int = 3, **kwargs: Any
    ) -> httpx.Response:
        """Like ``_authed_request`` but retries throttling and transport errors.

        Only for idempotent calls.
        """
        return await retry_async(
            lambda: self._authed_request(method, url, **kwargs),
            label=f"{type(self).__name__} {method} {url}",
            attempts=max_retries,
            should_retry=_is_retryable,
            delay_for=_retry_delay,
        )

    async def close(self) -> None:
        await self.client.aclose()
