from __future__ import annotations

from typing import Any

import httpx

from creator_coins.core.clients.ApiClient import ApiClient
from creator_coins.core.models import CoinRecord, salt_owner


class LedgerClient(ApiClient):
    """HTTP access to the persistence service that owns coin records."""

    api_key_header = "X-API-KEY"

    async def create_coin(self, record: CoinRecord) -> CoinRecord:
        response = await self._authed_request(
            "POST", "/api/coins", json=record.model_dump(mode="json")
        )
        return CoinRecord.model_validate(response.json())

    async def update_coin(self, coin_id: str, fields: dict[str, Any]) -> CoinRecord:
        response = await self._authed_request(
            "PATCH", f"/api/coins/{coin_id}", json=fields
        )
        return CoinRecord.model_validate(response.json())

    async def get_coin(self, coin_id: str) -> CoinRecord | None:
        try:
            response = await self._request_with_retry("GET", f"/api/coins/{coin_id}")
        except httpx.HTTPStatusError as exc:
            if exc.response is not None and exc.response.status_code == 404:
                return None
            raise
        return CoinRecord.model_validate(response.json())

    async def find_coin_by_salt(self, salt: str) -> CoinRecord | None:
        """Same precedence as the SQLite store, whatever order the service uses."""
        response = await self._request_with_retry(
            "GET", "/api/coins", params={"salt": salt}
        )
        data = response.json()
        rows = data if isinstance(data, list) else data.get("coins", [])
        return salt_owner([CoinRecord.model_validate(row) for row in rows])
