from __future__ import annotations

from typing import Any, NotRequired, TypedDict

from creator_coins.core.clients.ApiClient import ApiClient


class EarningsAmount(TypedDict):
    amountDecimal: NotRequired[str]
    amountRaw: NotRequired[str]
    currencyAddress: NotRequired[str]


class CreatorEarning(TypedDict):
    amount: NotRequired[EarningsAmount]
    amountUsd: NotRequired[str]


class EarningsClient(ApiClient):
    """Coin data API that reports a creator's accrued earnings per coin."""

    api_key_header = "api-key"

    async def get_coin(self, coin_address: str, chain_id: int) -> dict[str, Any]:
        response = await self._request_with_retry(
            "GET", "/coin", params={"address": coin_address, "chain": int(chain_id)}
        )
        data = response.json()
        return data.get("zora20Token") or {}

    async def get_creator_earnings(
        self, coin_address: str, chain_id: int
    ) -> list[CreatorEarning]:
        token = await self.get_coin(coin_address, chain_id)
        return list(token.get("creatorEarnings") or [])

    async def get_accrued_earnings_decimal(
        self, coin_address: str, chain_id: int
    ) -> str:
        """Return the accrued amount as the API reports it (a decimal string)."""
        earnings = await self.get_creator_earnings(coin_address, chain_id)
        if not earnings:
            return "0"
        amount = earnings[0].get("amount") or {}
        return str(amount.get("amountDecimal") or "0")
