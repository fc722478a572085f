from __future__ import annotations

from typing import Any, Protocol

from creator_coins.core.models import CoinRecord


class LedgerStore(Protocol):
    """Persistence for coin records. Only the ledger reconciler writes through it."""

    async def create_coin(self, record: CoinRecord) -> CoinRecord: ...

    async def update_coin(self, coin_id: str, fields: dict[str, Any]) -> CoinRecord: ...

    async def get_coin(self, coin_id: str) -> CoinRecord | None: ...

    async def find_coin_by_salt(self, salt: str) -> CoinRecord | None: ...


class EarningsSource(Protocol):
    async def get_accrued_earnings_decimal(
        self, coin_address: str, chain_id: int
    ) -> str: ...


class BundlerProtocol(Protocol):
    async def get_paymaster_stub_data(
        self,
        user_op: dict[str, Any],
        entry_point: str,
        chain_id: int,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any]: ...

    async def get_paymaster_data(
        self,
        user_op: dict[str, Any],
        entry_point: str,
        chain_id: int,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any]: ...

    async def estimate_user_operation_gas(
        self, user_op: dict[str, Any], entry_point: str
    ) -> dict[str, Any]: ...

    async def send_user_operation(
        self, user_op: dict[str, Any], entry_point: str
    ) -> str: ...

    async def get_user_operation_receipt(
        self, user_op_hash: str
    ) -> dict[str, Any] | None: ...

    async def get_user_operation_by_hash(
        self, user_op_hash: str
    ) -> dict[str, Any] | None: ...
