from __future__ import annotations

from typing import Any

from eth_account import Account
from eth_utils import to_checksum_address

from creator_coins.core.adapters.BaseAdapter import BaseAdapter
from creator_coins.core.adapters.decorators import (
    best_effort,
    require_configured,
    status_tuple,
)
from creator_coins.core.config import PipelineSettings
from creator_coins.core.constants.activity_tracker_abi import ACTIVITY_TRACKER_ABI
from creator_coins.core.constants.base import ADAPTER_ACTIVITY_TRACKER
from creator_coins.core.ledger.reconciler import LedgerReconciler
from creator_coins.core.models import CoinRecord, CoinStatus
from creator_coins.core.utils.transaction import (
    encode_call,
    sign_and_send_transaction,
)
from creator_coins.core.utils.web3 import web3_from_chain_id

_COIN_METRIC_FIELDS = (
    "total_creator_fees",
    "total_platform_fees",
    "current_market_cap",
    "total_volume",
    "trade_count",
    "last_updated",
)
_PLATFORM_STAT_FIELDS = (
    "total_coins",
    "total_platform_fees",
    "total_creator_fees",
    "total_volume",
    "total_creators",
)


class ActivityTrackerAdapter(BaseAdapter):
    """Platform-side telemetry on the activity tracker contract.

    Writes are signed by the platform key and never raise: an unconfigured
    tracker or a failed transaction is logged and returns ``None``.
    """

    adapter_type = ADAPTER_ACTIVITY_TRACKER

    def __init__(
        self,
        settings: PipelineSettings,
        *,
        private_key: str | None = None,
        config: dict[str, Any] | None = None,
    ):
        super().__init__("activity_tracker", settings, config)
        self.tracker_address = (
            to_checksum_address(settings.activity_tracker_address)
            if settings.activity_tracker_address
            else None
        )
        self.private_key = private_key
        self.platform_address = (
            Account.from_key(private_key).address if private_key else None
        )

    async def _write(self, fn_name: str, args: list[Any]) -> str:
        call = encode_call(
            target=self.tracker_address,
            abi=ACTIVITY_TRACKER_ABI,
            fn_name=fn_name,
            args=args,
            from_address=self.platform_address,
            chain_id=self.chain_id,
        )
        tx_hash = await sign_and_send_transaction(
            call.to_transaction(), self.private_key, wait_for_receipt=True
        )
        self.logger.info(f"{fn_name} recorded in {tx_hash}")
        return tx_hash

    async def _read(self, fn_name: str, *args: Any) -> Any:
        if not self.tracker_address:
            raise ValueError(
                f"No activity tracker configured for chain {self.chain_id}"
            )
        async with web3_from_chain_id(self.chain_id) as web3:
            contract = web3.eth.contract(
                address=self.tracker_address, abi=ACTIVITY_TRACKER_ABI
            )
            return await getattr(contract.functions, fn_name)(*args).call(
                block_identifier="latest"
            )

    @require_configured("tracker_address", "private_key")
    @best_effort
    async def record_coin_creation(
        self,
        coin_address: str,
        creator: str,
        content_url: str,
        name: str,
        symbol: str,
    ) -> str:
        return await self._write(
            "recordCoinCreation",
            [coin_address, creator, content_url, name, symbol],
        )

    @require_configured("tracker_address", "private_key")
    @best_effort
    async def record_fees(
        self, coin_address: str, trader: str, creator_fee: int, platform_fee: int
    ) -> str:
        return await self._write(
            "recordFees", [coin_address, trader, int(creator_fee), int(platform_fee)]
        )

    @require_configured("tracker_address", "private_key")
    @best_effort
    async def update_market_cap(self, coin_address: str, market_cap: int) -> str:
        return await self._write("updateMarketCap", [coin_address, int(market_cap)])

    @require_configured("tracker_address", "private_key")
    @best_effort
    async def record_trading_activity(
        self, coin_address: str, trader: str, activity_type: str, amount: int
    ) -> str:
        return await self._write(
            "recordTradingActivity",
            [coin_address, trader, activity_type, int(amount)],
        )

    @status_tuple
    async def get_coin_metrics(self, coin_address: str) -> dict[str, int]:
        values = await self._read("getCoinMetrics", to_checksum_address(coin_address))
        return dict(zip(_COIN_METRIC_FIELDS, (int(v) for v in values), strict=True))

    @status_tuple
    async def get_platform_stats(self) -> dict[str, int]:
        values = await self._read("getPlatformStats")
        return dict(zip(_PLATFORM_STAT_FIELDS, (int(v) for v in values), strict=True))

    @status_tuple
    async def get_creator_stats(self, creator: str) -> dict[str, int]:
        coins_created, total_fees = await self._read(
            "getCreatorStats", to_checksum_address(creator)
        )
        return {
            "coins_created": int(coins_created),
            "total_fees_earned": int(total_fees),
        }

    @status_tuple
    async def is_registered_coin(self, coin_address: str) -> bool:
        return bool(
            await self._read("isRegisteredCoin", to_checksum_address(coin_address))
        )

    async def register_coins(
        self, records: list[CoinRecord], reconciler: LedgerReconciler
    ) -> dict[str, list[str]]:
        """Record every active, unregistered coin on the tracker.

        Each successful registration stamps ``registered_at`` through the
        reconciler. Returns the coin ids per outcome.
        """
        summary: dict[str, list[str]] = {"registered": [], "skipped": [], "failed": []}
        for record in records:
            if (
                record.status != CoinStatus.ACTIVE
                or not record.address
                or not record.creator_wallet
                or record.registered_at is not None
            ):
                summary["skipped"].append(record.id)
                continue

            ok, registered = await self.is_registered_coin(record.address)
            if ok and registered is True:
                self.logger.info(f"{record.symbol} already registered, stamping")
                await reconciler.mark_registered(record.id)
                summary["skipped"].append(record.id)
                continue

            tx_hash = await self.record_coin_creation(
                record.address,
                record.creator_wallet,
                record.metadata_uri,
                record.name,
                record.symbol,
            )
            if not tx_hash:
                summary["failed"].append(record.id)
                continue
            await reconciler.mark_registered(record.id, registry_tx_hash=tx_hash)
            summary["registered"].append(record.id)

        self.logger.info(
            f"Registration run: {len(summary['registered'])} registered, "
            f"{len(summary['skipped'])} skipped, {len(summary['failed'])} failed"
        )
        return summary
