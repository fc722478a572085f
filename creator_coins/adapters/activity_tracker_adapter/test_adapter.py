from unittest.mock import AsyncMock, patch

import pytest

from creator_coins.adapters.activity_tracker_adapter.adapter import (
    ActivityTrackerAdapter,
)
from creator_coins.conftest import COIN, CREATOR, TX_HASH
from creator_coins.core.ledger.reconciler import LedgerReconciler
from creator_coins.core.models import CoinStatus

ADAPTER_MODULE = "creator_coins.adapters.activity_tracker_adapter.adapter"

# Well-known local development key; never funded on a public network.
PLATFORM_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
PLATFORM_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class TestActivityTrackerAdapter:
    @pytest.fixture
    def adapter(self, settings):
        return ActivityTrackerAdapter(settings, private_key=PLATFORM_KEY)

    def test_adapter_type(self, adapter):
        assert adapter.adapter_type == "ACTIVITY_TRACKER"
        assert adapter.platform_address == PLATFORM_ADDRESS

    @pytest.mark.asyncio
    async def test_record_coin_creation_signs_with_platform_key(self, adapter):
        with patch(
            f"{ADAPTER_MODULE}.sign_and_send_transaction",
            new_callable=AsyncMock,
            return_value=TX_HASH,
        ) as mock_send:
            tx_hash = await adapter.record_coin_creation(
                COIN, CREATOR, "https://example.com/post", "Alice Coin", "ALICE"
            )

        assert tx_hash == TX_HASH
        transaction, key = mock_send.await_args.args[:2]
        assert key == PLATFORM_KEY
        assert transaction["from"] == PLATFORM_ADDRESS
        assert transaction["to"] == adapter.tracker_address

    @pytest.mark.asyncio
    async def test_write_failures_are_swallowed(self, adapter):
        with patch(
            f"{ADAPTER_MODULE}.sign_and_send_transaction",
            new_callable=AsyncMock,
            side_effect=RuntimeError("nonce too low"),
        ):
            assert await adapter.record_fees(COIN, CREATOR, 10, 5) is None
            assert await adapter.update_market_cap(COIN, 1_000) is None
            assert (
                await adapter.record_trading_activity(COIN, CREATOR, "buy", 7) is None
            )

    @pytest.mark.asyncio
    async def test_unconfigured_tracker_skips_writes(self, settings):
        adapter = ActivityTrackerAdapter(
            settings.model_copy(update={"activity_tracker_address": None}),
            private_key=PLATFORM_KEY,
        )
        with patch(
            f"{ADAPTER_MODULE}.sign_and_send_transaction", new_callable=AsyncMock
        ) as mock_send:
            result = await adapter.record_coin_creation(
                COIN, CREATOR, "", "Alice Coin", "ALICE"
            )
        assert result is None
        mock_send.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_platform_key_skips_writes(self, settings):
        adapter = ActivityTrackerAdapter(settings)
        with patch(
            f"{ADAPTER_MODULE}.sign_and_send_transaction", new_callable=AsyncMock
        ) as mock_send:
            assert await adapter.update_market_cap(COIN, 1) is None
        mock_send.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_coin_metrics(self, adapter):
        with patch.object(
            adapter, "_read", new_callable=AsyncMock, return_value=[1, 2, 3, 4, 5, 6]
        ):
            success, metrics = await adapter.get_coin_metrics(COIN)

        assert success is True
        assert metrics["total_creator_fees"] == 1
        assert metrics["trade_count"] == 5
        assert metrics["last_updated"] == 6

    @pytest.mark.asyncio
    async def test_reads_return_status_tuple_on_error(self, adapter):
        with patch.object(
            adapter, "_read", new_callable=AsyncMock, side_effect=RuntimeError("rpc")
        ):
            success, error = await adapter.get_platform_stats()
        assert success is False
        assert "rpc" in error

    @pytest.mark.asyncio
    async def test_register_coins(self, adapter, ledger, deployment_request):
        reconciler = LedgerReconciler(ledger)
        active = await reconciler.open_pending(deployment_request, chain_id=84532)
        await reconciler.attach_transaction(active.id, TX_HASH)
        await reconciler.mark_active(active.id, address=COIN, chain_id=84532)

        second_request = deployment_request.model_copy(update={"symbol": "ALICE2"})
        already = await reconciler.open_pending(second_request, chain_id=84532)
        await reconciler.attach_transaction(already.id, "0x" + "cd" * 32)
        await reconciler.mark_active(
            already.id,
            address="0x5555555555555555555555555555555555555555",
            chain_id=84532,
        )

        pending_request = deployment_request.model_copy(update={"symbol": "ALICE3"})
        pending = await reconciler.open_pending(pending_request, chain_id=84532)

        records = await ledger.list_coins()
        registry_hash = "0x" + "ef" * 32

        def _is_registered(fn_name, address):
            assert fn_name == "isRegisteredCoin"
            return address.lower() == "0x5555555555555555555555555555555555555555"

        with (
            patch.object(
                adapter, "_read", new_callable=AsyncMock, side_effect=_is_registered
            ),
            patch(
                f"{ADAPTER_MODULE}.sign_and_send_transaction",
                new_callable=AsyncMock,
                return_value=registry_hash,
            ) as mock_send,
        ):
            summary = await adapter.register_coins(records, reconciler)

        assert summary["registered"] == [active.id]
        assert set(summary["skipped"]) == {already.id, pending.id}
        assert summary["failed"] == []
        mock_send.assert_awaited_once()

        stored = await ledger.get_coin(active.id)
        assert stored.status == CoinStatus.ACTIVE
        assert stored.registry_tx_hash == registry_hash
        assert stored.registered_at is not None

        already_stored = await ledger.get_coin(already.id)
        assert already_stored.registered_at is not None
        assert already_stored.registry_tx_hash is None
        assert (await ledger.get_coin(pending.id)).registered_at is None

        rerun = await adapter.register_coins(await ledger.list_coins(), reconciler)
        assert rerun["registered"] == []
        mock_send.assert_awaited_once()
