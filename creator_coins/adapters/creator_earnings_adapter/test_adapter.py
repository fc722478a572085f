from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from creator_coins.adapters.creator_earnings_adapter.adapter import (
    CreatorEarningsAdapter,
    validate_recipient,
)
from creator_coins.conftest import COIN, CREATOR, TX_HASH
from creator_coins.core.errors import (
    InvalidRecipientError,
    NoEarningsError,
    SimulationRevertedError,
)
from creator_coins.core.models import ExecutionMode

ADAPTER_MODULE = "creator_coins.adapters.creator_earnings_adapter.adapter"


def _earnings(amount: str):
    source = MagicMock()
    source.get_accrued_earnings_decimal = AsyncMock(return_value=amount)
    return source


def _executor(mode=ExecutionMode.DIRECT, sender=None):
    executor = MagicMock()
    executor.mode = mode
    executor.sender = sender
    executor.submit = AsyncMock(return_value=TX_HASH)
    return executor


class TestCreatorEarningsAdapter:
    def test_adapter_type(self, settings):
        adapter = CreatorEarningsAdapter(settings, _earnings("0"))
        assert adapter.adapter_type == "CREATOR_EARNINGS"

    @pytest.mark.parametrize(
        "recipient",
        [
            "",
            "0x123",
            "1111111111111111111111111111111111111111",
            None,
            "0x" + "g" * 40,
        ],
    )
    def test_validate_recipient_rejects_malformed(self, recipient):
        with pytest.raises(InvalidRecipientError):
            validate_recipient(recipient)

    @pytest.mark.asyncio
    async def test_withdraw_happy_path(self, settings):
        source = _earnings("1.5")
        executor = _executor()
        adapter = CreatorEarningsAdapter(settings, source)

        with (
            patch(
                f"{ADAPTER_MODULE}.simulate_call", new_callable=AsyncMock
            ) as mock_simulate,
            patch(
                f"{ADAPTER_MODULE}.wait_for_transaction_receipt",
                new_callable=AsyncMock,
                return_value={"status": 1, "blockNumber": 42},
            ) as mock_wait,
        ):
            result = await adapter.withdraw_earnings(COIN, CREATOR, executor)

        assert result.amount == 1_500_000_000_000_000_000
        assert result.recipient.lower() == CREATOR
        assert result.transaction_hash == TX_HASH
        assert result.block_number == 42
        source.get_accrued_earnings_decimal.assert_awaited_once()
        mock_simulate.assert_awaited_once()
        call = executor.submit.await_args.args[0]
        assert call.function_name == "withdraw"
        assert call.to.lower() == COIN
        assert call.args[1] == 1_500_000_000_000_000_000
        mock_wait.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sponsored_withdraw_simulates_from_smart_account(self, settings):
        smart_account = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
        executor = _executor(ExecutionMode.SPONSORED, sender=smart_account)
        adapter = CreatorEarningsAdapter(settings, _earnings("1"))

        with (
            patch(
                f"{ADAPTER_MODULE}.simulate_call", new_callable=AsyncMock
            ) as mock_simulate,
            patch(
                f"{ADAPTER_MODULE}.wait_for_transaction_receipt",
                new_callable=AsyncMock,
                return_value={"status": 1, "blockNumber": 7},
            ),
        ):
            result = await adapter.withdraw_earnings(COIN, CREATOR, executor)

        simulated = mock_simulate.await_args.args[0]
        assert simulated.from_address == smart_account
        assert simulated.args[0].lower() == CREATOR
        assert executor.submit.await_args.args[0].from_address == smart_account
        assert result.recipient.lower() == CREATOR

    @pytest.mark.asyncio
    async def test_bad_recipient_never_reaches_executor(self, settings):
        source = _earnings("1.0")
        executor = _executor()
        adapter = CreatorEarningsAdapter(settings, source)

        with pytest.raises(InvalidRecipientError):
            await adapter.withdraw_earnings(COIN, "not-an-address", executor)

        source.get_accrued_earnings_decimal.assert_not_called()
        executor.submit.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "0.0", "", "abc", "-1", "1e-19"])
    async def test_no_earnings_never_reaches_executor(self, settings, amount):
        executor = _executor()
        adapter = CreatorEarningsAdapter(settings, _earnings(amount))

        with patch(
            f"{ADAPTER_MODULE}.simulate_call", new_callable=AsyncMock
        ) as mock_simulate:
            with pytest.raises(NoEarningsError):
                await adapter.withdraw_earnings(COIN, CREATOR, executor)

        mock_simulate.assert_not_called()
        executor.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_simulation_revert_never_reaches_executor(self, settings):
        executor = _executor()
        adapter = CreatorEarningsAdapter(settings, _earnings("2"))

        with patch(
            f"{ADAPTER_MODULE}.simulate_call",
            new_callable=AsyncMock,
            side_effect=SimulationRevertedError("withdraw", "OnlyOwner()"),
        ):
            with pytest.raises(SimulationRevertedError):
                await adapter.withdraw_earnings(COIN, CREATOR, executor)

        executor.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_accrued_earnings_status_tuple(self, settings):
        adapter = CreatorEarningsAdapter(settings, _earnings("0.25"))
        success, amount = await adapter.get_accrued_earnings(COIN)
        assert success is True
        assert amount == Decimal("0.25")

        failing = MagicMock()
        failing.get_accrued_earnings_decimal = AsyncMock(
            side_effect=RuntimeError("api down")
        )
        adapter = CreatorEarningsAdapter(settings, failing)
        success, error = await adapter.get_accrued_earnings(COIN)
        assert success is False
        assert "api down" in error
