import re
from decimal import Decimal
from typing import Any

from eth_utils import to_checksum_address

from creator_coins.core.adapters.BaseAdapter import BaseAdapter
from creator_coins.core.adapters.decorators import status_tuple
from creator_coins.core.clients.protocols import EarningsSource
from creator_coins.core.config import PipelineSettings
from creator_coins.core.constants.base import ADAPTER_CREATOR_EARNINGS
from creator_coins.core.constants.creator_coin_abi import CREATOR_COIN_ABI
from creator_coins.core.errors import InvalidRecipientError, NoEarningsError
from creator_coins.core.execution.executors import Executor
from creator_coins.core.models import EarningsClaim, WithdrawalResult
from creator_coins.core.utils.transaction import (
    encode_call,
    simulate_call,
    wait_for_transaction_receipt,
)
from creator_coins.core.utils.units import from_wei_eth, to_wei_eth

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def validate_recipient(recipient: str | None) -> str:
    if not isinstance(recipient, str) or not _ADDRESS_RE.match(recipient):
        raise InvalidRecipientError(str(recipient))
    return to_checksum_address(recipient)


class CreatorEarningsAdapter(BaseAdapter):
    """Withdraws a creator's accrued trading fees from their coin contract."""

    adapter_type = ADAPTER_CREATOR_EARNINGS

    def __init__(
        self,
        settings: PipelineSettings,
        earnings_source: EarningsSource,
        config: dict[str, Any] | None = None,
    ):
        super().__init__("creator_earnings", settings, config)
        self.earnings_source = earnings_source

    async def _accrued_wei(self, coin_address: str) -> int:
        raw = await self.earnings_source.get_accrued_earnings_decimal(
            coin_address, self.chain_id
        )
        try:
            amount = to_wei_eth(raw)
        except ValueError as exc:
            raise NoEarningsError(
                coin_address, f"Invalid earnings amount {raw!r} for {coin_address}"
            ) from exc
        if amount <= 0:
            raise NoEarningsError(coin_address)
        return amount

    @status_tuple
    async def get_accrued_earnings(self, coin_address: str) -> Decimal:
        """Accrued earnings for ``coin_address`` in whole tokens."""
        raw = await self.earnings_source.get_accrued_earnings_decimal(
            coin_address, self.chain_id
        )
        return from_wei_eth(to_wei_eth(raw))

    async def prepare_claim(
        self, coin_address: str, recipient: str, executor: Executor
    ) -> EarningsClaim:
        """Validate inputs and read the withdrawable amount.

        Raises ``InvalidRecipientError`` or ``NoEarningsError`` before anything is
        signed.
        """
        to = validate_recipient(recipient)
        coin = to_checksum_address(coin_address)
        amount = await self._accrued_wei(coin)
        return EarningsClaim(
            coin_address=coin,
            recipient=to,
            amount=amount,
            execution_mode=executor.mode,
        )

    async def withdraw_earnings(
        self,
        coin_address: str,
        recipient: str,
        executor: Executor,
        *,
        from_address: str | None = None,
    ) -> WithdrawalResult:
        """Simulate, submit and confirm ``withdraw(recipient, amount)``.

        The simulation runs from the executor's on-chain sender (the smart
        account when sponsored) unless ``from_address`` overrides it.
        """
        claim = await self.prepare_claim(coin_address, recipient, executor)
        call = encode_call(
            target=claim.coin_address,
            abi=CREATOR_COIN_ABI,
            fn_name="withdraw",
            args=[claim.recipient, claim.amount],
            from_address=from_address or executor.sender or claim.recipient,
            chain_id=self.chain_id,
        )
        self.logger.info(
            f"Withdrawing {from_wei_eth(claim.amount)} from {claim.coin_address} "
            f"to {claim.recipient} ({claim.execution_mode})"
        )
        await simulate_call(call, CREATOR_COIN_ABI)

        tx_hash = await executor.submit(call)
        receipt = await wait_for_transaction_receipt(
            self.chain_id,
            tx_hash,
            timeout=self.settings.transaction_timeout,
            confirmations=self.settings.confirmations,
        )
        self.logger.info(f"Withdrawal confirmed in {tx_hash}")
        return WithdrawalResult(
            coin_address=claim.coin_address,
            recipient=claim.recipient,
            amount=claim.amount,
            transaction_hash=tx_hash,
            block_number=int(receipt.get("blockNumber") or 0),
        )
