import time
import uuid
from typing import Any

from loguru import logger

from creator_coins.core.clients.protocols import LedgerStore
from creator_coins.core.errors import InvalidTransitionError, LedgerUpdateError
from creator_coins.core.models import CoinRecord, CoinStatus, DeploymentRequest
from creator_coins.core.utils.salt import salt_hex

# (current, target) pairs a write may perform
_ALLOWED_TRANSITIONS = {
    (CoinStatus.PENDING, CoinStatus.PENDING),
    (CoinStatus.PENDING, CoinStatus.ACTIVE),
    (CoinStatus.PENDING, CoinStatus.FAILED),
    (CoinStatus.ACTIVE, CoinStatus.ACTIVE),
}


class LedgerReconciler:
    """Sole writer of coin records.

    Every write goes through ``_transition``. A known transaction hash is never
    dropped or replaced, and the resulting record is validated before it reaches
    the store.
    """

    def __init__(self, store: LedgerStore):
        self.store = store
        self.logger = logger.bind(component="LedgerReconciler")

    async def open_pending(
        self, request: DeploymentRequest, *, chain_id: int | None = None
    ) -> CoinRecord:
        record = CoinRecord(
            id=uuid.uuid4().hex,
            name=request.name,
            symbol=request.symbol,
            metadata_uri=request.metadata_uri,
            creator_wallet=request.creator,
            status=CoinStatus.PENDING,
            chain_id=chain_id,
            created_at=int(time.time()),
            salt=salt_hex(request.salt),
        )
        created = await self.store.create_coin(record)
        self.logger.info(f"Opened pending coin {created.id} ({created.symbol})")
        return created

    async def _load(self, coin_id: str) -> CoinRecord:
        record = await self.store.get_coin(coin_id)
        if record is None:
            raise KeyError(f"Coin not found: {coin_id}")
        return record

    async def _transition(
        self, coin_id: str, target: CoinStatus, fields: dict[str, Any]
    ) -> CoinRecord:
        current = await self._load(coin_id)
        if (current.status, target) not in _ALLOWED_TRANSITIONS:
            raise InvalidTransitionError(coin_id, current.status, target)

        new_hash = fields.get("tx_hash")
        if current.tx_hash and new_hash and new_hash.lower() != current.tx_hash.lower():
            raise InvalidTransitionError(
                coin_id,
                f"{current.status} (tx {current.tx_hash})",
                f"{target} (tx {new_hash})",
            )
        if current.tx_hash and "tx_hash" in fields:
            fields = {k: v for k, v in fields.items() if k != "tx_hash"}

        updates = {**fields, "status": target}
        candidate = current.model_copy(update=updates)
        violation = candidate.invariant_violation()
        if violation is not None:
            raise InvalidTransitionError(
                coin_id, current.status, f"{target}: {violation}"
            )
        return await self.store.update_coin(coin_id, updates)

    async def attach_transaction(self, coin_id: str, tx_hash: str) -> CoinRecord:
        record = await self._transition(
            coin_id, CoinStatus.PENDING, {"tx_hash": tx_hash}
        )
        self.logger.info(f"Coin {coin_id} submitted in {tx_hash}")
        return record

    async def mark_active(
        self,
        coin_id: str,
        *,
        address: str,
        chain_id: int,
        created_at: int | None = None,
        tx_hash: str | None = None,
    ) -> CoinRecord:
        fields: dict[str, Any] = {
            "address": address,
            "chain_id": int(chain_id),
            "needs_reconciliation": False,
            "failure_reason": None,
        }
        if created_at is not None:
            fields["created_at"] = int(created_at)
        if tx_hash:
            fields["tx_hash"] = tx_hash
        record = await self._transition(coin_id, CoinStatus.ACTIVE, fields)
        self.logger.info(f"Coin {coin_id} active at {address} on chain {chain_id}")
        return record

    async def mark_failed(
        self, coin_id: str, reason: str, *, tx_hash: str | None = None
    ) -> CoinRecord:
        fields: dict[str, Any] = {
            "failure_reason": reason,
            "needs_reconciliation": False,
        }
        if tx_hash:
            fields["tx_hash"] = tx_hash
        record = await self._transition(coin_id, CoinStatus.FAILED, fields)
        self.logger.warning(f"Coin {coin_id} failed: {reason}")
        return record

    async def flag_for_reconciliation(
        self,
        coin_id: str,
        reason: str,
        *,
        tx_hash: str | None = None,
        user_op_hash: str | None = None,
    ) -> CoinRecord:
        fields: dict[str, Any] = {
            "needs_reconciliation": True,
            "failure_reason": reason,
        }
        if tx_hash:
            fields["tx_hash"] = tx_hash
        if user_op_hash:
            fields["user_op_hash"] = user_op_hash
        record = await self._transition(coin_id, CoinStatus.PENDING, fields)
        self.logger.warning(f"Coin {coin_id} needs reconciliation: {reason}")
        return record

    async def mark_registered(
        self,
        coin_id: str,
        *,
        registry_tx_hash: str | None = None,
        registered_at: int | None = None,
    ) -> CoinRecord:
        """Stamp ``registered_at`` on an active record.

        ``registry_tx_hash`` is None when the coin was found already registered.
        """
        current = await self._load(coin_id)
        if current.status != CoinStatus.ACTIVE:
            raise InvalidTransitionError(coin_id, current.status, "registered")
        fields: dict[str, Any] = {"registered_at": int(registered_at or time.time())}
        if registry_tx_hash:
            fields["registry_tx_hash"] = registry_tx_hash
        record = await self._transition(coin_id, CoinStatus.ACTIVE, fields)
        self.logger.info(f"Coin {coin_id} registered ({registry_tx_hash or 'known'})")
        return record

    async def settle_safely(
        self,
        coin_id: str,
        *,
        address: str,
        chain_id: int,
        created_at: int,
        tx_hash: str,
    ) -> CoinRecord:
        """``mark_active`` that surfaces store failures as ``LedgerUpdateError``.

        Used once the chain has already succeeded, so the caller always gets the
        hash and address needed to re-run reconciliation.
        """
        try:
            return await self.mark_active(
                coin_id,
                address=address,
                chain_id=chain_id,
                created_at=created_at,
                tx_hash=tx_hash,
            )
        except InvalidTransitionError:
            raise
        except Exception as exc:
            self.logger.error(
                f"Ledger patch for coin {coin_id} failed after on-chain success "
                f"(tx={tx_hash}, address={address}): {exc}"
            )
            raise LedgerUpdateError(
                coin_id, tx_hash=tx_hash, address=address, cause=exc
            ) from exc
