from __future__ import annotations

from typing import Any

from loguru import logger

from creator_coins.adapters.activity_tracker_adapter.adapter import (
    ActivityTrackerAdapter,
)
from creator_coins.adapters.coin_factory_adapter.adapter import CoinFactoryAdapter
from creator_coins.core.clients.protocols import LedgerStore
from creator_coins.core.config import PipelineSettings
from creator_coins.core.constants.contracts import ZERO_ADDRESS
from creator_coins.core.errors import (
    ConfirmationTimeoutError,
    InvalidTransitionError,
    PreconditionError,
    ReceiptDecodeError,
    SignerRejectedError,
    SimulationRevertedError,
    SubmissionError,
    TransactionRevertedError,
)
from creator_coins.core.execution.executors import Executor
from creator_coins.core.ledger.reconciler import LedgerReconciler
from creator_coins.core.models import (
    CoinRecord,
    CoinStatus,
    DecodedCoin,
    DeploymentOutcome,
    DeploymentRequest,
    ExecutionReceipt,
)
from creator_coins.core.utils.metadata import MetadataPackager
from creator_coins.core.utils.receipts import decode_coin_created
from creator_coins.core.utils.salt import salt_hex
from creator_coins.core.utils.transaction import (
    get_block_timestamp,
    wait_for_transaction_receipt,
)
from creator_coins.core.utils.units import explorer_url


class CoinDeploymentPipeline:
    """Deploys a creator coin and keeps the ledger consistent with the chain.

    Steps run strictly in order: look up the salt, write the pending record,
    build the call, check the paired-currency balance, simulate, submit, wait,
    decode the receipt and patch the record. The record always exists before
    anything is signed, and it only becomes ``active`` once the coin address
    has been decoded from the receipt.

    A retried request hashes to the same salt, so it finds the earlier record
    instead of deploying twice.
    """

    def __init__(
        self,
        settings: PipelineSettings,
        store: LedgerStore,
        *,
        factory: CoinFactoryAdapter | None = None,
        activity_tracker: ActivityTrackerAdapter | None = None,
        metadata: MetadataPackager | None = None,
    ):
        self.settings = settings
        self.store = store
        self.reconciler = LedgerReconciler(store)
        self.factory = factory or CoinFactoryAdapter(settings)
        self.activity_tracker = activity_tracker
        self.metadata = metadata
        self.logger = logger.bind(pipeline="deployment")

    @property
    def chain_id(self) -> int:
        return self.settings.chain_id

    async def publish(
        self,
        executor: Executor,
        *,
        creator: str,
        name: str,
        symbol: str,
        description: str | None = None,
        image: str | None = None,
        external_url: str | None = None,
        **request_fields: Any,
    ) -> DeploymentOutcome:
        """Pin the metadata document, then deploy against the returned URI."""
        if self.metadata is None:
            raise ValueError("publish requires a MetadataPackager")
        metadata_uri = await self.metadata.upload(
            name, symbol, description, image, external_url
        )
        request = DeploymentRequest(
            creator=creator,
            name=name,
            symbol=symbol,
            metadata_uri=metadata_uri,
            execution_mode=executor.mode,
            **request_fields,
        )
        return await self.deploy(request, executor)

    async def _existing_attempt(
        self, request: DeploymentRequest, executor: Executor
    ) -> tuple[CoinRecord | None, DeploymentOutcome | None]:
        existing = await self.store.find_coin_by_salt(salt_hex(request.salt))
        if existing is None or existing.status == CoinStatus.FAILED:
            return None, None
        if existing.status == CoinStatus.ACTIVE:
            self.logger.info(
                f"{request.symbol} already deployed at {existing.address}, reusing"
            )
            return existing, DeploymentOutcome(
                coin=existing,
                transaction_hash=existing.tx_hash,
                address=existing.address,
                reused=True,
            )

        tx_hash = existing.tx_hash
        if not tx_hash and existing.user_op_hash:
            tx_hash = await self._bundled_transaction(existing, executor)
        if tx_hash:
            self.logger.info(
                f"{request.symbol} has an in-flight attempt {tx_hash}, "
                "reconciling instead of resubmitting"
            )
            outcome = await self.reconcile(existing.id, tx_hash)
            return existing, outcome.model_copy(update={"reused": True})
        return existing, None

    async def _bundled_transaction(
        self, record: CoinRecord, executor: Executor
    ) -> str | None:
        """Ask the bundler what became of the user operation that timed out.

        None means the bundler dropped it and the coin may be submitted again.
        """
        try:
            return await executor.find_transaction(record.user_op_hash)
        except TransactionRevertedError as exc:
            await self.reconciler.mark_failed(record.id, str(exc), tx_hash=exc.tx_hash)
            raise

    async def deploy(
        self, request: DeploymentRequest, executor: Executor
    ) -> DeploymentOutcome:
        log = self.logger.bind(symbol=request.symbol, mode=str(executor.mode))
        log.info(f"Deploying {request.name} ({request.symbol}) for {request.creator}")

        existing, outcome = await self._existing_attempt(request, executor)
        if outcome is not None:
            return outcome
        record = existing or await self.reconciler.open_pending(
            request, chain_id=self.chain_id
        )

        try:
            call = self.factory.build_deploy_call(request)
            await self.factory.check_paired_currency_balance(request)
            predicted = await self.factory.simulate_deploy(call)
        except SimulationRevertedError as exc:
            if record.needs_reconciliation:
                # an earlier attempt may have used the salt
                await self.reconciler.flag_for_reconciliation(record.id, str(exc))
            else:
                await self.reconciler.mark_failed(record.id, str(exc))
            raise
        except (PreconditionError, ValueError) as exc:
            await self.reconciler.mark_failed(record.id, str(exc))
            raise
        log.info(f"Simulation passed, predicted coin {predicted}")

        try:
            tx_hash = await executor.submit(call)
        except SignerRejectedError:
            log.warning(f"Signer rejected deployment of coin {record.id}")
            raise
        except ConfirmationTimeoutError as exc:
            await self.reconciler.flag_for_reconciliation(
                record.id,
                str(exc),
                tx_hash=exc.tx_hash,
                user_op_hash=exc.user_op_hash,
            )
            raise
        except TransactionRevertedError as exc:
            await self.reconciler.mark_failed(record.id, str(exc), tx_hash=exc.tx_hash)
            raise
        except SubmissionError as exc:
            log.error(f"Submission of coin {record.id} failed: {exc}")
            raise

        await self.reconciler.attach_transaction(record.id, tx_hash)
        outcome = await self._confirm(record.id, tx_hash)
        return await self._register(request, outcome)

    async def _register(
        self, request: DeploymentRequest, outcome: DeploymentOutcome
    ) -> DeploymentOutcome:
        """Record the coin on the activity tracker and stamp ``registered_at``.

        A post-deploy hook pointing at the tracker registers the coin inside the
        deployment itself. Registration is auxiliary: a failure is logged and
        left for the batch registration run.
        """
        hook, _ = self.factory.resolve_post_deploy_hook(request)
        tracker = self.settings.activity_tracker_address
        if tracker and hook.lower() == tracker.lower():
            registry_tx = outcome.transaction_hash
        elif self.activity_tracker is not None and hook == ZERO_ADDRESS:
            registry_tx = await self.activity_tracker.record_coin_creation(
                outcome.address,
                request.creator,
                request.content_url or request.metadata_uri,
                request.name,
                request.symbol,
            )
            outcome = outcome.model_copy(update={"activity_tx_hash": registry_tx})
        else:
            return outcome
        if not registry_tx:
            return outcome

        try:
            record = await self.reconciler.mark_registered(
                outcome.coin.id, registry_tx_hash=registry_tx
            )
        except Exception as exc:
            self.logger.warning(
                f"Coin {outcome.coin.id} registered in {registry_tx} "
                f"but the ledger stamp failed: {exc}"
            )
            return outcome
        return outcome.model_copy(update={"coin": record})

    async def _confirm(self, coin_id: str, tx_hash: str) -> DeploymentOutcome:
        try:
            receipt = await wait_for_transaction_receipt(
                self.chain_id,
                tx_hash,
                timeout=self.settings.transaction_timeout,
                confirmations=self.settings.confirmations,
            )
        except ConfirmationTimeoutError as exc:
            await self.reconciler.flag_for_reconciliation(
                coin_id, str(exc), tx_hash=tx_hash
            )
            raise
        except TransactionRevertedError as exc:
            await self.reconciler.mark_failed(coin_id, str(exc), tx_hash=tx_hash)
            raise

        decoded = decode_coin_created(
            receipt, factory_address=self.settings.factory_address
        )
        block_number = int(receipt.get("blockNumber") or 0)
        if not isinstance(decoded, DecodedCoin):
            await self.reconciler.flag_for_reconciliation(
                coin_id, f"receipt decode failed: {decoded.reason}", tx_hash=tx_hash
            )
            raise ReceiptDecodeError(tx_hash, decoded.reason)

        timestamp = await get_block_timestamp(self.chain_id, block_number)
        execution = ExecutionReceipt(
            transaction_hash=tx_hash,
            block_number=block_number,
            block_timestamp=timestamp,
            decoded=decoded,
        )
        record = await self.reconciler.settle_safely(
            coin_id,
            address=decoded.address,
            chain_id=self.chain_id,
            created_at=timestamp,
            tx_hash=tx_hash,
        )
        self.logger.info(
            f"Coin {coin_id} deployed at {execution.deployed_address} "
            f"({execution.event_schema_matched}): "
            f"{explorer_url(self.chain_id, address=execution.deployed_address)}"
        )
        return DeploymentOutcome(
            coin=record, transaction_hash=tx_hash, address=decoded.address
        )

    async def reconcile(self, coin_id: str, tx_hash: str) -> DeploymentOutcome:
        """Settle a record from its transaction hash alone.

        Safe to re-run: an already active record is returned unchanged, and a
        pending one is driven through the same confirm path as a fresh deploy.
        """
        record = await self.store.get_coin(coin_id)
        if record is None:
            raise KeyError(f"Coin not found: {coin_id}")
        if record.chain_id is not None and record.chain_id != self.chain_id:
            raise PreconditionError(
                f"Coin {coin_id} was opened on chain {record.chain_id}, "
                f"not on the configured chain {self.chain_id}"
            )
        if record.status == CoinStatus.ACTIVE:
            if record.tx_hash and record.tx_hash.lower() != tx_hash.lower():
                raise InvalidTransitionError(
                    coin_id, f"active (tx {record.tx_hash})", f"active (tx {tx_hash})"
                )
            return DeploymentOutcome(
                coin=record,
                transaction_hash=record.tx_hash,
                address=record.address,
                reused=True,
            )
        if record.status == CoinStatus.FAILED:
            raise InvalidTransitionError(coin_id, record.status, CoinStatus.ACTIVE)

        self.logger.info(f"Reconciling coin {coin_id} from {tx_hash}")
        await self.reconciler.attach_transaction(coin_id, tx_hash)
        return await self._confirm(coin_id, tx_hash)
