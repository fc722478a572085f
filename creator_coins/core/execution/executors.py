from typing import Protocol

from loguru import logger

from creator_coins.core.clients.protocols import BundlerProtocol
from creator_coins.core.constants.base import DEFAULT_USER_OPERATION_TIMEOUT
from creator_coins.core.constants.contracts import (
    ENTRY_POINT_V06,
    SIMPLE_ACCOUNT_FACTORY_V06,
)
from creator_coins.core.errors import (
    CoinPipelineError,
    ConfirmationTimeoutError,
    SignerRejectedError,
    SubmissionError,
    TransactionRevertedError,
)
from creator_coins.core.models import ExecutionMode, PreparedCall
from creator_coins.core.utils.abi import as_bytes
from creator_coins.core.utils.retry import poll_until
from creator_coins.core.utils.transaction import (
    SignCallback,
    is_signer_rejection,
    normalize_tx_hash,
    send_transaction,
    suggest_fees,
)
from creator_coins.core.utils.user_operation import (
    SignUserOpHash,
    UserOperation,
    build_execute_call_data,
    build_init_code,
    get_entry_point_nonce,
    is_contract_deployed,
    user_operation_hash,
)


class Executor(Protocol):
    """Submits a prepared call and returns the on-chain transaction hash.

    Waiting for the receipt is left to the caller so both variants converge on
    the same confirmation path. ``sender`` is the address the chain will see as
    ``msg.sender`` when the executor fixes it, else None.
    """

    mode: ExecutionMode
    sender: str | None

    async def submit(self, call: PreparedCall) -> str: ...

    async def find_transaction(self, user_op_hash: str) -> str | None: ...


class DirectExecutor:
    """The caller's own wallet signs and pays for gas."""

    mode = ExecutionMode.DIRECT
    sender = None

    def __init__(self, sign_callback: SignCallback):
        self.sign_callback = sign_callback
        self.logger = logger.bind(executor=self.mode.value)

    async def submit(self, call: PreparedCall) -> str:
        self.logger.info(f"Submitting {call.function_name} to {call.to}")
        try:
            return await send_transaction(
                call.to_transaction(), self.sign_callback, wait_for_receipt=False
            )
        except CoinPipelineError:
            raise
        except Exception as exc:
            if is_signer_rejection(exc):
                raise SignerRejectedError(str(exc)) from exc
            raise SubmissionError(
                f"Failed to submit {call.function_name}: {exc}"
            ) from exc

    async def find_transaction(self, user_op_hash: str) -> str | None:
        raise SubmissionError(
            f"User operation {user_op_hash} is unresolved and a direct executor "
            "cannot query the bundler; retry in sponsored mode or reconcile"
        )


class SponsoredExecutor:
    """Routes the call through the creator's smart account; a paymaster pays gas.

    When ``owner`` is given and the account has no code yet, the first user
    operation carries the SimpleAccountFactory ``initCode`` that deploys it.
    """

    mode = ExecutionMode.SPONSORED

    def __init__(
        self,
        bundler: BundlerProtocol,
        sign_user_op_hash: SignUserOpHash,
        smart_account: str,
        *,
        owner: str | None = None,
        account_factory: str = SIMPLE_ACCOUNT_FACTORY_V06,
        account_salt: int = 0,
        entry_point: str = ENTRY_POINT_V06,
        user_operation_timeout: float = DEFAULT_USER_OPERATION_TIMEOUT,
        poll_interval: float = 1.0,
    ):
        self.bundler = bundler
        self.sign_user_op_hash = sign_user_op_hash
        self.smart_account = smart_account
        self.owner = owner
        self.account_factory = account_factory
        self.account_salt = account_salt
        self.entry_point = entry_point
        self.user_operation_timeout = user_operation_timeout
        self.poll_interval = poll_interval
        self.logger = logger.bind(executor=self.mode.value)

    @property
    def sender(self) -> str:
        return self.smart_account

    async def _init_code(self, chain_id: int) -> bytes:
        if await is_contract_deployed(chain_id, self.smart_account):
            return b""
        if not self.owner:
            raise SubmissionError(
                f"Smart account {self.smart_account} is not deployed on chain "
                f"{chain_id} and no owner is configured to deploy it"
            )
        self.logger.info(
            f"Smart account {self.smart_account} not deployed yet, "
            f"deploying it through {self.account_factory}"
        )
        return build_init_code(self.account_factory, self.owner, self.account_salt)

    async def build_user_operation(self, call: PreparedCall) -> UserOperation:
        chain_id = call.chain_id
        init_code = await self._init_code(chain_id)
        nonce = await get_entry_point_nonce(
            chain_id, self.entry_point, self.smart_account
        )
        max_fee, priority_fee = await suggest_fees(chain_id)
        op = UserOperation(
            sender=self.smart_account,
            nonce=nonce,
            init_code=init_code,
            call_data=build_execute_call_data(call.to, call.value, call.data),
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=priority_fee,
        )

        stub = await self.bundler.get_paymaster_stub_data(
            op.to_rpc(), self.entry_point, chain_id
        )
        op = op.with_paymaster(stub or {})
        estimate = await self.bundler.estimate_user_operation_gas(
            op.to_rpc(), self.entry_point
        )
        op = op.with_gas_estimate(estimate or {})
        sponsorship = await self.bundler.get_paymaster_data(
            op.to_rpc(), self.entry_point, chain_id
        )
        return op.with_paymaster(sponsorship or {})

    async def _sign(self, op: UserOperation, chain_id: int) -> UserOperation:
        op_hash = user_operation_hash(op, self.entry_point, chain_id)
        try:
            signature = await self.sign_user_op_hash(op_hash)
        except Exception as exc:
            if is_signer_rejection(exc):
                raise SignerRejectedError(str(exc)) from exc
            raise SubmissionError(f"Failed to sign user operation: {exc}") from exc
        return op.model_copy(update={"signature": as_bytes(signature)})

    def _bundle_transaction(self, user_op_hash: str, receipt: dict) -> str:
        bundle_receipt = receipt.get("receipt") or {}
        tx_hash = normalize_tx_hash(bundle_receipt.get("transactionHash") or "")
        if receipt.get("success") is False:
            raise TransactionRevertedError(
                tx_hash,
                bundle_receipt,
                message=f"User operation {user_op_hash} reverted in {tx_hash}",
            )
        self.logger.info(f"User operation {user_op_hash} bundled in {tx_hash}")
        return tx_hash

    async def submit(self, call: PreparedCall) -> str:
        self.logger.info(
            f"Submitting sponsored {call.function_name} to {call.to} "
            f"via smart account {self.smart_account}"
        )
        try:
            op = await self.build_user_operation(call)
            op = await self._sign(op, call.chain_id)
            user_op_hash = await self.bundler.send_user_operation(
                op.to_rpc(), self.entry_point
            )
        except CoinPipelineError:
            raise
        except Exception as exc:
            raise SubmissionError(
                f"Failed to submit sponsored {call.function_name}: {exc}"
            ) from exc
        self.logger.info(f"User operation sent: {user_op_hash}")

        receipt = await poll_until(
            lambda: self.bundler.get_user_operation_receipt(user_op_hash),
            timeout_s=self.user_operation_timeout,
            interval_s=self.poll_interval,
        )
        if receipt is None:
            raise ConfirmationTimeoutError(
                None,
                timeout=self.user_operation_timeout,
                user_op_hash=user_op_hash,
            )
        return self._bundle_transaction(user_op_hash, receipt)

    async def find_transaction(self, user_op_hash: str) -> str | None:
        """Bundle transaction of an earlier user operation.

        Returns None when the bundler no longer knows the operation, so it can
        be submitted again. Raises ``ConfirmationTimeoutError`` while it still
        waits in the mempool and ``TransactionRevertedError`` if it reverted.
        """
        receipt = await self.bundler.get_user_operation_receipt(user_op_hash)
        if receipt is not None:
            return self._bundle_transaction(user_op_hash, receipt)
        if await self.bundler.get_user_operation_by_hash(user_op_hash) is not None:
            raise ConfirmationTimeoutError(None, user_op_hash=user_op_hash)
        self.logger.warning(f"User operation {user_op_hash} was dropped by the bundler")
        return None


def build_executor(
    mode: ExecutionMode | str,
    *,
    sign_callback: SignCallback | None = None,
    bundler: BundlerProtocol | None = None,
    sign_user_op_hash: SignUserOpHash | None = None,
    smart_account: str | None = None,
    owner: str | None = None,
    entry_point: str = ENTRY_POINT_V06,
    user_operation_timeout: float = DEFAULT_USER_OPERATION_TIMEOUT,
) -> Executor:
    mode = ExecutionMode(mode)
    if mode == ExecutionMode.DIRECT:
        if sign_callback is None:
            raise ValueError("direct execution requires a sign_callback")
        return DirectExecutor(sign_callback)
    if bundler is None or sign_user_op_hash is None or not smart_account:
        raise ValueError(
            "sponsored execution requires a bundler, a user-op signer "
            "and a smart account"
        )
    return SponsoredExecutor(
        bundler,
        sign_user_op_hash,
        smart_account,
        owner=owner,
        entry_point=entry_point,
        user_operation_timeout=user_operation_timeout,
    )
