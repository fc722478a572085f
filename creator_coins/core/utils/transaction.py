import asyncio
import math
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from eth_account import Account
from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted

from creator_coins.core.constants.base import (
    DEFAULT_CONFIRMATIONS,
    DEFAULT_TRANSACTION_TIMEOUT,
    GAS_BUFFER_MULTIPLIER,
    MAX_BASE_FEE_GROWTH_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)
from creator_coins.core.errors import (
    ConfirmationTimeoutError,
    SignerRejectedError,
    SimulationRevertedError,
    TransactionRevertedError,
)
from creator_coins.core.models import PreparedCall
from creator_coins.core.utils.abi import decode_function_result, encode_function_data
from creator_coins.core.utils.web3 import (
    get_transaction_chain_id,
    web3_from_chain_id,
    web3s_from_chain_id,
)

SignCallback = Callable[[dict], Awaitable[bytes]]

T = TypeVar("T")

# EIP-1193 "user rejected request"
_USER_REJECTED_CODE = 4001
_USER_REJECTED_MARKERS = ("user rejected", "user denied")


def is_signer_rejection(exc: BaseException) -> bool:
    if isinstance(exc, SignerRejectedError):
        return True
    if getattr(exc, "code", None) == _USER_REJECTED_CODE:
        return True
    text = str(exc).lower()
    return any(marker in text for marker in _USER_REJECTED_MARKERS)


def normalize_tx_hash(txn_hash: str | bytes) -> str:
    if isinstance(txn_hash, (bytes, bytearray)):
        return "0x" + bytes(txn_hash).hex()
    txn_hash = str(txn_hash)
    return txn_hash if txn_hash.startswith("0x") else f"0x{txn_hash}"


async def _across_rpcs(
    chain_id: int, query: Callable[[AsyncWeb3], Awaitable[T]]
) -> list[T]:
    async with web3s_from_chain_id(chain_id) as web3s:
        return list(await asyncio.gather(*(query(web3) for web3 in web3s)))


def _sender(transaction: dict) -> str:
    try:
        return AsyncWeb3.to_checksum_address(transaction["from"])
    except KeyError:
        raise ValueError("Transaction does not contain from address") from None


async def nonce_transaction(transaction: dict) -> dict:
    """Fill ``nonce`` with the highest pending count any RPC reports."""
    sender = _sender(transaction)
    counts = await _across_rpcs(
        get_transaction_chain_id(transaction),
        lambda web3: web3.eth.get_transaction_count(sender, "pending"),
    )
    return {**transaction, "nonce": max(counts)}


async def _fee_sample(web3: AsyncWeb3) -> tuple[int, int]:
    block = await web3.eth.get_block("latest")
    history = await web3.eth.fee_history(10, "latest", [80])
    tips = [reward[0] for reward in history["reward"]]
    return int(block["baseFeePerGas"]), sum(tips) // max(len(tips), 1)


async def suggest_fees(chain_id: int) -> tuple[int, int]:
    """Return ``(maxFeePerGas, maxPriorityFeePerGas)`` for an EIP-1559 chain."""
    samples = await _across_rpcs(chain_id, _fee_sample)
    base_fee = max(base for base, _ in samples)
    tip = int(max(t for _, t in samples) * SUGGESTED_PRIORITY_FEE_MULTIPLIER)
    return int(base_fee * MAX_BASE_FEE_GROWTH_MULTIPLIER + tip), tip


async def gas_price_transaction(transaction: dict) -> dict:
    max_fee, tip = await suggest_fees(get_transaction_chain_id(transaction))
    return {**transaction, "maxFeePerGas": max_fee, "maxPriorityFeePerGas": tip}


async def gas_limit_transaction(transaction: dict) -> dict:
    # an existing limit would cap the estimate
    unbounded = {k: v for k, v in transaction.items() if k != "gas"}

    async def _estimate(web3: AsyncWeb3) -> int:
        try:
            return await web3.eth.estimate_gas(unbounded, block_identifier="latest")
        except Exception as exc:
            logger.info(f"Gas estimate via {web3.provider.endpoint_uri} failed: {exc}")
            return 0

    estimate = max(
        await _across_rpcs(get_transaction_chain_id(transaction), _estimate)
    )
    if not estimate:
        logger.error("Gas estimation failed on all RPCs")
        raise RuntimeError("Gas estimation failed on all RPCs")
    return {**unbounded, "gas": math.ceil(estimate * GAS_BUFFER_MULTIPLIER)}


async def broadcast_transaction(chain_id: int, signed_transaction: bytes) -> str:
    async with web3_from_chain_id(chain_id) as web3:
        return normalize_tx_hash(
            await web3.eth.send_raw_transaction(signed_transaction)
        )


async def _first_receipt(
    web3s: list[AsyncWeb3], txn_hash: str, poll_interval: float, timeout: int
) -> dict:
    waiters = [
        asyncio.create_task(
            web3.eth.wait_for_transaction_receipt(
                txn_hash, poll_latency=poll_interval, timeout=timeout
            )
        )
        for web3 in web3s
    ]
    try:
        done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        return dict(next(iter(done)).result())
    finally:
        for waiter in waiters:
            waiter.cancel()


async def wait_for_transaction_receipt(
    chain_id: int,
    txn_hash: str,
    poll_interval: float = 0.5,
    timeout: int = DEFAULT_TRANSACTION_TIMEOUT,
    confirmations: int = DEFAULT_CONFIRMATIONS,
) -> dict:
    """Wait until ``txn_hash`` is mined with ``confirmations`` blocks on top.

    Raises ``ConfirmationTimeoutError`` if no receipt shows up in time and
    ``TransactionRevertedError`` if the transaction mined with status 0.
    """
    txn_hash = normalize_tx_hash(txn_hash)
    async with web3s_from_chain_id(chain_id) as web3s:
        try:
            receipt = await _first_receipt(web3s, txn_hash, poll_interval, timeout)
        except TimeExhausted as exc:
            raise ConfirmationTimeoutError(txn_hash, timeout=timeout) from exc
        if receipt.get("status") == 0:
            raise TransactionRevertedError(txn_hash, receipt)

        confirmed_at = receipt["blockNumber"] + confirmations - 1
        while True:
            heads = await asyncio.gather(*(web3.eth.block_number for web3 in web3s))
            if max(heads) >= confirmed_at:
                return receipt
            await asyncio.sleep(poll_interval)


async def get_block_timestamp(chain_id: int, block_number: int) -> int:
    async with web3_from_chain_id(chain_id) as web3:
        return int((await web3.eth.get_block(block_number))["timestamp"])


def _revert_error(txn_hash: str, receipt: dict, gas_limit: int) -> Exception:
    gas_used = int(receipt.get("gasUsed") or 0)
    detail = ""
    if gas_used or gas_limit:
        detail = f" gasUsed={gas_used} gasLimit={gas_limit}"
        if gas_used and gas_limit and gas_used >= gas_limit:
            detail += " (likely out of gas)"
    return TransactionRevertedError(
        txn_hash,
        receipt,
        message=f"Transaction reverted (status=0): {txn_hash}{detail}",
    )


async def send_transaction(
    transaction: dict, sign_callback: SignCallback, wait_for_receipt: bool = True
) -> str:
    """Fill gas, nonce and fees, sign, broadcast and optionally wait.

    A wallet refusal surfaces as ``SignerRejectedError`` before anything is
    broadcast.
    """
    if sign_callback is None:
        raise ValueError("sign_callback must be provided to send transaction")

    chain_id = get_transaction_chain_id(transaction)
    log = logger.bind(chain_id=chain_id, to=transaction.get("to"))
    for fill in (gas_limit_transaction, nonce_transaction, gas_price_transaction):
        transaction = await fill(transaction)
    try:
        raw = await sign_callback(transaction)
    except Exception as exc:
        if is_signer_rejection(exc):
            raise SignerRejectedError(str(exc)) from exc
        raise

    txn_hash = await broadcast_transaction(chain_id, raw)
    log.info(f"Broadcast {txn_hash} (nonce={transaction.get('nonce')})")
    if not wait_for_receipt:
        return txn_hash
    try:
        await wait_for_transaction_receipt(chain_id, txn_hash)
    except TransactionRevertedError as exc:
        gas_limit = int(transaction.get("gas") or 0)
        raise _revert_error(txn_hash, exc.receipt, gas_limit) from exc
    return txn_hash


def local_sign_callback(private_key: str) -> SignCallback:
    account = Account.from_key(private_key)

    async def sign_callback(tx: dict) -> bytes:
        return account.sign_transaction(tx).raw_transaction

    return sign_callback


async def sign_and_send_transaction(
    transaction: dict, private_key: str, wait_for_receipt: bool = True
) -> str:
    return await send_transaction(
        transaction, local_sign_callback(private_key), wait_for_receipt
    )


def encode_call(
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: list[Any],
    from_address: str,
    chain_id: int,
    value: int = 0,
) -> PreparedCall:
    return PreparedCall(
        chain_id=int(chain_id),
        from_address=AsyncWeb3.to_checksum_address(from_address),
        to=AsyncWeb3.to_checksum_address(target),
        data=encode_function_data(abi, fn_name, args),
        value=int(value),
        function_name=fn_name,
        args=list(args),
    )


async def simulate_call(
    call: PreparedCall, abi: list[dict[str, Any]] | None = None
) -> tuple[Any, ...]:
    """Dry-run ``call`` with ``eth_call`` against the latest block.

    Returns the decoded return values when ``abi`` is given. A revert raises
    ``SimulationRevertedError`` with the revert reason when the node supplies one.
    """
    async with web3_from_chain_id(call.chain_id) as web3:
        try:
            raw = await web3.eth.call(call.to_transaction(), block_identifier="latest")
        except ContractLogicError as exc:
            reason = getattr(exc, "message", None) or str(exc)
            logger.warning(f"Simulation of {call.function_name} reverted: {reason}")
            raise SimulationRevertedError(call.function_name, reason) from exc

    if abi is None:
        return ()
    return decode_function_result(abi, call.function_name, raw)
