from typing import Any


class CoinPipelineError(Exception):
    """Base class for every failure raised by the deployment and settlement flows.

    ``tx_hash`` is set on every error raised after a transaction was submitted,
    so callers can always tell whether gas was spent.
    """

    tx_hash: str | None = None

    def __init__(self, message: str, *, tx_hash: str | None = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class PreconditionError(CoinPipelineError):
    pass


class InsufficientPairedCurrencyError(PreconditionError):
    def __init__(self, token: str, owner: str, hint: str | None = None):
        self.token = token
        self.owner = owner
        self.hint = hint
        message = f"{owner} holds no balance of paired currency {token}"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class InvalidRecipientError(PreconditionError):
    def __init__(self, recipient: str):
        self.recipient = recipient
        super().__init__(f"Invalid recipient address: {recipient!r}")


class NoEarningsError(PreconditionError):
    def __init__(self, coin_address: str, detail: str | None = None):
        self.coin_address = coin_address
        super().__init__(
            detail or f"No earnings available to withdraw for {coin_address}"
        )


class SimulationRevertedError(CoinPipelineError):
    def __init__(self, function_name: str, reason: str | None = None):
        self.function_name = function_name
        self.reason = reason
        super().__init__(
            f"Simulation of {function_name} reverted: {reason or 'unknown reason'}"
        )


class SubmissionError(CoinPipelineError):
    pass


class SignerRejectedError(SubmissionError):
    def __init__(self, message: str = "Signer rejected the request"):
        super().__init__(message)


class ConfirmationTimeoutError(CoinPipelineError):
    """No receipt within the timeout. The transaction may still land.

    For sponsored submissions that were never bundled in time only
    ``user_op_hash`` is known.
    """

    def __init__(
        self,
        tx_hash: str | None,
        timeout: float | None = None,
        *,
        user_op_hash: str | None = None,
    ):
        self.timeout = timeout
        self.user_op_hash = user_op_hash
        suffix = f" after {timeout}s" if timeout is not None else ""
        super().__init__(
            f"Timed out waiting for confirmation of {tx_hash or user_op_hash}{suffix}",
            tx_hash=tx_hash,
        )


class TransactionRevertedError(CoinPipelineError):
    def __init__(
        self,
        tx_hash: str,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.receipt = receipt or {}
        super().__init__(message or f"Transaction reverted: {tx_hash}", tx_hash=tx_hash)

    @property
    def txn_hash(self) -> str | None:
        return self.tx_hash


class ReceiptDecodeError(CoinPipelineError):
    def __init__(self, tx_hash: str, reason: str):
        self.reason = reason
        super().__init__(
            f"Could not decode coin address from {tx_hash}: {reason}", tx_hash=tx_hash
        )


class LedgerUpdateError(CoinPipelineError):
    def __init__(
        self,
        coin_id: str,
        *,
        tx_hash: str | None = None,
        address: str | None = None,
        cause: Exception | None = None,
    ):
        self.coin_id = coin_id
        self.address = address
        self.cause = cause
        super().__init__(
            f"Ledger update failed for coin {coin_id} "
            f"(tx={tx_hash}, address={address}): {cause}",
            tx_hash=tx_hash,
        )


class InvalidTransitionError(CoinPipelineError):
    def __init__(self, coin_id: str, current: str, target: str):
        self.coin_id = coin_id
        self.current = current
        self.target = target
        super().__init__(f"Coin {coin_id} cannot move from {current} to {target}")


class MetadataUploadFailed(CoinPipelineError):
    def __init__(self, primary_error: Exception, fallback_error: Exception | None):
        self.primary_error = primary_error
        self.fallback_error = fallback_error
        super().__init__(
            f"Metadata upload failed (primary: {primary_error}; "
            f"fallback: {fallback_error or 'not configured'})"
        )
