from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator

from creator_coins.core.constants.base import (
    EXECUTION_MODE_DIRECT,
    EXECUTION_MODE_SPONSORED,
)
from creator_coins.core.constants.contracts import ZORA_TOKEN
from creator_coins.core.utils.salt import compute_salt


class CoinStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    FAILED = "failed"


class ExecutionMode(StrEnum):
    SPONSORED = EXECUTION_MODE_SPONSORED
    DIRECT = EXECUTION_MODE_DIRECT


class PoolCurrency(StrEnum):
    ZORA = "zora"
    ETH = "eth"


class CoinRecord(BaseModel):
    id: str
    name: str
    symbol: str
    metadata_uri: str
    creator_wallet: str
    status: CoinStatus = CoinStatus.PENDING
    address: str | None = None
    chain_id: int | None = None
    created_at: int
    registered_at: int | None = None
    salt: str | None = None
    # once set, never cleared
    tx_hash: str | None = None
    failure_reason: str | None = None
    needs_reconciliation: bool = False
    # sponsored attempt that timed out before it was bundled
    user_op_hash: str | None = None
    registry_tx_hash: str | None = None

    def invariant_violation(self) -> str | None:
        if self.status == CoinStatus.ACTIVE and not self.address:
            return "active record without an address"
        if self.status == CoinStatus.PENDING and self.address:
            return "pending record with an address"
        if self.registered_at is not None and self.status != CoinStatus.ACTIVE:
            return "registered record that is not active"
        return None


# which record owns a salt when several share it
_SALT_PRECEDENCE = {CoinStatus.FAILED: 0, CoinStatus.PENDING: 1, CoinStatus.ACTIVE: 2}


def _salt_rank(indexed: tuple[int, CoinRecord]) -> tuple[int, int, int]:
    position, record = indexed
    return _SALT_PRECEDENCE[record.status], record.created_at, position


def salt_owner(records: list[CoinRecord]) -> CoinRecord | None:
    """Active before pending before failed, then the newest record."""
    if not records:
        return None
    return max(enumerate(records), key=_salt_rank)[1]


class DeploymentRequest(BaseModel):
    creator: str
    name: str
    symbol: str
    metadata_uri: str
    platform_referrer: str | None = None
    execution_mode: ExecutionMode = ExecutionMode.SPONSORED
    pool_currency: PoolCurrency = PoolCurrency.ZORA
    content_url: str | None = None
    use_activity_tracker: bool = False
    post_deploy_hook: str | None = None
    post_deploy_hook_data: bytes = b""

    @field_validator("name", "symbol", "metadata_uri")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @property
    def salt(self) -> bytes:
        return compute_salt(self.creator, self.name, self.symbol, self.metadata_uri)


class PreparedCall(BaseModel):
    chain_id: int
    from_address: str
    to: str
    data: str
    value: int = 0
    function_name: str
    args: list[Any] = []

    def to_transaction(self) -> dict[str, Any]:
        return {
            "chainId": int(self.chain_id),
            "from": self.from_address,
            "to": self.to,
            "data": self.data,
            "value": int(self.value),
        }


class DecodedCoin(BaseModel):
    kind: Literal["decoded"] = "decoded"
    schema_name: str
    address: str
    payout_recipient: str | None = None
    platform_referrer: str | None = None
    currency: str | None = None
    uri: str | None = None
    name: str | None = None
    symbol: str | None = None


class Undecoded(BaseModel):
    kind: Literal["undecoded"] = "undecoded"
    reason: str


DecodeResult = DecodedCoin | Undecoded


class ExecutionReceipt(BaseModel):
    transaction_hash: str
    block_number: int
    block_timestamp: int | None = None
    decoded: Annotated[DecodeResult, Field(discriminator="kind")]

    @property
    def deployed_address(self) -> str | None:
        if isinstance(self.decoded, DecodedCoin):
            return self.decoded.address
        return None

    @property
    def event_schema_matched(self) -> str | None:
        if isinstance(self.decoded, DecodedCoin):
            return self.decoded.schema_name
        return None


class PoolConfiguration(BaseModel):
    version: int = 4
    paired_currency: str = ZORA_TOKEN
    tick_lower: list[int] = [-138_000]
    tick_upper: list[int] = [-81_000]
    num_discovery_positions: list[int] = [11]
    max_discovery_supply_share: list[int] = [5 * 10**16]


class EarningsClaim(BaseModel):
    coin_address: str
    recipient: str
    amount: int
    execution_mode: ExecutionMode = ExecutionMode.SPONSORED


class WithdrawalResult(BaseModel):
    coin_address: str
    recipient: str
    amount: int
    transaction_hash: str
    block_number: int | None = None


class DeploymentOutcome(BaseModel):
    coin: CoinRecord
    transaction_hash: str | None = None
    address: str | None = None
    reused: bool = False
    activity_tx_hash: str | None = None
