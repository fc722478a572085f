from typing import Any

import pytest
from eth_abi import encode as abi_encode
from eth_utils import collapse_if_tuple
from hexbytes import HexBytes

from creator_coins.core.config import PipelineSettings
from creator_coins.core.constants.chains import CHAIN_ID_BASE_SEPOLIA
from creator_coins.core.constants.contracts import (
    COIN_FACTORY,
    DEFAULT_PLATFORM_REFERRER,
)
from creator_coins.core.ledger.db import CoinLedgerDB
from creator_coins.core.models import DeploymentRequest
from creator_coins.core.utils.abi import event_topic

CREATOR = "0x1111111111111111111111111111111111111111"
TRACKER = "0x71875350bD4fC5ACF47c4d3d19AEAa1023A63057"
COIN = "0x2222222222222222222222222222222222222222"
TX_HASH = "0x" + "ab" * 32


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: mark test as integration")


@pytest.fixture
def settings() -> PipelineSettings:
    return PipelineSettings(
        network="sepolia",
        chain_id=CHAIN_ID_BASE_SEPOLIA,
        factory_address=COIN_FACTORY,
        platform_referrer=DEFAULT_PLATFORM_REFERRER,
        activity_tracker_address=TRACKER,
        bundler_url="https://bundler.invalid/rpc",
        earnings_api_base_url="https://earnings.invalid",
        transaction_timeout=5,
        user_operation_timeout=5,
    )


@pytest.fixture
def deployment_request() -> DeploymentRequest:
    return DeploymentRequest(
        creator=CREATOR,
        name="Alice Coin",
        symbol="ALICE",
        metadata_uri="ipfs://bafkreialice",
        execution_mode="direct",
    )


@pytest.fixture
def ledger():
    db = CoinLedgerDB(":memory:")
    yield db
    db.close()


def coin_created_values(coin: str = COIN, **overrides: Any) -> dict[str, Any]:
    """Field values covering every factory creation event shape."""
    values: dict[str, Any] = {
        "caller": CREATOR,
        "payoutRecipient": CREATOR,
        "platformReferrer": DEFAULT_PLATFORM_REFERRER.lower(),
        "currency": "0x1111111111166b7fe7bd91427724b487980afc69",
        "uri": "ipfs://bafkreialice",
        "name": "Alice Coin",
        "symbol": "ALICE",
        "coin": coin,
        "poolKey": (
            "0x1111111111166b7fe7bd91427724b487980afc69",
            coin,
            30000,
            200,
            "0x0000000000000000000000000000000000000000",
        ),
        "poolKeyHash": b"\x01" * 32,
        "pool": "0x6666666666666666666666666666666666666666",
        "version": "1.0.0",
    }
    values.update(overrides)
    return values


def make_event_log(
    event_abi: dict[str, Any],
    values: dict[str, Any],
    *,
    address: str = COIN_FACTORY,
) -> dict[str, Any]:
    inputs = event_abi["inputs"]
    topics = [event_topic(event_abi)]
    for param in inputs:
        if param["indexed"]:
            topics.append(
                HexBytes(abi_encode([param["type"]], [values[param["name"]]]))
            )
    non_indexed = [p for p in inputs if not p["indexed"]]
    data = abi_encode(
        [collapse_if_tuple(p) for p in non_indexed],
        [values[p["name"]] for p in non_indexed],
    )
    return {"address": address, "topics": topics, "data": HexBytes(data)}


def make_receipt(logs: list[dict[str, Any]], **fields: Any) -> dict[str, Any]:
    return {
        "status": 1,
        "blockNumber": 1234,
        "transactionHash": TX_HASH,
        "logs": logs,
        **fields,
    }
