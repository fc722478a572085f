import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from creator_coins.adapters.coin_factory_adapter import CoinFactoryAdapter
from creator_coins.cli import cli
from creator_coins.conftest import (
    COIN,
    CREATOR,
    TX_HASH,
    coin_created_values,
    make_event_log,
    make_receipt,
)
from creator_coins.core.config import CONFIG, set_config
from creator_coins.core.constants.factory_abi import CREATOR_COIN_CREATED_EVENT
from creator_coins.core.ledger.db import CoinLedgerDB
from creator_coins.core.ledger.reconciler import LedgerReconciler
from creator_coins.core.models import DeploymentRequest
from creator_coins.core.utils.salt import compute_salt, salt_hex


@pytest.fixture(autouse=True)
def empty_config(monkeypatch):
    monkeypatch.delenv("CREATOR_COINS_NETWORK", raising=False)
    saved = dict(CONFIG)
    set_config({})
    yield
    set_config(saved)


def _json(result) -> dict:
    assert result.exit_code in (0, 1), result.output
    return json.loads(result.stdout)


def test_salt_command():
    result = CliRunner().invoke(
        cli, ["salt", CREATOR, "Alice Coin", "ALICE", "ipfs://bafkreialice"]
    )
    assert result.exit_code == 0
    expected = salt_hex(
        compute_salt(CREATOR, "Alice Coin", "ALICE", "ipfs://bafkreialice")
    )
    assert _json(result)["result"]["salt"] == expected


def test_pool_config_command():
    result = CliRunner().invoke(
        cli, ["pool-config", "--network", "mainnet", "--currency", "eth"]
    )
    payload = _json(result)
    assert result.exit_code == 0
    assert payload["result"]["chain_id"] == 8453
    assert payload["result"]["pool_config"].startswith("0x")
    assert payload["result"]["decoded"]["max_discovery_supply_share"] == [10**18]


def test_decode_receipt_command():
    deployment = {"transaction_hash": TX_HASH, "decoded": {"address": COIN}}
    with patch.object(
        CoinFactoryAdapter,
        "get_deployment",
        new_callable=AsyncMock,
        return_value=(True, deployment),
    ) as mock_get:
        result = CliRunner().invoke(cli, ["decode-receipt", TX_HASH])

    assert result.exit_code == 0
    assert _json(result)["result"] == deployment
    mock_get.assert_awaited_once_with(TX_HASH)


def test_decode_receipt_failure_exits_nonzero():
    with patch.object(
        CoinFactoryAdapter,
        "get_deployment",
        new_callable=AsyncMock,
        return_value=(False, "not found"),
    ):
        result = CliRunner().invoke(cli, ["decode-receipt", TX_HASH])

    assert result.exit_code == 1
    assert _json(result)["details"] == "not found"


def _seed_pending(db_path) -> str:
    async def _open() -> str:
        db = CoinLedgerDB(db_path)
        try:
            request = DeploymentRequest(
                creator=CREATOR,
                name="Alice Coin",
                symbol="ALICE",
                metadata_uri="ipfs://bafkreialice",
            )
            return (await LedgerReconciler(db).open_pending(request)).id
        finally:
            db.close()

    return asyncio.run(_open())


def test_reconcile_command(tmp_path):
    db_path = tmp_path / "coins.db"
    coin_id = _seed_pending(db_path)
    receipt = make_receipt(
        [make_event_log(CREATOR_COIN_CREATED_EVENT, coin_created_values())]
    )

    with (
        patch(
            "creator_coins.pipeline.deployment.wait_for_transaction_receipt",
            new_callable=AsyncMock,
            return_value=receipt,
        ),
        patch(
            "creator_coins.pipeline.deployment.get_block_timestamp",
            new_callable=AsyncMock,
            return_value=1_700_000_000,
        ),
    ):
        result = CliRunner().invoke(
            cli, ["reconcile", "--db", str(db_path), coin_id, TX_HASH]
        )

    payload = _json(result)
    assert result.exit_code == 0
    assert payload["result"]["coin"]["status"] == "active"
    assert payload["result"]["address"].lower() == COIN


def test_reconcile_unknown_coin(tmp_path):
    result = CliRunner().invoke(
        cli, ["reconcile", "--db", str(tmp_path / "coins.db"), "missing", TX_HASH]
    )
    payload = _json(result)
    assert result.exit_code == 1
    assert payload["error"] == "KeyError"
