from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click
from loguru import logger

from creator_coins.adapters.coin_factory_adapter import CoinFactoryAdapter
from creator_coins.core.config import load_config, resolve_pipeline_settings
from creator_coins.core.constants.chains import NETWORK_TO_CHAIN_ID
from creator_coins.core.errors import CoinPipelineError
from creator_coins.core.ledger.db import CoinLedgerDB
from creator_coins.core.models import PoolCurrency
from creator_coins.core.utils.pool_config import (
    decode_pool_config,
    encode_pool_config,
    pool_for_currency,
)
from creator_coins.core.utils.salt import compute_salt, salt_hex
from creator_coins.pipeline import CoinDeploymentPipeline

_NETWORK_OPTION = click.option(
    "--network",
    type=click.Choice(sorted(NETWORK_TO_CHAIN_ID), case_sensitive=False),
    default=None,
    help="Defaults to the configured network.",
)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group(name="creator-coins", help="Creator coin deployment and settlement.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to config.json.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def cli(config_path: str | None, log_level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=str(log_level).upper())
    if config_path:
        load_config(config_path, require_exists=True)


@cli.command(name="salt", help="Compute the deterministic deployment salt.")
@click.argument("creator")
@click.argument("name")
@click.argument("symbol")
@click.argument("metadata_uri")
def salt_cmd(creator: str, name: str, symbol: str, metadata_uri: str) -> None:
    salt = compute_salt(creator, name.strip(), symbol.strip(), metadata_uri.strip())
    _echo_json({"ok": True, "result": {"salt": salt_hex(salt)}})


@cli.command(name="pool-config", help="Encode the pool configuration for a chain.")
@_NETWORK_OPTION
@click.option(
    "--currency",
    type=click.Choice([c.value for c in PoolCurrency]),
    default=PoolCurrency.ZORA.value,
    show_default=True,
)
def pool_config_cmd(network: str | None, currency: str) -> None:
    settings = resolve_pipeline_settings(network=network)
    encoded = encode_pool_config(settings.chain_id, pool_for_currency(currency))
    _echo_json(
        {
            "ok": True,
            "result": {
                "chain_id": settings.chain_id,
                "pool_config": "0x" + encoded.hex(),
                "decoded": decode_pool_config(encoded).model_dump(),
            },
        }
    )


@cli.command(name="decode-receipt", help="Decode the coin created by a transaction.")
@_NETWORK_OPTION
@click.argument("tx_hash")
def decode_receipt_cmd(network: str | None, tx_hash: str) -> None:
    settings = resolve_pipeline_settings(network=network)
    ok, result = asyncio.run(CoinFactoryAdapter(settings).get_deployment(tx_hash))
    if ok:
        _echo_json({"ok": True, "result": result})
    else:
        _echo_json({"ok": False, "error": "decode_failed", "details": result})
        sys.exit(1)


async def _reconcile(db_path: str, network: str | None, coin_id: str, tx_hash: str):
    db = CoinLedgerDB(db_path)
    try:
        settings = resolve_pipeline_settings(network=network)
        pipeline = CoinDeploymentPipeline(settings, db)
        return await pipeline.reconcile(coin_id, tx_hash)
    finally:
        db.close()


@cli.command(name="reconcile", help="Settle a pending coin from its transaction.")
@_NETWORK_OPTION
@click.option("--db", "db_path", type=click.Path(dir_okay=False), required=True)
@click.argument("coin_id")
@click.argument("tx_hash")
def reconcile_cmd(
    network: str | None, db_path: str, coin_id: str, tx_hash: str
) -> None:
    try:
        outcome = asyncio.run(_reconcile(db_path, network, coin_id, tx_hash))
    except (CoinPipelineError, KeyError) as exc:
        _echo_json(
            {
                "ok": False,
                "error": type(exc).__name__,
                "details": str(exc),
                "tx_hash": getattr(exc, "tx_hash", None),
            }
        )
        sys.exit(1)
    _echo_json({"ok": True, "result": outcome.model_dump(mode="json")})


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
