from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from hexbytes import HexBytes
from loguru import logger

from creator_coins.core.constants.factory_abi import (
    COIN_CREATED_LEGACY_EVENT,
    COIN_CREATED_V4_EVENT,
    CREATOR_COIN_CREATED_EVENT,
)
from creator_coins.core.errors import ReceiptDecodeError
from creator_coins.core.models import DecodedCoin, DecodeResult, Undecoded
from creator_coins.core.utils.abi import decode_event_log, event_topic


@dataclass(frozen=True)
class EventSchema:
    name: str
    event_abi: dict[str, Any]
    topic0: HexBytes


def _schema(event_abi: dict[str, Any]) -> EventSchema:
    return EventSchema(
        name=event_abi["name"], event_abi=event_abi, topic0=event_topic(event_abi)
    )


# Tried in order; first match wins.
DEFAULT_EVENT_SCHEMAS: tuple[EventSchema, ...] = (
    _schema(CREATOR_COIN_CREATED_EVENT),
    _schema(COIN_CREATED_V4_EVENT),
    _schema(COIN_CREATED_LEGACY_EVENT),
)


def _log_field(log: Any, key: str) -> Any:
    if isinstance(log, Mapping):
        return log.get(key)
    return getattr(log, key, None)


def _match_schema(
    schema: EventSchema, logs: list[Any], emitter: str | None
) -> DecodedCoin | None:
    for log in logs:
        if emitter and str(_log_field(log, "address") or "").lower() != emitter:
            continue
        topics = _log_field(log, "topics") or []
        if not topics or HexBytes(topics[0]) != schema.topic0:
            continue
        try:
            args = decode_event_log(
                schema.event_abi,
                {"topics": topics, "data": _log_field(log, "data")},
            )
        except ValueError as exc:
            logger.debug(f"Skipping malformed {schema.name} log: {exc}")
            continue
        coin = args.get("coin")
        if not coin:
            continue
        return DecodedCoin(
            schema_name=schema.name,
            address=coin,
            payout_recipient=args.get("payoutRecipient"),
            platform_referrer=args.get("platformReferrer"),
            currency=args.get("currency"),
            uri=args.get("uri"),
            name=args.get("name"),
            symbol=args.get("symbol"),
        )
    return None


def decode_coin_created(
    receipt: dict[str, Any],
    *,
    factory_address: str | None = None,
    schemas: Iterable[EventSchema] = DEFAULT_EVENT_SCHEMAS,
) -> DecodeResult:
    """Find the deployed coin address in a factory transaction receipt.

    Schemas are tried in order against every log; when ``factory_address`` is
    given, logs from other emitters are ignored.
    """
    logs = list((receipt or {}).get("logs") or [])
    if not logs:
        return Undecoded(reason="receipt has no logs")

    emitter = factory_address.lower() if factory_address else None
    tried: list[str] = []
    for schema in schemas:
        tried.append(schema.name)
        decoded = _match_schema(schema, logs, emitter)
        if decoded is not None:
            return decoded
    return Undecoded(reason=f"no {' / '.join(tried)} event among {len(logs)} logs")


def require_coin_address(result: DecodeResult, tx_hash: str) -> str:
    if isinstance(result, Undecoded):
        raise ReceiptDecodeError(tx_hash, result.reason)
    return result.address
