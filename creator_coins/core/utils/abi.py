from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import (
    collapse_if_tuple,
    event_abi_to_log_topic,
    function_abi_to_4byte_selector,
    to_checksum_address,
)
from hexbytes import HexBytes


def find_abi_entry(abi: list[dict[str, Any]], name: str, kind: str) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type") == kind and entry.get("name") == name:
            return entry
    raise ValueError(f"{kind} {name} not found in ABI")


def _types(params: list[dict[str, Any]]) -> list[str]:
    return [collapse_if_tuple(p) for p in params]


def as_bytes(data: bytes | str | None) -> bytes:
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    s = str(data).strip()
    if not s or s == "0x":
        return b""
    return bytes(HexBytes(s))


def _normalize_arg(param: dict[str, Any], value: Any) -> Any:
    abi_type = param.get("type", "")
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type == "address[]":
        return [to_checksum_address(v) for v in value]
    if abi_type.startswith("bytes") and isinstance(value, str):
        return as_bytes(value)
    if abi_type == "tuple":
        components = param.get("components") or []
        if isinstance(value, dict):
            value = [value[c["name"]] for c in components]
        return tuple(
            _normalize_arg(c, v) for c, v in zip(components, value, strict=True)
        )
    return value


def encode_function_data(
    abi: list[dict[str, Any]], fn_name: str, args: list[Any]
) -> str:
    fn_abi = find_abi_entry(abi, fn_name, "function")
    inputs = fn_abi.get("inputs") or []
    if len(inputs) != len(args):
        raise ValueError(
            f"Failed to encode {fn_name}: expected {len(inputs)} args, got {len(args)}"
        )
    try:
        normalized = [_normalize_arg(p, a) for p, a in zip(inputs, args, strict=True)]
        payload = abi_encode(_types(inputs), normalized)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Failed to encode {fn_name}: {exc}") from exc
    selector = function_abi_to_4byte_selector(fn_abi)
    return "0x" + (selector + payload).hex()


def decode_function_result(
    abi: list[dict[str, Any]], fn_name: str, data: bytes | str
) -> tuple[Any, ...]:
    fn_abi = find_abi_entry(abi, fn_name, "function")
    return tuple(abi_decode(_types(fn_abi.get("outputs") or []), as_bytes(data)))


def event_topic(event_abi: dict[str, Any]) -> HexBytes:
    return HexBytes(event_abi_to_log_topic(event_abi))


def _format_value(abi_type: str, value: Any) -> Any:
    if abi_type == "address" and isinstance(value, str):
        return to_checksum_address(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


def decode_event_log(event_abi: dict[str, Any], log: dict[str, Any]) -> dict[str, Any]:
    """Decode a raw log into ``{arg_name: value}`` for the given event ABI.

    Raises ``ValueError`` when topic0 does not match or the payload does not fit
    the event shape.
    """
    topics = [HexBytes(t) for t in (log.get("topics") or [])]
    if not topics or topics[0] != event_topic(event_abi):
        raise ValueError(f"log is not a {event_abi.get('name')} event")

    inputs = event_abi.get("inputs") or []
    indexed = [p for p in inputs if p.get("indexed")]
    non_indexed = [p for p in inputs if not p.get("indexed")]
    if len(topics) - 1 != len(indexed):
        raise ValueError(
            f"expected {len(indexed)} indexed topics for {event_abi.get('name')}, "
            f"got {len(topics) - 1}"
        )

    args: dict[str, Any] = {}
    for param, topic in zip(indexed, topics[1:], strict=True):
        abi_type = collapse_if_tuple(param)
        # dynamic indexed values are stored as their hash
        if abi_type in ("string", "bytes") or abi_type.endswith("]") or "(" in abi_type:
            args[param["name"]] = "0x" + bytes(topic).hex()
            continue
        (value,) = abi_decode([abi_type], bytes(topic))
        args[param["name"]] = _format_value(abi_type, value)

    try:
        values = abi_decode(_types(non_indexed), as_bytes(log.get("data")))
    except Exception as exc:
        raise ValueError(f"malformed {event_abi.get('name')} payload: {exc}") from exc
    for param, value in zip(non_indexed, values, strict=True):
        args[param["name"]] = _format_value(collapse_if_tuple(param), value)
    return args
