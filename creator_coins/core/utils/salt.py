from eth_abi import encode as abi_encode
from eth_utils import keccak, to_checksum_address


def compute_salt(creator: str, name: str, symbol: str, metadata_uri: str) -> bytes:
    """Deterministic bytes32 salt for a coin deployment.

    ``keccak256(abi.encode(address creator, string name, string symbol, string uri))``.
    A retried deployment with identical inputs hits the same salt, which makes the
    retry idempotent on-chain (the factory rejects a duplicate salt) and lets the
    ledger look up the earlier attempt.
    """
    encoded = abi_encode(
        ["address", "string", "string", "string"],
        [to_checksum_address(creator), name, symbol, metadata_uri],
    )
    return keccak(encoded)


def salt_hex(salt: bytes) -> str:
    return "0x" + bytes(salt).hex()
