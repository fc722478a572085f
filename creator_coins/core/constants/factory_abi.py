from __future__ import annotations

_POOL_KEY_COMPONENTS = [
    {"name": "currency0", "type": "address"},
    {"name": "currency1", "type": "address"},
    {"name": "fee", "type": "uint24"},
    {"name": "tickSpacing", "type": "int24"},
    {"name": "hooks", "type": "address"},
]

# Shared by CreatorCoinCreated and CoinCreatedV4; the two differ only by name.
_V4_CREATED_EVENT_INPUTS = [
    {"indexed": True, "name": "caller", "type": "address"},
    {"indexed": True, "name": "payoutRecipient", "type": "address"},
    {"indexed": True, "name": "platformReferrer", "type": "address"},
    {"indexed": False, "name": "currency", "type": "address"},
    {"indexed": False, "name": "uri", "type": "string"},
    {"indexed": False, "name": "name", "type": "string"},
    {"indexed": False, "name": "symbol", "type": "string"},
    {"indexed": False, "name": "coin", "type": "address"},
    {
        "indexed": False,
        "name": "poolKey",
        "type": "tuple",
        "components": _POOL_KEY_COMPONENTS,
    },
    {"indexed": False, "name": "poolKeyHash", "type": "bytes32"},
    {"indexed": False, "name": "version", "type": "string"},
]

CREATOR_COIN_CREATED_EVENT = {
    "type": "event",
    "anonymous": False,
    "name": "CreatorCoinCreated",
    "inputs": _V4_CREATED_EVENT_INPUTS,
}

COIN_CREATED_V4_EVENT = {
    "type": "event",
    "anonymous": False,
    "name": "CoinCreatedV4",
    "inputs": _V4_CREATED_EVENT_INPUTS,
}

# Factory v3 event, emitted before the move to v4 hooks.
COIN_CREATED_LEGACY_EVENT = {
    "type": "event",
    "anonymous": False,
    "name": "CoinCreated",
    "inputs": [
        {"indexed": True, "name": "caller", "type": "address"},
        {"indexed": True, "name": "payoutRecipient", "type": "address"},
        {"indexed": True, "name": "platformReferrer", "type": "address"},
        {"indexed": False, "name": "currency", "type": "address"},
        {"indexed": False, "name": "uri", "type": "string"},
        {"indexed": False, "name": "name", "type": "string"},
        {"indexed": False, "name": "symbol", "type": "string"},
        {"indexed": False, "name": "coin", "type": "address"},
        {"indexed": False, "name": "pool", "type": "address"},
        {"indexed": False, "name": "version", "type": "string"},
    ],
}

COIN_FACTORY_ABI = [
    {
        "type": "function",
        "stateMutability": "payable",
        "name": "deploy",
        "inputs": [
            {"name": "payoutRecipient", "type": "address"},
            {"name": "owners", "type": "address[]"},
            {"name": "uri", "type": "string"},
            {"name": "name", "type": "string"},
            {"name": "symbol", "type": "string"},
            {"name": "poolConfig", "type": "bytes"},
            {"name": "platformReferrer", "type": "address"},
            {"name": "postDeployHook", "type": "address"},
            {"name": "postDeployHookData", "type": "bytes"},
            {"name": "coinSalt", "type": "bytes32"},
        ],
        "outputs": [
            {"name": "coin", "type": "address"},
            {"name": "postDeployHookDataOut", "type": "bytes"},
        ],
    },
    {
        "type": "function",
        "stateMutability": "payable",
        "name": "deployCreatorCoin",
        "inputs": [
            {"name": "payoutRecipient", "type": "address"},
            {"name": "owners", "type": "address[]"},
            {"name": "uri", "type": "string"},
            {"name": "name", "type": "string"},
            {"name": "symbol", "type": "string"},
            {"name": "poolConfig", "type": "bytes"},
            {"name": "platformReferrer", "type": "address"},
            {"name": "coinSalt", "type": "bytes32"},
        ],
        "outputs": [{"name": "coin", "type": "address"}],
    },
    CREATOR_COIN_CREATED_EVENT,
    COIN_CREATED_V4_EVENT,
    COIN_CREATED_LEGACY_EVENT,
]
