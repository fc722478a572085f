from __future__ import annotations

# ERC-4337 EntryPoint v0.6, SimpleAccount and its factory, only what user
# operations need.

ENTRY_POINT_ABI = [
    {
        "type": "function",
        "stateMutability": "view",
        "name": "getNonce",
        "inputs": [
            {"name": "sender", "type": "address"},
            {"name": "key", "type": "uint192"},
        ],
        "outputs": [{"name": "nonce", "type": "uint256"}],
    },
]

SIMPLE_ACCOUNT_ABI = [
    {
        "type": "function",
        "stateMutability": "nonpayable",
        "name": "execute",
        "inputs": [
            {"name": "dest", "type": "address"},
            {"name": "value", "type": "uint256"},
            {"name": "func", "type": "bytes"},
        ],
        "outputs": [],
    },
]

SIMPLE_ACCOUNT_FACTORY_ABI = [
    {
        "type": "function",
        "stateMutability": "nonpayable",
        "name": "createAccount",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "salt", "type": "uint256"},
        ],
        "outputs": [{"name": "ret", "type": "address"}],
    },
    {
        "type": "function",
        "stateMutability": "view",
        "name": "getAddress",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "salt", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "address"}],
    },
]
