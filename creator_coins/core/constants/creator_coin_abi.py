from __future__ import annotations

CREATOR_COIN_ABI = [
    {
        "type": "function",
        "stateMutability": "nonpayable",
        "name": "withdraw",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "stateMutability": "view",
        "name": "creatorEarnings",
        "inputs": [{"name": "creator", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]
