from __future__ import annotations

# Minimal ABI for the platform activity tracker.

ACTIVITY_TRACKER_ABI = [
    {
        "type": "function",
        "stateMutability": "nonpayable",
        "name": "recordCoinCreation",
        "inputs": [
            {"name": "coin", "type": "address"},
            {"name": "creator", "type": "address"},
            {"name": "contentUrl", "type": "string"},
            {"name": "coinName", "type": "string"},
            {"name": "coinSymbol", "type": "string"},
        ],
        "outputs": [{"name": "activityId", "type": "bytes32"}],
    },
    {
        "type": "function",
        "stateMutability": "nonpayable",
        "name": "recordFees",
        "inputs": [
            {"name": "coin", "type": "address"},
            {"name": "trader", "type": "address"},
            {"name": "creatorFee", "type": "uint256"},
            {"name": "platformFee", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "stateMutability": "nonpayable",
        "name": "updateMarketCap",
        "inputs": [
            {"name": "coin", "type": "address"},
            {"name": "marketCap", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "stateMutability": "nonpayable",
        "name": "recordTradingActivity",
        "inputs": [
            {"name": "coin", "type": "address"},
            {"name": "trader", "type": "address"},
            {"name": "activityType", "type": "string"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "stateMutability": "view",
        "name": "getCoinMetrics",
        "inputs": [{"name": "coin", "type": "address"}],
        "outputs": [
            {"name": "totalCreatorFees", "type": "uint256"},
            {"name": "totalPlatformFees", "type": "uint256"},
            {"name": "currentMarketCap", "type": "uint256"},
            {"name": "totalVolume", "type": "uint256"},
            {"name": "tradeCount", "type": "uint256"},
            {"name": "lastUpdated", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "stateMutability": "view",
        "name": "getPlatformStats",
        "inputs": [],
        "outputs": [
            {"name": "totalCoins", "type": "uint256"},
            {"name": "totalPlatformFees", "type": "uint256"},
            {"name": "totalCreatorFees", "type": "uint256"},
            {"name": "totalVolume", "type": "uint256"},
            {"name": "totalCreators", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "stateMutability": "view",
        "name": "getCreatorStats",
        "inputs": [{"name": "creator", "type": "address"}],
        "outputs": [
            {"name": "coinsCreated", "type": "uint256"},
            {"name": "totalFeesEarned", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "stateMutability": "view",
        "name": "isRegisteredCoin",
        "inputs": [{"name": "coinAddress", "type": "address"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
]
