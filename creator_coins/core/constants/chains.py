CHAIN_ID_BASE = 8453
CHAIN_ID_BASE_SEPOLIA = 84532

NETWORK_MAINNET = "mainnet"
NETWORK_SEPOLIA = "sepolia"

NETWORK_TO_CHAIN_ID = {
    NETWORK_MAINNET: CHAIN_ID_BASE,
    "base": CHAIN_ID_BASE,
    NETWORK_SEPOLIA: CHAIN_ID_BASE_SEPOLIA,
    "base-sepolia": CHAIN_ID_BASE_SEPOLIA,
}

CHAIN_ID_TO_CODE: dict[int, str] = {
    CHAIN_ID_BASE: "base",
    CHAIN_ID_BASE_SEPOLIA: "base-sepolia",
}

SUPPORTED_CHAINS = [
    CHAIN_ID_BASE,
    CHAIN_ID_BASE_SEPOLIA,
]

DEFAULT_RPC_URLS: dict[int, list[str]] = {
    CHAIN_ID_BASE: ["https://mainnet.base.org"],
    CHAIN_ID_BASE_SEPOLIA: ["https://sepolia.base.org"],
}

CHAIN_EXPLORER_URLS: dict[int, str] = {
    CHAIN_ID_BASE: "https://basescan.org/",
    CHAIN_ID_BASE_SEPOLIA: "https://sepolia.basescan.org/",
}
