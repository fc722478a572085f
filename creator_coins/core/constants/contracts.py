from creator_coins.core.constants.chains import CHAIN_ID_BASE, CHAIN_ID_BASE_SEPOLIA

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Coin factory, same address on Base and Base Sepolia.
COIN_FACTORY = "0x777777751622c0d3258f214F9DF38E35BF45baF3"

# ZORA token, the paired currency for creator coins on both networks.
ZORA_TOKEN = "0x1111111111166b7fe7bd91427724b487980afc69"

# Platform referral wallet; receives the referral share of trading fees.
DEFAULT_PLATFORM_REFERRER = "0xf25af781c4F1Df40Ac1D06e6B80c17815AD311F7"

ACTIVITY_TRACKER_BY_CHAIN: dict[int, str] = {
    CHAIN_ID_BASE_SEPOLIA: "0x71875350bD4fC5ACF47c4d3d19AEAa1023A63057",
}

# ERC-4337 EntryPoint v0.6
ENTRY_POINT_V06 = "0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789"
# eth-infinitism SimpleAccountFactory for EntryPoint v0.6
SIMPLE_ACCOUNT_FACTORY_V06 = "0x9406Cc6185a346906296840746125a0E44976454"

PAIRED_CURRENCY_BRIDGE_HINTS: dict[int, str] = {
    CHAIN_ID_BASE: "Buy ZORA on Base or bridge it via https://bridge.zora.energy/",
    CHAIN_ID_BASE_SEPOLIA: (
        "Get test ZORA from https://bridge.zora.energy/ "
        "(bridge from Ethereum Sepolia) or a faucet"
    ),
}
