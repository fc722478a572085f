from creator_coins.core.constants.chains import (
    CHAIN_ID_BASE,
    CHAIN_ID_BASE_SEPOLIA,
    SUPPORTED_CHAINS,
)
from creator_coins.core.constants.contracts import (
    COIN_FACTORY,
    DEFAULT_PLATFORM_REFERRER,
    ZERO_ADDRESS,
    ZORA_TOKEN,
)

__all__ = [
    "CHAIN_ID_BASE",
    "CHAIN_ID_BASE_SEPOLIA",
    "SUPPORTED_CHAINS",
    "COIN_FACTORY",
    "DEFAULT_PLATFORM_REFERRER",
    "ZERO_ADDRESS",
    "ZORA_TOKEN",
]
