from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import to_checksum_address

from creator_coins.core.constants.chains import SUPPORTED_CHAINS
from creator_coins.core.constants.contracts import ZERO_ADDRESS, ZORA_TOKEN
from creator_coins.core.models import PoolConfiguration, PoolCurrency

POOL_CONFIG_TYPES = ["uint8", "address", "int24[]", "int24[]", "uint16[]", "uint256[]"]

POOL_CONFIG_VERSION = 4

# Uniswap v4 full-range ticks
_FULL_RANGE_TICK_LOWER = -887_220
_FULL_RANGE_TICK_UPPER = 887_220


def zora_paired_pool() -> PoolConfiguration:
    return PoolConfiguration(
        version=POOL_CONFIG_VERSION,
        paired_currency=ZORA_TOKEN,
        tick_lower=[-138_000],
        tick_upper=[-81_000],
        num_discovery_positions=[11],
        max_discovery_supply_share=[5 * 10**16],
    )


def eth_paired_pool() -> PoolConfiguration:
    return PoolConfiguration(
        version=POOL_CONFIG_VERSION,
        paired_currency=ZERO_ADDRESS,
        tick_lower=[_FULL_RANGE_TICK_LOWER],
        tick_upper=[_FULL_RANGE_TICK_UPPER],
        num_discovery_positions=[1],
        max_discovery_supply_share=[10**18],
    )


def pool_for_currency(currency: PoolCurrency | str) -> PoolConfiguration:
    if PoolCurrency(currency) == PoolCurrency.ETH:
        return eth_paired_pool()
    return zora_paired_pool()


def encode_pool_config(chain_id: int, pool: PoolConfiguration | None = None) -> bytes:
    if int(chain_id) not in SUPPORTED_CHAINS:
        raise ValueError(f"Unsupported chain ID for coin deployment: {chain_id}")
    pool = pool or zora_paired_pool()
    lengths = {
        len(pool.tick_lower),
        len(pool.tick_upper),
        len(pool.num_discovery_positions),
        len(pool.max_discovery_supply_share),
    }
    if len(lengths) != 1:
        raise ValueError("pool curve arrays must have the same length")
    return abi_encode(
        POOL_CONFIG_TYPES,
        [
            int(pool.version),
            to_checksum_address(pool.paired_currency),
            [int(t) for t in pool.tick_lower],
            [int(t) for t in pool.tick_upper],
            [int(n) for n in pool.num_discovery_positions],
            [int(s) for s in pool.max_discovery_supply_share],
        ],
    )


def decode_pool_config(data: bytes) -> PoolConfiguration:
    version, currency, lower, upper, positions, shares = abi_decode(
        POOL_CONFIG_TYPES, bytes(data)
    )
    return PoolConfiguration(
        version=version,
        paired_currency=to_checksum_address(currency),
        tick_lower=list(lower),
        tick_upper=list(upper),
        num_discovery_positions=list(positions),
        max_discovery_supply_share=list(shares),
    )
