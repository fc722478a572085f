from web3 import AsyncWeb3
from web3.exceptions import BadFunctionCallOutput

from creator_coins.core.constants.contracts import ZERO_ADDRESS
from creator_coins.core.constants.erc20_abi import ERC20_ABI
from creator_coins.core.utils.web3 import web3_from_chain_id

# Ways callers spell "the chain's native currency"
_NATIVE_MARKERS = frozenset(
    {"", "eth", "native", ZERO_ADDRESS, "0x" + "e" * 40},
)


def is_native_token(token_address: str | None) -> bool:
    return token_address is None or str(token_address).strip().lower() in (
        _NATIVE_MARKERS
    )


def _erc20(web3: AsyncWeb3, token_address: str):
    return web3.eth.contract(
        address=web3.to_checksum_address(token_address), abi=ERC20_ABI
    )


async def get_token_balance(
    token_address: str | None, chain_id: int, owner: str
) -> int:
    """Balance of ``owner`` in base units at the latest block."""
    async with web3_from_chain_id(chain_id) as web3:
        owner = web3.to_checksum_address(owner)
        if is_native_token(token_address):
            return int(await web3.eth.get_balance(owner, block_identifier="latest"))
        balance = await _erc20(web3, str(token_address)).functions.balanceOf(
            owner
        ).call(block_identifier="latest")
        return int(balance)


async def get_token_symbol(token_address: str | None, chain_id: int) -> str:
    """ERC-20 symbol, or the address itself when the token has no readable one."""
    if is_native_token(token_address):
        return "ETH"
    async with web3_from_chain_id(chain_id) as web3:
        try:
            return str(await _erc20(web3, str(token_address)).functions.symbol().call())
        except (BadFunctionCallOutput, ValueError):
            return str(token_address)
