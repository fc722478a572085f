from typing import Any

from eth_abi import encode as abi_encode
from eth_utils import to_checksum_address

from creator_coins.core.adapters.BaseAdapter import BaseAdapter
from creator_coins.core.adapters.decorators import status_tuple
from creator_coins.core.config import PipelineSettings
from creator_coins.core.constants.base import ADAPTER_COIN_FACTORY
from creator_coins.core.constants.contracts import (
    PAIRED_CURRENCY_BRIDGE_HINTS,
    ZERO_ADDRESS,
)
from creator_coins.core.constants.factory_abi import COIN_FACTORY_ABI
from creator_coins.core.errors import InsufficientPairedCurrencyError
from creator_coins.core.models import DeploymentRequest, PreparedCall
from creator_coins.core.utils.pool_config import encode_pool_config, pool_for_currency
from creator_coins.core.utils.receipts import decode_coin_created
from creator_coins.core.utils.tokens import (
    get_token_balance,
    get_token_symbol,
    is_native_token,
)
from creator_coins.core.utils.transaction import (
    encode_call,
    simulate_call,
    wait_for_transaction_receipt,
)


def encode_tracker_hook_data(content_url: str, name: str, symbol: str) -> bytes:
    return abi_encode(["string", "string", "string"], [content_url, name, symbol])


class CoinFactoryAdapter(BaseAdapter):
    """Builds, checks and simulates coin deployments against the coin factory."""

    adapter_type = ADAPTER_COIN_FACTORY

    def __init__(
        self, settings: PipelineSettings, config: dict[str, Any] | None = None
    ):
        super().__init__("coin_factory", settings, config)
        self.factory_address = settings.factory_address

    def resolve_post_deploy_hook(self, request: DeploymentRequest) -> tuple[str, bytes]:
        if request.post_deploy_hook:
            return (
                to_checksum_address(request.post_deploy_hook),
                bytes(request.post_deploy_hook_data),
            )
        tracker = self.settings.activity_tracker_address
        if request.use_activity_tracker:
            if tracker:
                data = encode_tracker_hook_data(
                    request.content_url or request.metadata_uri,
                    request.name,
                    request.symbol,
                )
                return to_checksum_address(tracker), data
            self.logger.warning(
                "Activity tracker requested but none configured "
                f"for chain {self.chain_id}"
            )
        return ZERO_ADDRESS, b""

    def build_deploy_call(self, request: DeploymentRequest) -> PreparedCall:
        pool_config = encode_pool_config(
            self.chain_id, pool_for_currency(request.pool_currency)
        )
        creator = to_checksum_address(request.creator)
        referrer = to_checksum_address(
            request.platform_referrer or self.settings.platform_referrer
        )
        hook, hook_data = self.resolve_post_deploy_hook(request)

        if hook != ZERO_ADDRESS:
            fn_name = "deploy"
            args = [
                creator,
                [creator],
                request.metadata_uri,
                request.name,
                request.symbol,
                pool_config,
                referrer,
                hook,
                hook_data,
                request.salt,
            ]
        else:
            fn_name = "deployCreatorCoin"
            args = [
                creator,
                [creator],
                request.metadata_uri,
                request.name,
                request.symbol,
                pool_config,
                referrer,
                request.salt,
            ]

        return encode_call(
            target=self.factory_address,
            abi=COIN_FACTORY_ABI,
            fn_name=fn_name,
            args=args,
            from_address=creator,
            chain_id=self.chain_id,
        )

    async def check_paired_currency_balance(
        self, request: DeploymentRequest
    ) -> int | None:
        """Refuse to deploy when the creator holds none of the paired ERC-20.

        Native-currency pools are not checked and return None.
        """
        currency = pool_for_currency(request.pool_currency).paired_currency
        if is_native_token(currency):
            return None
        balance = await get_token_balance(currency, self.chain_id, request.creator)
        if balance <= 0:
            try:
                symbol = await get_token_symbol(currency, self.chain_id)
            except Exception:
                symbol = currency
            raise InsufficientPairedCurrencyError(
                f"{symbol} ({currency})",
                request.creator,
                PAIRED_CURRENCY_BRIDGE_HINTS.get(self.chain_id),
            )
        self.logger.debug(f"{request.creator} holds {balance} of {currency}")
        return balance

    async def simulate_deploy(self, call: PreparedCall) -> str | None:
        """Dry-run the deployment; return the coin address the factory would create."""
        outputs = await simulate_call(call, COIN_FACTORY_ABI)
        predicted = to_checksum_address(outputs[0]) if outputs else None
        self.logger.info(f"Simulated {call.function_name}: predicted coin {predicted}")
        return predicted

    @status_tuple
    async def get_deployment(self, tx_hash: str) -> dict[str, Any]:
        """Look up a deployment transaction and decode the coin it created."""
        receipt = await wait_for_transaction_receipt(
            self.chain_id, tx_hash, timeout=self.settings.transaction_timeout
        )
        decoded = decode_coin_created(receipt, factory_address=self.factory_address)
        return {
            "transaction_hash": tx_hash,
            "block_number": receipt.get("blockNumber"),
            "decoded": decoded.model_dump(),
        }
