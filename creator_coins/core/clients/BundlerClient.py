from __future__ import annotations

import itertools
from typing import Any

from creator_coins.core.clients.ApiClient import ApiClient
from creator_coins.core.errors import SubmissionError


class BundlerRpcError(SubmissionError):
    def __init__(self, method: str, error: dict[str, Any]):
        self.method = method
        self.code = error.get("code")
        self.data = error.get("data")
        super().__init__(f"{method} failed ({self.code}): {error.get('message')}")


class BundlerClient(ApiClient):
    """ERC-4337 bundler JSON-RPC, including the ERC-7677 paymaster methods."""

    def __init__(self, rpc_url: str, **kwargs: Any):
        super().__init__(rpc_url, **kwargs)
        self._ids = itertools.count(1)

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        response = await self._authed_request("POST", self.base_url, json=payload)
        body = response.json()
        error = body.get("error")
        if isinstance(error, dict):
            raise BundlerRpcError(method, error)
        return body.get("result")

    async def get_paymaster_stub_data(
        self,
        user_op: dict[str, Any],
        entry_point: str,
        chain_id: int,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._rpc(
            "pm_getPaymasterStubData",
            [user_op, entry_point, hex(int(chain_id)), context or {}],
        )

    async def get_paymaster_data(
        self,
        user_op: dict[str, Any],
        entry_point: str,
        chain_id: int,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._rpc(
            "pm_getPaymasterData",
            [user_op, entry_point, hex(int(chain_id)), context or {}],
        )

    async def estimate_user_operation_gas(
        self, user_op: dict[str, Any], entry_point: str
    ) -> dict[str, Any]:
        return await self._rpc("eth_estimateUserOperationGas", [user_op, entry_point])

    async def send_user_operation(
        self, user_op: dict[str, Any], entry_point: str
    ) -> str:
        return str(await self._rpc("eth_sendUserOperation", [user_op, entry_point]))

    async def get_user_operation_receipt(
        self, user_op_hash: str
    ) -> dict[str, Any] | None:
        return await self._rpc("eth_getUserOperationReceipt", [user_op_hash])

    async def get_user_operation_by_hash(
        self, user_op_hash: str
    ) -> dict[str, Any] | None:
        """The operation while the bundler still knows it, else None."""
        return await self._rpc("eth_getUserOperationByHash", [user_op_hash])
