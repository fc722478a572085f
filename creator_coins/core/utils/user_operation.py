"""ERC-4337 (EntryPoint v0.6) user operation helpers."""

from collections.abc import Awaitable, Callable
from typing import Any

from eth_abi import encode as abi_encode
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import keccak, to_checksum_address
from pydantic import BaseModel

from creator_coins.core.constants.entry_point_abi import (
    ENTRY_POINT_ABI,
    SIMPLE_ACCOUNT_FACTORY_ABI,
    SIMPLE_ACCOUNT_ABI,
)
from creator_coins.core.utils.abi import as_bytes, encode_function_data
from creator_coins.core.utils.web3 import web3_from_chain_id

SignUserOpHash = Callable[[bytes], Awaitable[bytes | str]]

# Well-formed ECDSA signature used while estimating gas; never valid on-chain.
DUMMY_SIGNATURE = (
    "0xfffffffffffffffffffffffffffffff000000000000000000000000000000000"
    "7aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa1c"
)

_GAS_FIELDS = ("callGasLimit", "verificationGasLimit", "preVerificationGas")


class UserOperation(BaseModel):
    sender: str
    nonce: int
    init_code: bytes = b""
    call_data: bytes
    call_gas_limit: int = 0
    verification_gas_limit: int = 0
    pre_verification_gas: int = 0
    max_fee_per_gas: int = 0
    max_priority_fee_per_gas: int = 0
    paymaster_and_data: bytes = b""
    signature: bytes = as_bytes(DUMMY_SIGNATURE)

    def to_rpc(self) -> dict[str, str]:
        def _hex_bytes(value: bytes) -> str:
            return "0x" + bytes(value).hex()

        return {
            "sender": to_checksum_address(self.sender),
            "nonce": hex(self.nonce),
            "initCode": _hex_bytes(self.init_code),
            "callData": _hex_bytes(self.call_data),
            "callGasLimit": hex(self.call_gas_limit),
            "verificationGasLimit": hex(self.verification_gas_limit),
            "preVerificationGas": hex(self.pre_verification_gas),
            "maxFeePerGas": hex(self.max_fee_per_gas),
            "maxPriorityFeePerGas": hex(self.max_priority_fee_per_gas),
            "paymasterAndData": _hex_bytes(self.paymaster_and_data),
            "signature": _hex_bytes(self.signature),
        }

    def with_gas_estimate(self, estimate: dict[str, Any]) -> "UserOperation":
        values = {k: _as_int(estimate.get(k)) for k in _GAS_FIELDS}
        return self.model_copy(
            update={
                "call_gas_limit": values["callGasLimit"],
                "verification_gas_limit": values["verificationGasLimit"],
                "pre_verification_gas": values["preVerificationGas"],
            }
        )

    def with_paymaster(self, sponsorship: dict[str, Any]) -> "UserOperation":
        update: dict[str, Any] = {
            "paymaster_and_data": as_bytes(sponsorship.get("paymasterAndData"))
        }
        # ERC-7677 services may return their own gas figures with the sponsorship
        for field, attr in (
            ("callGasLimit", "call_gas_limit"),
            ("verificationGasLimit", "verification_gas_limit"),
            ("preVerificationGas", "pre_verification_gas"),
        ):
            if sponsorship.get(field) is not None:
                update[attr] = _as_int(sponsorship[field])
        return self.model_copy(update=update)


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    s = str(value)
    return int(s, 16) if s.startswith("0x") else int(s)


def build_execute_call_data(to: str, value: int, data: bytes | str) -> bytes:
    """Wrap a call in the smart account's ``execute(dest, value, func)``."""
    return as_bytes(
        encode_function_data(
            SIMPLE_ACCOUNT_ABI, "execute", [to, int(value), as_bytes(data)]
        )
    )


def pack_user_operation(op: UserOperation) -> bytes:
    return abi_encode(
        [
            "address",
            "uint256",
            "bytes32",
            "bytes32",
            "uint256",
            "uint256",
            "uint256",
            "uint256",
            "uint256",
            "bytes32",
        ],
        [
            to_checksum_address(op.sender),
            op.nonce,
            keccak(op.init_code),
            keccak(op.call_data),
            op.call_gas_limit,
            op.verification_gas_limit,
            op.pre_verification_gas,
            op.max_fee_per_gas,
            op.max_priority_fee_per_gas,
            keccak(op.paymaster_and_data),
        ],
    )


def user_operation_hash(op: UserOperation, entry_point: str, chain_id: int) -> bytes:
    return keccak(
        abi_encode(
            ["bytes32", "address", "uint256"],
            [
                keccak(pack_user_operation(op)),
                to_checksum_address(entry_point),
                int(chain_id),
            ],
        )
    )


def local_user_op_signer(private_key: str) -> SignUserOpHash:
    """Sign user-op hashes the way SimpleAccount validates them (EIP-191)."""
    account = Account.from_key(private_key)

    async def sign(op_hash: bytes) -> bytes:
        signed = account.sign_message(encode_defunct(primitive=op_hash))
        return bytes(signed.signature)

    return sign


async def get_entry_point_nonce(
    chain_id: int, entry_point: str, sender: str, key: int = 0
) -> int:
    async with web3_from_chain_id(chain_id) as web3:
        contract = web3.eth.contract(
            address=web3.to_checksum_address(entry_point), abi=ENTRY_POINT_ABI
        )
        nonce = await contract.functions.getNonce(
            web3.to_checksum_address(sender), int(key)
        ).call(block_identifier="latest")
        return int(nonce)


def build_init_code(factory: str, owner: str, salt: int = 0) -> bytes:
    """``initCode`` that deploys a SimpleAccount on its first user operation.

    The factory address followed by ``createAccount(owner, salt)`` calldata.
    """
    create_call = encode_function_data(
        SIMPLE_ACCOUNT_FACTORY_ABI,
        "createAccount",
        [to_checksum_address(owner), int(salt)],
    )
    return as_bytes(to_checksum_address(factory)) + as_bytes(create_call)


async def is_contract_deployed(chain_id: int, address: str) -> bool:
    async with web3_from_chain_id(chain_id) as web3:
        code = await web3.eth.get_code(web3.to_checksum_address(address))
        return len(code) > 0
