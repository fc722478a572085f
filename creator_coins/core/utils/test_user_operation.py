import pytest
from eth_abi import decode as abi_decode
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import function_signature_to_4byte_selector

from creator_coins.core.constants.chains import CHAIN_ID_BASE_SEPOLIA
from creator_coins.core.constants.contracts import ENTRY_POINT_V06
from creator_coins.core.utils.user_operation import (
    UserOperation,
    build_execute_call_data,
    build_init_code,
    local_user_op_signer,
    user_operation_hash,
)

PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcaa2ad7a1c5c7ff80"
SMART_ACCOUNT = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
TARGET = "0x2222222222222222222222222222222222222222"


def _op(**overrides) -> UserOperation:
    values = {
        "sender": SMART_ACCOUNT,
        "nonce": 3,
        "call_data": build_execute_call_data(TARGET, 0, "0xdeadbeef"),
        "max_fee_per_gas": 2_000,
        "max_priority_fee_per_gas": 150,
    }
    values.update(overrides)
    return UserOperation(**values)


class TestUserOperation:
    def test_rpc_shape(self):
        rpc = _op().to_rpc()
        assert rpc["sender"] == SMART_ACCOUNT
        assert rpc["nonce"] == "0x3"
        assert rpc["initCode"] == "0x"
        assert rpc["paymasterAndData"] == "0x"
        assert rpc["maxFeePerGas"] == hex(2_000)
        assert rpc["signature"].startswith("0xfff")

    def test_gas_estimate_accepts_hex_and_int(self):
        op = _op().with_gas_estimate(
            {
                "callGasLimit": "0x10",
                "verificationGasLimit": 32,
                "preVerificationGas": "48",
            }
        )
        assert op.call_gas_limit == 16
        assert op.verification_gas_limit == 32
        assert op.pre_verification_gas == 48

    def test_paymaster_sponsorship_overrides_gas(self):
        op = _op(call_gas_limit=1).with_paymaster(
            {"paymasterAndData": "0xabcd", "callGasLimit": "0x64"}
        )
        assert op.paymaster_and_data == b"\xab\xcd"
        assert op.call_gas_limit == 100
        assert op.verification_gas_limit == 0

    def test_execute_wraps_target_call(self):
        call_data = build_execute_call_data(TARGET, 7, "0xdeadbeef")
        args = abi_decode(["address", "uint256", "bytes"], call_data[4:])
        assert call_data[:4] == function_signature_to_4byte_selector(
            "execute(address,uint256,bytes)"
        )
        assert args[0].lower() == TARGET
        assert args[1] == 7
        assert args[2] == b"\xde\xad\xbe\xef"

    def test_init_code_deploys_account_through_factory(self):
        factory = "0x9406Cc6185a346906296840746125a0E44976454"
        init_code = build_init_code(factory, TARGET, 5)
        assert init_code[:20] == bytes.fromhex(factory[2:])
        assert init_code[20:24] == function_signature_to_4byte_selector(
            "createAccount(address,uint256)"
        )
        owner, salt = abi_decode(["address", "uint256"], init_code[24:])
        assert owner.lower() == TARGET
        assert salt == 5


class TestUserOperationHash:
    def test_depends_on_chain_and_entry_point(self):
        op = _op()
        base = user_operation_hash(op, ENTRY_POINT_V06, CHAIN_ID_BASE_SEPOLIA)
        assert len(base) == 32
        assert base != user_operation_hash(op, ENTRY_POINT_V06, 8453)
        assert base != user_operation_hash(op, TARGET, CHAIN_ID_BASE_SEPOLIA)

    def test_signature_is_not_hashed(self):
        op = _op()
        signed = op.model_copy(update={"signature": b"\x01" * 65})
        assert user_operation_hash(
            op, ENTRY_POINT_V06, CHAIN_ID_BASE_SEPOLIA
        ) == user_operation_hash(signed, ENTRY_POINT_V06, CHAIN_ID_BASE_SEPOLIA)

    @pytest.mark.asyncio
    async def test_local_signer_recovers_owner(self):
        op_hash = user_operation_hash(_op(), ENTRY_POINT_V06, CHAIN_ID_BASE_SEPOLIA)
        signature = await local_user_op_signer(PRIVATE_KEY)(op_hash)

        recovered = Account.recover_message(
            encode_defunct(primitive=op_hash), signature=signature
        )
        assert recovered == Account.from_key(PRIVATE_KEY).address
