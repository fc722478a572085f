from unittest.mock import patch

import pytest

from creator_coins.core.config import CONFIG, set_config
from creator_coins.core.utils.web3 import (
    ThrottleAwareProvider,
    get_transaction_chain_id,
    get_web3s_from_chain_id,
    is_throttled_rpc_error,
    web3_from_chain_id,
)


@pytest.fixture
def rpc_config():
    saved = dict(CONFIG)
    set_config({"rpc_urls": {"84532": ["https://rpc.one", "https://rpc.two"]}})
    yield
    set_config(saved)


@pytest.mark.parametrize(
    "error,expected",
    [
        ({"code": -32005, "message": "limit"}, True),
        ({"code": -32000, "message": "Too Many Requests"}, True),
        ({"code": -32000, "message": "execution reverted"}, False),
    ],
)
def test_throttle_detection(error, expected):
    assert is_throttled_rpc_error(error) is expected


def test_transaction_chain_id():
    assert get_transaction_chain_id({"chainId": "84532"}) == 84532
    with pytest.raises(ValueError, match="chainId"):
        get_transaction_chain_id({})


def test_one_web3_per_rpc(rpc_config):
    web3s = get_web3s_from_chain_id(84532)
    assert [w.provider.endpoint_uri for w in web3s] == [
        "https://rpc.one",
        "https://rpc.two",
    ]
    assert all(isinstance(w.provider, ThrottleAwareProvider) for w in web3s)


@pytest.mark.asyncio
async def test_web3_from_chain_id_closes_providers(rpc_config):
    with patch.object(ThrottleAwareProvider, "disconnect") as disconnect:
        async with web3_from_chain_id(84532) as web3:
            assert web3.provider.endpoint_uri == "https://rpc.one"
    assert disconnect.await_count == 2
