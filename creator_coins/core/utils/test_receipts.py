import pytest

from creator_coins.conftest import (
    COIN,
    CREATOR,
    TX_HASH,
    coin_created_values,
    make_event_log,
    make_receipt,
)
from creator_coins.core.constants.factory_abi import (
    COIN_CREATED_LEGACY_EVENT,
    COIN_CREATED_V4_EVENT,
    CREATOR_COIN_CREATED_EVENT,
)
from creator_coins.core.errors import ReceiptDecodeError
from creator_coins.core.models import DecodedCoin, Undecoded
from creator_coins.core.utils.receipts import (
    decode_coin_created,
    require_coin_address,
)

OTHER_EMITTER = "0x9999999999999999999999999999999999999999"

TRANSFER_EVENT = {
    "type": "event",
    "anonymous": False,
    "name": "Transfer",
    "inputs": [
        {"indexed": True, "name": "from", "type": "address"},
        {"indexed": True, "name": "to", "type": "address"},
        {"indexed": False, "name": "value", "type": "uint256"},
    ],
}


def _transfer_log():
    return make_event_log(
        TRANSFER_EVENT,
        {"from": CREATOR, "to": COIN, "value": 10},
        address=OTHER_EMITTER,
    )


class TestDecodeCoinCreated:
    def test_current_creator_coin_event(self):
        receipt = make_receipt(
            [make_event_log(CREATOR_COIN_CREATED_EVENT, coin_created_values())]
        )
        result = decode_coin_created(receipt)

        assert isinstance(result, DecodedCoin)
        assert result.schema_name == "CreatorCoinCreated"
        assert result.address.lower() == COIN
        assert result.payout_recipient.lower() == CREATOR
        assert result.uri == "ipfs://bafkreialice"
        assert (result.name, result.symbol) == ("Alice Coin", "ALICE")

    def test_legacy_only_receipt_yields_same_address(self):
        current = decode_coin_created(
            make_receipt(
                [make_event_log(CREATOR_COIN_CREATED_EVENT, coin_created_values())]
            )
        )
        legacy = decode_coin_created(
            make_receipt(
                [make_event_log(COIN_CREATED_LEGACY_EVENT, coin_created_values())]
            )
        )

        assert legacy.schema_name == "CoinCreated"
        assert legacy.address == current.address

    def test_content_coin_event(self):
        receipt = make_receipt(
            [
                _transfer_log(),
                make_event_log(COIN_CREATED_V4_EVENT, coin_created_values()),
            ]
        )
        result = decode_coin_created(receipt)
        assert result.schema_name == "CoinCreatedV4"
        assert result.address.lower() == COIN

    def test_schema_order_decides_between_shapes(self):
        other_coin = "0x7777777777777777777777777777777777777777"
        receipt = make_receipt(
            [
                make_event_log(
                    COIN_CREATED_LEGACY_EVENT, coin_created_values(coin=other_coin)
                ),
                make_event_log(CREATOR_COIN_CREATED_EVENT, coin_created_values()),
            ]
        )
        result = decode_coin_created(receipt)
        assert result.schema_name == "CreatorCoinCreated"
        assert result.address.lower() == COIN

    def test_factory_filter_ignores_other_emitters(self):
        log = make_event_log(
            CREATOR_COIN_CREATED_EVENT, coin_created_values(), address=OTHER_EMITTER
        )
        receipt = make_receipt([log])

        assert isinstance(decode_coin_created(receipt), DecodedCoin)
        filtered = decode_coin_created(
            receipt, factory_address="0x777777751622c0d3258f214F9DF38E35BF45baF3"
        )
        assert isinstance(filtered, Undecoded)

    def test_malformed_payload_is_skipped(self):
        log = make_event_log(CREATOR_COIN_CREATED_EVENT, coin_created_values())
        log["data"] = log["data"][:64]
        result = decode_coin_created(make_receipt([log]))
        assert isinstance(result, Undecoded)

    def test_no_logs(self):
        result = decode_coin_created(make_receipt([]))
        assert isinstance(result, Undecoded)
        assert result.reason == "receipt has no logs"

    def test_unrelated_logs_name_every_schema(self):
        result = decode_coin_created(make_receipt([_transfer_log()]))
        assert isinstance(result, Undecoded)
        assert "CreatorCoinCreated" in result.reason
        assert "CoinCreated" in result.reason
        assert "1 logs" in result.reason


class TestRequireCoinAddress:
    def test_returns_address(self):
        decoded = DecodedCoin(schema_name="CoinCreated", address=COIN)
        assert require_coin_address(decoded, TX_HASH) == COIN

    def test_raises_with_tx_hash(self):
        with pytest.raises(ReceiptDecodeError) as exc_info:
            require_coin_address(Undecoded(reason="nothing"), TX_HASH)
        assert exc_info.value.tx_hash == TX_HASH
        assert exc_info.value.reason == "nothing"
