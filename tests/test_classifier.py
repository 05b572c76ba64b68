"""Tests for transaction classification."""
from tax_export.models.transaction import (
    ChainTransaction,
    Coin,
    MessageKind,
    RecordSource,
    TokenType,
    TransactionType,
    TransferEvent,
    TxMessage,
)
from tax_export.services.token_cache import TokenMetadataCache
from tax_export.services.transaction_classifier import MULTI_TRANSFER_FLAG, TransactionClassifier

from conftest import CONTRACT_USDC, CONTRACT_WETH, OSMO_OTHER, OSMO_WALLET, OTHER, THIRD, WALLET, ts


def evm_tx(tx_hash="0x01", value="0", sender=WALLET, recipient=OTHER, events=None, **fields):
    data = dict(
        hash=tx_hash,
        height="100",
        timestamp=ts(2024, 3, 1),
        chain="celo",
        messages=[TxMessage(
            kind=MessageKind.SEND,
            from_address=sender,
            to_address=recipient,
            amount=[Coin(denom="wei", amount=value)],
        )],
        events=events or [],
        fee=[Coin(denom="wei", amount="21000000000000")],
    )
    data.update(fields)
    return ChainTransaction(**data)


def token_event(sender, recipient, contract=CONTRACT_USDC, symbol="USDC", decimals="6", value="1500000", **fields):
    return TransferEvent(
        contract=contract,
        symbol=symbol,
        decimals=decimals,
        value=value,
        from_address=sender,
        to_address=recipient,
        **fields
    )


class TestNativeTransfers:
    """Tests for native currency movements."""

    def test_send(self, celo):
        row = TransactionClassifier(celo).classify(evm_tx(value="1000000000000000000"), WALLET)

        assert row.type == TransactionType.SEND
        assert row.amount == "1.000000"
        assert row.currency == "CELO"
        assert row.direction == "out"
        assert row.amount2 == ""
        assert row.height == 100

    def test_receive_is_case_insensitive(self, celo):
        tx = evm_tx(value="2500000000000000000", sender=OTHER, recipient=WALLET.upper().replace("0X", "0x"))
        row = TransactionClassifier(celo).classify(tx, WALLET)

        assert row.type == TransactionType.RECEIVE
        assert row.amount == "2.500000"
        assert row.direction == "in"

    def test_fee(self, celo):
        row = TransactionClassifier(celo).classify(evm_tx(), WALLET)
        assert row.fee == "0.00002100"
        assert row.fee_currency == "CELO"

    def test_zero_fee_is_blank(self, celo):
        row = TransactionClassifier(celo).classify(evm_tx(fee=[Coin(denom="wei", amount="0")]), WALLET)
        assert (row.fee, row.fee_currency) == ("", "")

    def test_failed_status(self, celo):
        row = TransactionClassifier(celo).classify(evm_tx(status_code=1), WALLET)
        assert row.status == "failed"

    def test_notes(self, celo):
        row = TransactionClassifier(celo).classify(evm_tx(value="1000000000000000000"), WALLET)
        assert row.memo == "send - [TX: 0x01] (0xaaaaaa... -> 0xbbbbbb...)"

    def test_notes_carry_memo(self, celo):
        tx = evm_tx(value="1", memo="Input: 0xdeadbeef...")
        row = TransactionClassifier(celo).classify(tx, WALLET)
        assert row.memo.endswith("(Input: 0xdeadbeef...)")


class TestTokenTransfers:
    """Tests for token transfer legs."""

    def test_swap(self, celo):
        events = [
            token_event(WALLET, THIRD),
            token_event(THIRD, WALLET, contract=CONTRACT_WETH, symbol="ETH", decimals="18",
                        value="500000000000000000"),
        ]
        row = TransactionClassifier(celo).classify(evm_tx(events=events), WALLET)

        assert row.type == TransactionType.SWAP
        assert (row.amount, row.currency) == ("1.500000", "USDC")
        assert (row.amount2, row.currency2) == ("0.500000", "ETH")
        assert (row.direction, row.direction2) == ("out", "in")
        assert row.flags == []
        assert row.memo.startswith("swap - 1.500000 USDC, 0.500000 ETH - [TX: 0x01]")

    def test_swap_with_inbound_leg_first(self, celo):
        events = [
            token_event(THIRD, WALLET, contract=CONTRACT_WETH, symbol="ETH", decimals="18",
                        value="500000000000000000"),
            token_event(WALLET, THIRD),
        ]
        row = TransactionClassifier(celo).classify(evm_tx(events=events), WALLET)

        assert row.type == TransactionType.SWAP
        assert (row.amount, row.currency) == ("0.500000", "ETH")
        assert (row.amount2, row.currency2) == ("1.500000", "USDC")
        assert (row.direction, row.direction2) == ("in", "out")

    def test_same_direction_legs_are_not_a_swap(self, celo):
        events = [
            token_event(OTHER, WALLET),
            token_event(THIRD, WALLET, contract=CONTRACT_WETH, symbol="WETH", decimals="18", value="1"),
        ]
        row = TransactionClassifier(celo).classify(evm_tx(events=events), WALLET)

        assert row.type == TransactionType.RECEIVE
        assert row.currency2 == "WETH"

    def test_token_leg_after_native_amount_is_secondary(self, celo):
        events = [token_event(OTHER, WALLET)]
        row = TransactionClassifier(celo).classify(evm_tx(value="1000000000000000000", events=events), WALLET)

        assert (row.amount, row.currency) == ("1.000000", "CELO")
        assert (row.amount2, row.currency2) == ("1.500000", "USDC")
        assert row.direction2 == "in"

    def test_missing_decimals_default_to_18(self, celo):
        events = [token_event(WALLET, OTHER, decimals="", value="3000000000000000000")]
        row = TransactionClassifier(celo).classify(evm_tx(events=events), WALLET)

        assert row.amount == "3.000000"
        assert row.type == TransactionType.SEND

    def test_nft(self, celo):
        events = [token_event(OTHER, WALLET, symbol="PUNK", value="1", token_type=TokenType.ERC721, token_id="42")]
        row = TransactionClassifier(celo).classify(evm_tx(events=events), WALLET)

        assert row.amount == "1 (ID: 42)"
        assert row.currency == "PUNK"
        assert row.type == TransactionType.RECEIVE

    def test_more_than_two_legs_is_flagged(self, celo):
        events = [
            token_event(WALLET, THIRD),
            token_event(THIRD, WALLET, contract=CONTRACT_WETH, symbol="WETH", decimals="18", value="1"),
            token_event(THIRD, WALLET, contract="0x" + "3" * 40, symbol="AIR", decimals="0", value="100"),
        ]
        row = TransactionClassifier(celo).classify(evm_tx(events=events), WALLET)

        assert row.flags == [MULTI_TRANSFER_FLAG]
        assert row.type == TransactionType.SWAP
        assert row.currency2 == "WETH"
        assert "100.000000 AIR" in row.memo

    def test_symbols_are_pinned_per_session(self, celo):
        classifier = TransactionClassifier(celo)
        first = classifier.classify(evm_tx("0x01", events=[token_event(OTHER, WALLET)]), WALLET)
        second = classifier.classify(
            evm_tx("0x02", events=[token_event(OTHER, WALLET, symbol="SCAM", decimals="18")]), WALLET
        )

        assert first.currency == second.currency == "USDC"
        assert second.amount == "1.500000"

    def test_known_token_table(self, celo):
        cusd = "0x765de816845861e75a25fca122bb6898b8b1282a"
        events = [token_event(OTHER, WALLET, contract=cusd, symbol="null", decimals="18",
                              value="1000000000000000000")]
        row = TransactionClassifier(celo).classify(evm_tx(events=events), WALLET)
        assert row.currency == "cUSD"


class TestFallbacks:
    """Tests for unresolved and internal transactions."""

    def test_internal_without_amount(self, celo):
        tx = evm_tx(sender=OTHER, recipient=WALLET, source=RecordSource.INTERNAL,
                    memo="Internal transaction: call", fee=[])
        row = TransactionClassifier(celo).classify(tx, WALLET)

        assert row.type == TransactionType.RECEIVE
        assert row.amount == ""

    def test_unrelated_transaction_is_unknown(self, celo):
        row = TransactionClassifier(celo).classify(evm_tx(sender=OTHER, recipient=THIRD), WALLET)
        assert row.type == TransactionType.UNKNOWN
        assert row.memo.startswith("unknown - [TX: 0x01]")

    def test_no_messages(self, celo):
        tx = ChainTransaction(hash="0x09", timestamp=ts(2024, 1, 1), chain="celo")
        row = TransactionClassifier(celo).classify(tx, WALLET)

        assert row.type == TransactionType.UNKNOWN
        assert (row.from_address, row.to_address) == ("", "")

    def test_one_failure_does_not_abort_the_batch(self, celo):
        class BrokenCache(TokenMetadataCache):
            def resolve(self, contract, api_symbol="", api_name="", api_decimals=""):
                raise RuntimeError("boom")

        txs = [
            evm_tx("0x01", events=[token_event(WALLET, OTHER)]),
            evm_tx("0x02", value="1000000000000000000"),
        ]
        rows = TransactionClassifier(celo, token_cache=BrokenCache()).classify_all(txs, WALLET)

        assert [row.hash for row in rows] == ["0x01", "0x02"]
        assert rows[0].type == TransactionType.UNKNOWN
        assert rows[1].type == TransactionType.SEND


class TestCosmosClassification:
    """Tests for Cosmos message kinds."""

    def cosmos_tx(self, kind, sender, recipient, amount=None, **fields):
        return ChainTransaction(
            hash="AAA",
            height="77",
            timestamp=ts(2024, 3, 1),
            chain="osmosis",
            messages=[TxMessage(kind=kind, from_address=sender, to_address=recipient, amount=amount or [])],
            fee=[Coin(denom="uosmo", amount="10000")],
            source=RecordSource.INDEXED,
            **fields
        )

    def test_receive(self, osmosis):
        tx = self.cosmos_tx(MessageKind.SEND, OSMO_OTHER, OSMO_WALLET, [Coin(denom="uosmo", amount="5000000")])
        row = TransactionClassifier(osmosis).classify(tx, OSMO_WALLET)

        assert row.type == TransactionType.RECEIVE
        assert (row.amount, row.currency) == ("5.000000", "OSMO")
        assert (row.fee, row.fee_currency) == ("0.01000000", "OSMO")

    def test_delegate(self, osmosis):
        tx = self.cosmos_tx(MessageKind.DELEGATE, OSMO_WALLET, "osmovaloper1xyz",
                            [Coin(denom="uosmo", amount="100000000")])
        row = TransactionClassifier(osmosis).classify(tx, OSMO_WALLET)

        assert row.type == TransactionType.DELEGATE
        assert row.amount == "100.000000"
        assert row.direction == "out"

    def test_vote_without_amount(self, osmosis):
        tx = self.cosmos_tx(MessageKind.VOTE, OSMO_WALLET, "")
        row = TransactionClassifier(osmosis).classify(tx, OSMO_WALLET)

        assert row.type == TransactionType.GOVERNANCE_VOTE
        assert row.amount == ""

    def test_foreign_denom_symbol(self, osmosis):
        tx = self.cosmos_tx(MessageKind.IBC_TRANSFER, OSMO_WALLET, "cosmos1xyz",
                            [Coin(denom="uatom", amount="2000000")])
        row = TransactionClassifier(osmosis).classify(tx, OSMO_WALLET)

        assert row.type == TransactionType.IBC_TRANSFER
        assert row.currency == "ATOM"
