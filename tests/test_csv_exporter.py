"""Tests for Awaken CSV export."""
import csv
import io
from datetime import date

from tax_export.models.report import CsvFormat
from tax_export.models.transaction import ParsedTransaction, TransactionType
from tax_export.services.csv_exporter import (
    STANDARD_COLUMNS,
    TRADING_COLUMNS,
    convert_to_awaken_rows,
    format_standard_date,
    generate_csv_content,
    generate_filename,
)

from conftest import OSMO_OTHER, OSMO_WALLET, OTHER, THIRD, WALLET, ts


def parsed(**fields):
    data = dict(hash="H1", timestamp=ts(2024, 3, 5, 9, 7), type=TransactionType.SEND, memo="note")
    data.update(fields)
    return ParsedTransaction(**data)


class TestStandardFormat:
    """Tests for the standard Awaken schema."""

    def test_receive(self):
        tx = parsed(type=TransactionType.RECEIVE, amount="5", currency="OSMO", fee="0.01",
                    fee_currency="OSMO", from_address=OSMO_OTHER, to_address=OSMO_WALLET)
        row = convert_to_awaken_rows([tx], OSMO_WALLET)[0]

        assert list(row.keys()) == STANDARD_COLUMNS
        assert row["Received Quantity"] == "5"
        assert row["Received Currency"] == "OSMO"
        assert row["Sent Quantity"] == ""
        assert row["Fee Amount"] == "0.01"
        assert row["Fee Currency"] == "OSMO"
        assert row["Tag"] == "transfer"
        assert row["Date"] == "3/5/24 9:07"

    def test_send_uses_direction(self):
        row = convert_to_awaken_rows([parsed(amount="1.000000", currency="CELO", direction="out")])[0]
        assert (row["Sent Quantity"], row["Sent Currency"]) == ("1.000000", "CELO")
        assert row["Received Quantity"] == ""

    def test_zero_amount_never_fills_quantity(self):
        tx = parsed(amount="0", currency="CELO", amount2="0.000000", currency2="USDC", fee="0")
        row = convert_to_awaken_rows([tx], WALLET)[0]

        for column in ("Received Quantity", "Sent Quantity", "Received Quantity 2", "Sent Quantity 2", "Fee Amount"):
            assert row[column] == ""

    def test_swap_legs(self):
        tx = parsed(type=TransactionType.SWAP, amount="1.500000", currency="USDC",
                    amount2="0.500000", currency2="ETH", direction="out", direction2="in")
        row = convert_to_awaken_rows([tx], WALLET)[0]

        assert (row["Sent Quantity"], row["Sent Currency"]) == ("1.500000", "USDC")
        assert (row["Received Quantity"], row["Received Currency"]) == ("0.500000", "ETH")
        assert row["Tag"] == "swap"

    def test_swap_without_directions_uses_opposite_sides(self):
        tx = parsed(type=TransactionType.SWAP, amount="1", currency="A", amount2="2", currency2="B")
        row = convert_to_awaken_rows([tx])[0]

        assert row["Sent Currency"] == "A"
        assert row["Received Currency"] == "B"

    def test_second_leg_same_side_uses_second_slot(self):
        tx = parsed(type=TransactionType.RECEIVE, amount="1.000000", currency="CELO",
                    amount2="1.500000", currency2="USDC", direction="in", direction2="in")
        row = convert_to_awaken_rows([tx])[0]

        assert (row["Received Quantity"], row["Received Currency"]) == ("1.000000", "CELO")
        assert (row["Received Quantity 2"], row["Received Currency 2"]) == ("1.500000", "USDC")

    def test_direction_from_wallet_match(self):
        tx = parsed(type=TransactionType.UNKNOWN, amount="3", currency="X", from_address=OTHER, to_address=WALLET)
        row = convert_to_awaken_rows([tx], WALLET)[0]

        assert row["Received Quantity"] == "3"
        assert row["Tag"] == ""

    def test_unresolved_row_books_no_quantity(self):
        tx = parsed(type=TransactionType.UNKNOWN, amount="5.000000", currency="CELO",
                    fee="0.00002100", fee_currency="CELO", from_address=OTHER, to_address=THIRD)
        row = convert_to_awaken_rows([tx], WALLET)[0]

        for column in ("Received Quantity", "Received Currency", "Sent Quantity", "Sent Currency"):
            assert row[column] == ""
        assert row["Fee Amount"] == "0.00002100"
        assert row["Tag"] == ""

    def test_nft_amount(self):
        tx = parsed(type=TransactionType.RECEIVE, amount="1 (ID: 42)", currency="PUNK")
        row = convert_to_awaken_rows([tx])[0]
        assert row["Received Quantity"] == "1 (ID: 42)"

    def test_staking_tags(self):
        rows = convert_to_awaken_rows([
            parsed(type=TransactionType.DELEGATE),
            parsed(type=TransactionType.CLAIM_REWARDS),
            parsed(type=TransactionType.POOL_DEPOSIT),
        ])
        assert [row["Tag"] for row in rows] == ["stake", "staking_reward", "add_liquidity"]

    def test_date_is_utc(self):
        from datetime import datetime, timedelta, timezone
        local = datetime(2024, 1, 1, 2, 30, tzinfo=timezone(timedelta(hours=5)))
        assert format_standard_date(local) == "12/31/23 21:30"


class TestTradingFormat:
    """Tests for the perpetuals/trading schema."""

    def test_outbound_is_negative(self):
        rows = convert_to_awaken_rows(
            [parsed(amount="2.500000", currency="CELO", direction="out", fee="0.00002100", fee_currency="CELO")],
            WALLET,
            CsvFormat.TRADING,
        )
        row = rows[0]

        assert list(row.keys()) == TRADING_COLUMNS
        assert row["Amount"] == "-2.500000"
        assert row["Tag"] == "close_position"
        assert row["ID"] == "TXN001"
        assert row["Date"] == "2024-03-05"
        assert row["Fee"] == "0.00002100"
        assert row["Transaction Hash"] == "H1"

    def test_inbound_and_unknown_asset(self):
        rows = convert_to_awaken_rows(
            [parsed(), parsed(hash="H2", type=TransactionType.RECEIVE, amount="1", currency="OSMO")],
            fmt="trading",
        )

        assert rows[0]["Asset"] == "UNKNOWN"
        assert rows[0]["Amount"] == ""
        assert rows[1]["Amount"] == "1"
        assert rows[1]["Tag"] == "open_position"
        assert rows[1]["ID"] == "TXN002"

    def test_unresolved_row_has_no_amount(self):
        tx = parsed(type=TransactionType.UNKNOWN, amount="5.000000", currency="CELO",
                    from_address=OTHER, to_address=THIRD)
        row = convert_to_awaken_rows([tx], WALLET, CsvFormat.TRADING)[0]

        assert row["Amount"] == ""
        assert row["Tag"] == ""


class TestSerialization:
    """Tests for CSV text and file naming."""

    def test_quoting(self):
        tx = parsed(memo='swap, "fast" route', amount="1", currency="CELO", direction="out")
        content = generate_csv_content(convert_to_awaken_rows([tx]))

        lines = content.split("\n")
        assert lines[0] == ",".join(STANDARD_COLUMNS)
        assert '"swap, ""fast"" route"' in lines[1]

        parsed_rows = list(csv.DictReader(io.StringIO(content)))
        assert parsed_rows[0]["Notes"] == 'swap, "fast" route'
        assert parsed_rows[0]["Sent Quantity"] == "1"

    def test_no_trailing_newline(self):
        content = generate_csv_content(convert_to_awaken_rows([parsed(), parsed(hash="H2")]))

        assert not content.endswith("\n")
        assert len(content.split("\n")) == 3

    def test_empty(self):
        assert generate_csv_content([]) == ""
        assert convert_to_awaken_rows([]) == []

    def test_filename(self):
        day = date(2024, 5, 1)
        assert generate_filename("celo", WALLET, today=day) == "celo-awaken-0xaaaaaa-2024-05-01.csv"
        assert generate_filename("osmosis", OSMO_WALLET, CsvFormat.TRADING, today=day) == \
            "osmosis-awaken-osmo1g8g-trading-2024-05-01.csv"
