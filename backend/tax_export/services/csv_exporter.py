"""Awaken Tax CSV export."""
import csv
import io
import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional
from tax_export.models.report import CsvFormat
from tax_export.models.transaction import ParsedTransaction, TransactionType
from tax_export.utils.coerce import is_zero_amount

logger = logging.getLogger(__name__)

STANDARD_COLUMNS = [
    "Date",
    "Received Quantity",
    "Received Currency",
    "Received Fiat Amount",
    "Sent Quantity",
    "Sent Currency",
    "Sent Fiat Amount",
    "Received Quantity 2",
    "Received Currency 2",
    "Sent Quantity 2",
    "Sent Currency 2",
    "Fee Amount",
    "Fee Currency",
    "Notes",
    "Tag",
]

TRADING_COLUMNS = [
    "Date",
    "Asset",
    "Amount",
    "Fee",
    "P&L",
    "Payment Token",
    "ID",
    "Notes",
    "Tag",
    "Transaction Hash",
]

# Awaken category tags
STANDARD_TAGS: Dict[TransactionType, str] = {
    TransactionType.SEND: "transfer",
    TransactionType.RECEIVE: "transfer",
    TransactionType.SWAP: "swap",
    TransactionType.IBC_TRANSFER: "transfer",
    TransactionType.DELEGATE: "stake",
    TransactionType.UNDELEGATE: "unstake",
    TransactionType.CLAIM_REWARDS: "staking_reward",
    TransactionType.POOL_DEPOSIT: "add_liquidity",
    TransactionType.POOL_WITHDRAW: "remove_liquidity",
    TransactionType.GOVERNANCE_VOTE: "",
    TransactionType.UNKNOWN: "",
}

TRADING_TAGS = {
    "out": "close_position",
    "in": "open_position",
}

INBOUND_TYPES = {
    TransactionType.RECEIVE,
    TransactionType.CLAIM_REWARDS,
    TransactionType.UNDELEGATE,
    TransactionType.POOL_WITHDRAW,
}

OUTBOUND_TYPES = {
    TransactionType.SEND,
    TransactionType.IBC_TRANSFER,
    TransactionType.DELEGATE,
    TransactionType.POOL_DEPOSIT,
    TransactionType.SWAP,
}


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_standard_date(value: datetime) -> str:
    """Awaken date format, M/D/YY H:MM in UTC."""
    value = _utc(value)
    return f"{value.month}/{value.day}/{value.year % 100:02d} {value.hour}:{value.minute:02d}"


def primary_side(tx: ParsedTransaction, wallet: str = "") -> str:
    """
    Whether the first leg left ("out") or entered ("in") the wallet.

    Returns "" when neither the row, the wallet nor the type settles it; such
    rows are exported without quantities.
    """
    if tx.direction in ("in", "out"):
        return tx.direction
    wallet = (wallet or "").lower()
    if wallet:
        if tx.from_address.lower() == wallet:
            return "out"
        if tx.to_address.lower() == wallet:
            return "in"
    if tx.type in INBOUND_TYPES:
        return "in"
    if tx.type in OUTBOUND_TYPES:
        return "out"
    return ""


def secondary_side(tx: ParsedTransaction, first: str) -> str:
    """Side of the second leg; a swap's legs face opposite ways."""
    if tx.direction2 in ("in", "out"):
        return tx.direction2
    if tx.type == TransactionType.SWAP and first:
        return "in" if first == "out" else "out"
    return first


def _has_amount(amount: str) -> bool:
    if not amount:
        return False
    # NFT legs read "1 (ID: 42)"
    return not is_zero_amount(amount.split(" ", 1)[0])


def _standard_row(tx: ParsedTransaction, wallet: str) -> Dict[str, str]:
    row = {column: "" for column in STANDARD_COLUMNS}
    row["Date"] = format_standard_date(tx.timestamp)

    first = primary_side(tx, wallet)
    if _has_amount(tx.amount):
        if first == "out":
            row["Sent Quantity"], row["Sent Currency"] = tx.amount, tx.currency
        elif first == "in":
            row["Received Quantity"], row["Received Currency"] = tx.amount, tx.currency

    second = secondary_side(tx, first)
    if _has_amount(tx.amount2) and second:
        if second == "out":
            slot = "Sent Quantity" if not row["Sent Quantity"] else "Sent Quantity 2"
            currency_slot = "Sent Currency" if slot == "Sent Quantity" else "Sent Currency 2"
        else:
            slot = "Received Quantity" if not row["Received Quantity"] else "Received Quantity 2"
            currency_slot = "Received Currency" if slot == "Received Quantity" else "Received Currency 2"
        row[slot], row[currency_slot] = tx.amount2, tx.currency2

    if _has_amount(tx.fee):
        row["Fee Amount"], row["Fee Currency"] = tx.fee, tx.fee_currency

    row["Notes"] = tx.memo
    row["Tag"] = STANDARD_TAGS.get(tx.type, "")
    return row


def _trading_row(tx: ParsedTransaction, index: int, wallet: str) -> Dict[str, str]:
    side = primary_side(tx, wallet)
    amount = tx.amount if side and _has_amount(tx.amount) else ""
    if amount and side == "out":
        amount = f"-{amount}"

    return {
        "Date": _utc(tx.timestamp).strftime("%Y-%m-%d"),
        "Asset": tx.currency or "UNKNOWN",
        "Amount": amount,
        "Fee": tx.fee if _has_amount(tx.fee) else "",
        "P&L": "",
        "Payment Token": tx.fee_currency if _has_amount(tx.fee) else "",
        "ID": f"TXN{index:03d}",
        "Notes": tx.memo,
        "Tag": TRADING_TAGS.get(side, ""),
        "Transaction Hash": tx.hash,
    }


def convert_to_awaken_rows(
    transactions: List[ParsedTransaction],
    wallet: str = "",
    fmt: CsvFormat = CsvFormat.STANDARD
) -> List[Dict[str, str]]:
    """
    Map parsed transactions to Awaken CSV rows.

    Args:
        transactions: Classified transactions
        wallet: Queried wallet, used when a row carries no direction
        fmt: Target schema

    Returns:
        Ordered rows keyed by column name
    """
    if CsvFormat(fmt) == CsvFormat.TRADING:
        return [_trading_row(tx, index, wallet) for index, tx in enumerate(transactions, start=1)]
    return [_standard_row(tx, wallet) for tx in transactions]


def generate_csv_content(rows: List[Dict[str, str]]) -> str:
    """Serialize rows; the header is the key order of the first row, with no trailing newline."""
    if not rows:
        return ""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=list(rows[0].keys()), lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    logger.info("[EXPORT] Wrote %d CSV rows", len(rows))
    return output.getvalue()[:-1]


def generate_filename(
    chain: str,
    wallet: str,
    fmt: CsvFormat = CsvFormat.STANDARD,
    today: Optional[date] = None
) -> str:
    """e.g. ``celo-awaken-0xd8763c-trading-2024-05-01.csv``."""
    today = today or datetime.now(timezone.utc).date()
    suffix = "-trading" if CsvFormat(fmt) == CsvFormat.TRADING else ""
    return f"{chain}-awaken-{wallet[:8]}{suffix}-{today.isoformat()}.csv"
