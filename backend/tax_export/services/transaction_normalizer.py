"""Transaction normalization service."""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from tax_export.chains.base import ChainConfig, ChainFamily
from tax_export.models.raw import (
    AnyRecord,
    BaseTxRecord,
    CosmosTxRecord,
    InternalTxRecord,
    RecordKind,
    TokenTransferRecord,
    TRANSFER_KINDS,
)
from tax_export.models.transaction import (
    ZERO_ADDRESS,
    ChainTransaction,
    Coin,
    MessageKind,
    RecordSource,
    TransferEvent,
    TxMessage,
    parse_coins,
)
from tax_export.utils.coerce import to_int

logger = logging.getLogger(__name__)

# Cosmos message name (last segment of the type URL) -> kind
MESSAGE_KINDS: Dict[str, MessageKind] = {
    "MsgSend": MessageKind.SEND,
    "MsgMultiSend": MessageKind.SEND,
    "MsgTransfer": MessageKind.IBC_TRANSFER,
    "MsgRecvPacket": MessageKind.IBC_TRANSFER,
    "MsgDelegate": MessageKind.DELEGATE,
    "MsgWrappedDelegate": MessageKind.DELEGATE,
    "MsgCreateBTCDelegation": MessageKind.DELEGATE,
    "MsgSuperfluidDelegate": MessageKind.DELEGATE,
    "MsgLockTokens": MessageKind.DELEGATE,
    "MsgUndelegate": MessageKind.UNDELEGATE,
    "MsgWrappedUndelegate": MessageKind.UNDELEGATE,
    "MsgBeginUnlocking": MessageKind.UNDELEGATE,
    "MsgSuperfluidUndelegate": MessageKind.UNDELEGATE,
    "MsgBeginRedelegate": MessageKind.REDELEGATE,
    "MsgWrappedBeginRedelegate": MessageKind.REDELEGATE,
    "MsgWithdrawDelegatorReward": MessageKind.CLAIM_REWARDS,
    "MsgWithdrawValidatorCommission": MessageKind.CLAIM_REWARDS,
    "MsgWithdrawReward": MessageKind.CLAIM_REWARDS,
    "MsgVote": MessageKind.VOTE,
    "MsgVoteWeighted": MessageKind.VOTE,
    "MsgSwapExactAmountIn": MessageKind.SWAP,
    "MsgSwapExactAmountOut": MessageKind.SWAP,
    "MsgSplitRouteSwapExactAmountIn": MessageKind.SWAP,
    "MsgSplitRouteSwapExactAmountOut": MessageKind.SWAP,
    "MsgJoinPool": MessageKind.POOL_DEPOSIT,
    "MsgJoinSwapExternAmountIn": MessageKind.POOL_DEPOSIT,
    "MsgCreatePosition": MessageKind.POOL_DEPOSIT,
    "MsgExitPool": MessageKind.POOL_WITHDRAW,
    "MsgExitSwapShareAmountIn": MessageKind.POOL_WITHDRAW,
    "MsgWithdrawPosition": MessageKind.POOL_WITHDRAW,
    "MsgExecuteContract": MessageKind.CONTRACT_CALL,
}

# Message fields holding the sender / recipient, in order of preference
SENDER_FIELDS = ("from_address", "sender", "delegator_address", "voter", "signer", "depositor", "owner")
RECIPIENT_FIELDS = ("to_address", "receiver", "validator_address", "validator_dst_address", "contract")
AMOUNT_FIELDS = ("amount", "token", "token_in", "tokens", "token_in_maxs", "funds", "coins")


def message_kind(type_url: str) -> MessageKind:
    """Map a Cosmos type URL (or bare message name) to a MessageKind."""
    name = (type_url or "").rsplit(".", 1)[-1].lstrip("/")
    return MESSAGE_KINDS.get(name, MessageKind.UNKNOWN)


def _first_field(message: Dict[str, Any], fields: Iterable[str]) -> str:
    for field in fields:
        value = message.get(field)
        if isinstance(value, str) and value:
            return value
    return ""


class TransferBucket:
    """Transfer records sharing one transaction hash."""

    def __init__(self):
        self.by_kind: Dict[RecordKind, List[TokenTransferRecord]] = {
            kind: [] for kind in TRANSFER_KINDS
        }

    def add(self, record: TokenTransferRecord):
        self.by_kind.setdefault(record.kind, []).append(record)

    def records(self) -> List[TokenTransferRecord]:
        """All records, fungible first, then NFTs, then multi-tokens."""
        return [record for kind in TRANSFER_KINDS for record in self.by_kind.get(kind, [])]

    def events(self) -> List[TransferEvent]:
        return [
            TransferEvent(
                token_type=record.token_type,
                contract=record.contract_address,
                symbol=record.token_symbol,
                name=record.token_name,
                decimals=record.token_decimal,
                value=record.value,
                token_id=record.token_id,
                from_address=record.from_address,
                to_address=record.to_address,
            )
            for record in self.records()
        ]


class TransactionNormalizer:
    """
    Merge raw record streams into one canonical transaction per hash.

    Transfers are grouped by hash and attached to their base transaction;
    internal traces and orphaned transfers without a base record get a
    synthesized canonical record. Cosmos tx responses map one-to-one.
    """

    def __init__(self, chain: ChainConfig):
        self.chain = chain

    @property
    def native_denom(self) -> str:
        if self.chain.family == ChainFamily.EVM:
            return "wei"
        return self.chain.native_denom or "native"

    def normalize(self, streams: Dict[RecordKind, List[AnyRecord]]) -> List[ChainTransaction]:
        """
        Normalize raw record streams.

        Args:
            streams: Raw records keyed by stream

        Returns:
            Canonical transactions, newest first
        """
        buckets = self._group_transfers(streams)
        processed: Set[str] = set()
        transactions: List[ChainTransaction] = []
        duplicates = 0

        for record in streams.get(RecordKind.BASE, []):
            if record.hash in processed:
                duplicates += 1
                continue
            transactions.append(self._from_base(record, buckets.get(record.hash)))
            processed.add(record.hash)

        for record in streams.get(RecordKind.INTERNAL, []):
            if record.hash in processed:
                continue
            transactions.append(self._from_internal(record))
            processed.add(record.hash)

        orphans = 0
        for tx_hash, bucket in buckets.items():
            if tx_hash in processed:
                continue
            transactions.append(self._from_orphan(tx_hash, bucket))
            processed.add(tx_hash)
            orphans += 1

        for record in streams.get(RecordKind.COSMOS, []):
            if record.hash in processed:
                duplicates += 1
                continue
            transactions.append(self._from_cosmos(record))
            processed.add(record.hash)

        if duplicates:
            logger.info("[NORMALIZE] Dropped %d duplicate records", duplicates)
        if orphans:
            logger.info("[NORMALIZE] Synthesized %d transactions from orphaned transfers", orphans)
        logger.info(
            "[NORMALIZE] %s: %d raw records -> %d transactions",
            self.chain.id, sum(len(records) for records in streams.values()), len(transactions)
        )

        return self.sort_transactions(transactions)

    @staticmethod
    def sort_transactions(transactions: List[ChainTransaction]) -> List[ChainTransaction]:
        """Newest first; ties keep their input order."""
        return sorted(transactions, key=lambda tx: tx.timestamp, reverse=True)

    @staticmethod
    def _group_transfers(streams: Dict[RecordKind, List[AnyRecord]]) -> Dict[str, TransferBucket]:
        buckets: Dict[str, TransferBucket] = {}
        for kind in TRANSFER_KINDS:
            for record in streams.get(kind, []):
                buckets.setdefault(record.hash, TransferBucket()).add(record)
        return buckets

    def _from_base(self, record: BaseTxRecord, bucket: Optional[TransferBucket]) -> ChainTransaction:
        if record.fee is not None:
            fee = record.fee
        else:
            fee = str(to_int(record.gas_used) * to_int(record.gas_price))

        memo = record.memo
        if not memo and record.input and record.input != "0x":
            memo = f"Input: {record.input[:30]}..."

        return ChainTransaction(
            hash=record.hash,
            height=record.block_number,
            timestamp=record.timestamp,
            status_code=1 if record.is_error else 0,
            chain=self.chain.id,
            messages=[TxMessage(
                kind=MessageKind.SEND if record.input in ("", "0x") else MessageKind.CONTRACT_CALL,
                from_address=record.from_address,
                to_address=record.to_address or ZERO_ADDRESS,
                amount=[Coin(denom=self.native_denom, amount=record.value or "0")],
            )],
            events=bucket.events() if bucket else [],
            memo=memo,
            fee=[Coin(denom=self.native_denom, amount=fee)],
            source=RecordSource.BASE,
        )

    def _from_internal(self, record: InternalTxRecord) -> ChainTransaction:
        return ChainTransaction(
            hash=record.hash,
            height=record.block_number,
            timestamp=record.timestamp,
            status_code=1 if record.is_error else 0,
            chain=self.chain.id,
            messages=[TxMessage(
                kind=MessageKind.SEND,
                from_address=record.from_address,
                to_address=record.to_address or ZERO_ADDRESS,
                amount=[Coin(denom=self.native_denom, amount=record.value or "0")],
            )],
            memo=f"Internal transaction: {record.call_type or 'call'}",
            source=RecordSource.INTERNAL,
        )

    def _from_orphan(self, tx_hash: str, bucket: TransferBucket) -> ChainTransaction:
        records = bucket.records()
        earliest = min(records, key=self._record_position)
        first = records[0]
        return ChainTransaction(
            hash=tx_hash,
            height=earliest.block_number,
            timestamp=earliest.timestamp,
            chain=self.chain.id,
            messages=[TxMessage(
                kind=MessageKind.SEND,
                from_address=first.from_address,
                to_address=first.to_address or ZERO_ADDRESS,
                amount=[Coin(denom=self.native_denom, amount="0")],
            )],
            events=bucket.events(),
            memo="Token transfer",
            source=RecordSource.TRANSFER,
        )

    @staticmethod
    def _record_position(record: TokenTransferRecord) -> Tuple[datetime, int]:
        return record.timestamp, to_int(record.block_number)

    def _from_cosmos(self, record: CosmosTxRecord) -> ChainTransaction:
        return ChainTransaction(
            hash=record.hash,
            height=record.block_number,
            timestamp=record.timestamp,
            status_code=record.code,
            chain=self.chain.id,
            messages=[self._cosmos_message(message) for message in record.messages],
            memo=record.memo,
            fee=record.fee,
            source=RecordSource.INDEXED,
        )

    @staticmethod
    def _cosmos_message(message: Dict[str, Any]) -> TxMessage:
        type_url = str(message.get("@type") or message.get("type") or "")
        amount: List[Coin] = []
        for field in AMOUNT_FIELDS:
            amount = parse_coins(message.get(field))
            if amount:
                break
        return TxMessage(
            kind=message_kind(type_url),
            type_url=type_url,
            from_address=_first_field(message, SENDER_FIELDS),
            to_address=_first_field(message, RECIPIENT_FIELDS),
            amount=amount,
            validator_address=_first_field(message, ("validator_address", "validator_dst_address")),
        )


def summarize_dates(
    transactions: List[ChainTransaction]
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """First and last transaction timestamps, or (None, None)."""
    if not transactions:
        return None, None
    timestamps = [tx.timestamp for tx in transactions]
    return min(timestamps), max(timestamps)


def filter_by_year(transactions: List[ChainTransaction], year: int) -> List[ChainTransaction]:
    """Keep transactions whose UTC timestamp falls in ``year``."""
    return [tx for tx in transactions if tx.timestamp.year == year]
