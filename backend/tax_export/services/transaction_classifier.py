"""Classify canonical transactions into tax-export rows."""
import logging
from typing import Dict, List, Optional
from pydantic import BaseModel
from tax_export.chains.base import ChainConfig
from tax_export.models.transaction import (
    ChainTransaction,
    Coin,
    MessageKind,
    ParsedTransaction,
    RecordSource,
    TokenType,
    TransactionType,
    TransferEvent,
)
from tax_export.services.token_cache import TokenMetadataCache
from tax_export.utils.coerce import format_amount, is_zero_amount, to_int

logger = logging.getLogger(__name__)

AMOUNT_PLACES = 6
FEE_PLACES = 8

MULTI_TRANSFER_FLAG = "multi_transfer"

# Message kinds that fix the transaction type regardless of direction
FIXED_TYPES: Dict[MessageKind, TransactionType] = {
    MessageKind.IBC_TRANSFER: TransactionType.IBC_TRANSFER,
    MessageKind.DELEGATE: TransactionType.DELEGATE,
    MessageKind.UNDELEGATE: TransactionType.UNDELEGATE,
    MessageKind.REDELEGATE: TransactionType.DELEGATE,
    MessageKind.CLAIM_REWARDS: TransactionType.CLAIM_REWARDS,
    MessageKind.VOTE: TransactionType.GOVERNANCE_VOTE,
    MessageKind.SWAP: TransactionType.SWAP,
    MessageKind.POOL_DEPOSIT: TransactionType.POOL_DEPOSIT,
    MessageKind.POOL_WITHDRAW: TransactionType.POOL_WITHDRAW,
}


class TokenLeg(BaseModel):
    """Resolved amount of one transfer event."""
    amount: str
    symbol: str
    from_address: str
    to_address: str
    is_nft: bool = False

    def summary(self) -> str:
        if self.is_nft:
            return f"{self.symbol} {self.amount}"
        return f"{self.amount} {self.symbol}"


def _direction(outbound: bool, inbound: bool) -> str:
    if outbound:
        return "out"
    if inbound:
        return "in"
    return ""


def _transfer_type(outbound: bool, inbound: bool) -> Optional[TransactionType]:
    if outbound:
        return TransactionType.SEND
    if inbound:
        return TransactionType.RECEIVE
    return None


class TransactionClassifier:
    """
    Turn canonical transactions into ``ParsedTransaction`` rows for a wallet.

    One classifier (and one token cache) serves a single fetch session.
    """

    def __init__(self, chain: ChainConfig, token_cache: Optional[TokenMetadataCache] = None):
        self.chain = chain
        self.token_cache = token_cache or TokenMetadataCache(chain.known_tokens)

    def classify_all(self, transactions: List[ChainTransaction], wallet: str) -> List[ParsedTransaction]:
        """
        Classify a batch; one bad transaction never aborts the rest.

        Args:
            transactions: Canonical transactions
            wallet: Queried wallet address

        Returns:
            One parsed transaction per input, in input order
        """
        parsed = []
        for tx in transactions:
            try:
                parsed.append(self.classify(tx, wallet))
            except Exception as e:
                logger.exception("[CLASSIFY] Failed to classify %s: %s", tx.hash, e)
                parsed.append(ParsedTransaction(
                    hash=tx.hash,
                    timestamp=tx.timestamp,
                    type=TransactionType.UNKNOWN,
                    memo=f"{TransactionType.UNKNOWN.value} - [TX: {tx.hash}]",
                    chain=tx.chain,
                    status="success" if tx.status_code == 0 else "failed",
                ))

        counts: Dict[str, int] = {}
        for row in parsed:
            counts[row.type.value] = counts.get(row.type.value, 0) + 1
        logger.info("[CLASSIFY] %d transactions: %s", len(parsed), counts)
        return parsed

    def classify(self, tx: ChainTransaction, wallet: str) -> ParsedTransaction:
        """Classify one canonical transaction relative to ``wallet``."""
        wallet = (wallet or "").lower()
        tx_type: Optional[TransactionType] = None
        amount = currency = amount2 = currency2 = ""
        direction = direction2 = ""
        flags: List[str] = []

        primary = tx.messages[0] if tx.messages else None
        from_address = primary.from_address if primary else ""
        to_address = primary.to_address if primary else ""
        outbound = bool(wallet) and from_address.lower() == wallet
        inbound = bool(wallet) and to_address.lower() == wallet

        if primary is not None:
            coin = primary.amount[0] if primary.amount else None
            if coin is not None and not is_zero_amount(coin.amount):
                amount = format_amount(coin.amount, self.chain.decimals, AMOUNT_PLACES)
                currency = self._coin_symbol(coin)
                direction = _direction(outbound, inbound)
                tx_type = _transfer_type(outbound, inbound)
            fixed = FIXED_TYPES.get(primary.kind)
            if fixed is not None:
                tx_type = fixed

        legs: List[TokenLeg] = []
        for event in tx.events:
            leg = self._resolve_leg(event)
            legs.append(leg)
            leg_out = bool(wallet) and leg.from_address.lower() == wallet
            leg_in = bool(wallet) and leg.to_address.lower() == wallet

            if len(legs) == 1:
                if not amount:
                    amount, currency = leg.amount, leg.symbol
                    from_address, to_address = leg.from_address, leg.to_address
                    direction = _direction(leg_out, leg_in)
                    tx_type = _transfer_type(leg_out, leg_in)
                elif not amount2:
                    amount2, currency2 = leg.amount, leg.symbol
                    direction2 = _direction(leg_out, leg_in)
            elif len(legs) == 2 and not amount2:
                amount2, currency2 = leg.amount, leg.symbol
                direction2 = _direction(leg_out, leg_in)
                first = legs[0]
                first_out = bool(wallet) and first.from_address.lower() == wallet
                first_in = bool(wallet) and first.to_address.lower() == wallet
                if (first_out and leg_in) or (first_in and leg_out):
                    tx_type = TransactionType.SWAP

        if len(legs) > 2:
            flags.append(MULTI_TRANSFER_FLAG)
            logger.warning(
                "[CLASSIFY] %s carries %d token transfers; only the first two are classified",
                tx.hash, len(legs)
            )

        if tx_type is None and (
            tx.source == RecordSource.INTERNAL or "Internal transaction" in tx.memo
        ):
            tx_type = _transfer_type(outbound, inbound)

        if tx_type is None:
            tx_type = TransactionType.UNKNOWN

        fee, fee_currency = self._fee(tx.fee)

        return ParsedTransaction(
            hash=tx.hash,
            timestamp=tx.timestamp,
            height=to_int(tx.height),
            type=tx_type,
            from_address=from_address,
            to_address=to_address,
            amount=amount,
            currency=currency,
            amount2=amount2,
            currency2=currency2,
            fee=fee,
            fee_currency=fee_currency,
            memo=self._notes(tx, tx_type, legs, from_address, to_address),
            status="success" if tx.status_code == 0 else "failed",
            chain=tx.chain,
            direction=direction,
            direction2=direction2,
            flags=flags,
        )

    def _coin_symbol(self, coin: Coin) -> str:
        if self.chain.is_native_denom(coin.denom):
            return self.chain.native_symbol
        return self.chain.symbol_for_denom(coin.denom)

    def _resolve_leg(self, event: TransferEvent) -> TokenLeg:
        metadata = self.token_cache.resolve(
            event.contract, event.symbol, event.name, event.decimals
        )
        if event.token_type == TokenType.ERC721:
            amount = f"1 (ID: {event.token_id})" if event.token_id else "1"
            is_nft = True
        else:
            amount = format_amount(event.value, metadata.decimals, AMOUNT_PLACES)
            is_nft = False
        return TokenLeg(
            amount=amount,
            symbol=metadata.symbol,
            from_address=event.from_address,
            to_address=event.to_address,
            is_nft=is_nft,
        )

    def _fee(self, fee: List[Coin]):
        if not fee or is_zero_amount(fee[0].amount):
            return "", ""
        return format_amount(fee[0].amount, self.chain.decimals, FEE_PLACES), self.chain.native_symbol

    @staticmethod
    def _notes(
        tx: ChainTransaction,
        tx_type: TransactionType,
        legs: List[TokenLeg],
        from_address: str,
        to_address: str
    ) -> str:
        notes = tx_type.value
        if legs:
            notes += " - " + ", ".join(leg.summary() for leg in legs)
        notes += f" - [TX: {tx.hash}]"
        notes += f" ({from_address[:8]}... -> {to_address[:8]}...)"
        if tx.memo:
            notes += f" ({tx.memo})"
        return notes
