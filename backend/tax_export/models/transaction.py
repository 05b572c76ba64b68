"""Canonical and classified transaction models."""
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, Field

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class MessageKind(str, Enum):
    """Chain-agnostic message type tag."""
    SEND = "send"
    IBC_TRANSFER = "ibc_transfer"
    DELEGATE = "delegate"
    UNDELEGATE = "undelegate"
    REDELEGATE = "redelegate"
    CLAIM_REWARDS = "claim_rewards"
    VOTE = "vote"
    SWAP = "swap"
    POOL_DEPOSIT = "pool_deposit"
    POOL_WITHDRAW = "pool_withdraw"
    CONTRACT_CALL = "contract_call"
    UNKNOWN = "unknown"


class TokenType(str, Enum):
    """Token standard of a transfer event."""
    ERC20 = "ERC20"
    ERC721 = "ERC721"
    ERC1155 = "ERC1155"


class RecordSource(str, Enum):
    """Which raw record a canonical transaction was built from."""
    BASE = "base"
    INTERNAL = "internal"
    TRANSFER = "transfer"
    INDEXED = "indexed"


class TransactionType(str, Enum):
    """Transaction type enumeration."""
    SEND = "send"
    RECEIVE = "receive"
    SWAP = "swap"
    IBC_TRANSFER = "ibc_transfer"
    DELEGATE = "delegate"
    UNDELEGATE = "undelegate"
    CLAIM_REWARDS = "claim_rewards"
    POOL_DEPOSIT = "pool_deposit"
    POOL_WITHDRAW = "pool_withdraw"
    GOVERNANCE_VOTE = "governance_vote"
    UNKNOWN = "unknown"


class Coin(BaseModel):
    """Amount in base units; ``amount`` stays a decimal string."""
    denom: str = ""
    amount: str = "0"


def parse_coins(value: Any) -> List[Coin]:
    """Parse a coin or list of coins from a message or fee field."""
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return []
    coins = []
    for entry in value:
        if isinstance(entry, dict) and entry.get("denom"):
            coins.append(Coin(denom=str(entry["denom"]), amount=str(entry.get("amount") or "0")))
    return coins


class TxMessage(BaseModel):
    """One message of a canonical transaction."""
    kind: MessageKind = MessageKind.UNKNOWN
    type_url: str = ""
    from_address: str = ""
    to_address: str = ""
    amount: List[Coin] = Field(default_factory=list)
    validator_address: str = ""


class TransferEvent(BaseModel):
    """Token movement attached to a transaction (ERC20/721/1155 or equivalent)."""
    token_type: TokenType = TokenType.ERC20
    contract: str = ""
    symbol: str = ""
    name: str = ""
    decimals: str = ""
    value: str = "0"
    token_id: Optional[str] = None
    from_address: str = ""
    to_address: str = ""


class ChainTransaction(BaseModel):
    """Chain-agnostic normalized record, one per unique hash."""
    hash: str = Field(..., description="Transaction hash, unique within a chain")
    height: str = Field(default="0", description="Block height")
    timestamp: datetime = Field(..., description="Block time (UTC)")
    status_code: int = Field(default=0, description="0 = success, nonzero = failed")
    chain: str = Field(..., description="Chain identifier")
    messages: List[TxMessage] = Field(default_factory=list)
    events: List[TransferEvent] = Field(default_factory=list)
    memo: str = ""
    fee: List[Coin] = Field(default_factory=list)
    source: RecordSource = RecordSource.BASE


class TokenMetadata(BaseModel):
    """Resolved token metadata, cached per fetch session."""
    symbol: str
    decimals: int
    name: str


class ParsedTransaction(BaseModel):
    """Classified transaction, source of one CSV row."""
    hash: str
    timestamp: datetime
    height: int = 0
    type: TransactionType = TransactionType.UNKNOWN
    from_address: str = Field(default="", alias="from")
    to_address: str = Field(default="", alias="to")
    amount: str = ""
    currency: str = ""
    amount2: str = ""
    currency2: str = ""
    fee: str = ""
    fee_currency: str = ""
    memo: str = ""
    status: str = "success"
    chain: str = ""
    direction: str = Field(default="", description="Wallet-relative direction of the first leg: in, out or empty")
    direction2: str = Field(default="", description="Wallet-relative direction of the second leg")
    flags: List[str] = Field(default_factory=list, description="Classifier warnings")

    class Config:
        populate_by_name = True
