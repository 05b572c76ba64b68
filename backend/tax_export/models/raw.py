"""Raw record variants produced by fetchers and consumed by the normalizer.

Each fetcher validates its upstream payload with its own schema models and
converts every item into one of the variants below, so the normalizer never
sees upstream-specific JSON.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field, field_validator, model_validator
from tax_export.models.transaction import Coin, TokenType
from tax_export.utils.coerce import parse_timestamp


class RecordKind(str, Enum):
    """Record stream a raw record belongs to."""
    BASE = "base"
    INTERNAL = "internal"
    ERC20 = "erc20"
    ERC721 = "erc721"
    ERC1155 = "erc1155"
    COSMOS = "cosmos"


TRANSFER_KINDS = (RecordKind.ERC20, RecordKind.ERC721, RecordKind.ERC1155)

TOKEN_TYPE_BY_KIND = {
    RecordKind.ERC20: TokenType.ERC20,
    RecordKind.ERC721: TokenType.ERC721,
    RecordKind.ERC1155: TokenType.ERC1155,
}


class UpstreamModel(BaseModel):
    """
    Base for upstream response schemas.

    Explorers send nulls and numbers where strings are documented; nulls are
    dropped so field defaults apply, and numbers are coerced to strings.
    """

    class Config:
        extra = "ignore"
        populate_by_name = True
        coerce_numbers_to_str = True

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class RawRecord(UpstreamModel):
    """Fields shared by every raw record variant."""
    hash: str
    block_number: str = "0"
    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime:
        return parse_timestamp(value)


class BaseTxRecord(RawRecord):
    """Top-level transaction (native value transfer or contract call)."""
    kind: RecordKind = RecordKind.BASE
    from_address: str = ""
    to_address: str = ""
    value: str = "0"
    gas_used: str = ""
    gas_price: str = ""
    fee: Optional[str] = None  # set when the API reports the fee directly
    is_error: bool = False
    input: str = ""
    memo: str = ""


class InternalTxRecord(RawRecord):
    """Contract-initiated value transfer (trace)."""
    kind: RecordKind = RecordKind.INTERNAL
    from_address: str = ""
    to_address: str = ""
    value: str = "0"
    call_type: str = ""
    trace_id: str = ""
    contract_address: str = ""
    err_code: str = ""
    is_error: bool = False


class TokenTransferRecord(RawRecord):
    """ERC20 / ERC721 / ERC1155 transfer log."""
    kind: RecordKind = RecordKind.ERC20
    from_address: str = ""
    to_address: str = ""
    contract_address: str = ""
    value: str = "0"
    token_name: str = ""
    token_symbol: str = ""
    token_decimal: str = ""
    token_id: Optional[str] = None

    @property
    def token_type(self) -> TokenType:
        return TOKEN_TYPE_BY_KIND.get(self.kind, TokenType.ERC20)


class CosmosTxRecord(RawRecord):
    """Cosmos SDK tx response (LCD, Mintscan, Celenium)."""
    kind: RecordKind = RecordKind.COSMOS
    code: int = 0
    messages: List[Dict[str, Any]] = Field(default_factory=list)
    memo: str = ""
    fee: List[Coin] = Field(default_factory=list)


AnyRecord = Union[BaseTxRecord, InternalTxRecord, TokenTransferRecord, CosmosTxRecord]
