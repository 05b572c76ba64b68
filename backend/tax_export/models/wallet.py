"""Wallet query models."""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from tax_export.models.transaction import ParsedTransaction


class WalletRequest(BaseModel):
    """Request model for a wallet history query."""
    chain: str = Field(..., description="Chain identifier, e.g. 'osmosis' or 'celo'")
    address: str = Field(..., min_length=1, description="Wallet address")


class FetchMetadata(BaseModel):
    """Summary of one fetch session."""
    address: str
    chain: str
    total_fetched: int = 0
    stream_counts: Dict[str, int] = Field(default_factory=dict, description="Raw records per stream")
    first_transaction_date: Optional[datetime] = None
    last_transaction_date: Optional[datetime] = None
    data_source: str = ""
    endpoints: List[str] = Field(default_factory=list)
    estimated_total: int = Field(default=0, description="Total reported by the upstream, when it reports one")
    pages_fetched: int = 0


class WalletReport(BaseModel):
    """Response model for a processed wallet."""
    metadata: FetchMetadata
    transactions: List[ParsedTransaction] = Field(default_factory=list)
    status: str = "success"
    message: Optional[str] = None
    errors: List[str] = Field(default_factory=list, description="Upstream errors contained during the fetch")
