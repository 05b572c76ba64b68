"""Export models."""
from enum import Enum
from pydantic import BaseModel, Field


class CsvFormat(str, Enum):
    """Awaken Tax CSV layouts."""
    STANDARD = "standard"
    TRADING = "trading"


class ExportFormat(str, Enum):
    """Downloadable report formats."""
    STANDARD = "standard"
    TRADING = "trading"
    EXCEL = "excel"


class ExportRequest(BaseModel):
    """Request model for report export."""
    chain: str = Field(..., description="Chain identifier")
    address: str = Field(..., min_length=1, description="Wallet address")
    format: ExportFormat = Field(default=ExportFormat.STANDARD, description="standard, trading or excel")
