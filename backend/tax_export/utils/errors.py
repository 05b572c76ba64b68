"""Custom error classes."""
from typing import Optional


class TaxExportError(Exception):
    """Base exception for tax export application."""
    pass


class InvalidAddress(TaxExportError):
    """Address does not match the chain's address format."""

    def __init__(self, chain: str, address: str):
        self.chain = chain
        self.address = address
        super().__init__(f"Invalid {chain} address: {address}")


class UnsupportedChainError(TaxExportError):
    """Chain is unknown or has no data source configured."""
    pass


class UpstreamError(TaxExportError):
    """Non-2xx response or malformed payload from an external API."""

    def __init__(
        self,
        message: str,
        source: str = "",
        status_code: Optional[int] = None,
        retryable: bool = False
    ):
        self.source = source
        self.status_code = status_code
        # rate limits, gateway errors and dropped connections
        self.retryable = retryable
        super().__init__(message)


class NoDataFound(TaxExportError):
    """A successful query returned no transactions."""
    pass
