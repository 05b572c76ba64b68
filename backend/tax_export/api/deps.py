"""Shared route dependencies."""
from typing import AsyncIterator
from fastapi import HTTPException
from tax_export.config import settings
from tax_export.models.wallet import WalletReport
from tax_export.services.wallet_service import WalletService
from tax_export.utils.errors import InvalidAddress, UnsupportedChainError, UpstreamError


async def get_wallet_service() -> AsyncIterator[WalletService]:
    """One service, and one HTTP client, per request."""
    async with WalletService(settings) as service:
        yield service


async def run_pipeline(service: WalletService, chain: str, address: str) -> WalletReport:
    """Process a wallet, mapping pipeline errors to HTTP errors."""
    try:
        return await service.process(chain, address)
    except (InvalidAddress, UnsupportedChainError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamError as e:
        raise HTTPException(
            status_code=502,
            detail=f"{e}. The data provider may be rate limiting; please try again in a minute."
        )
