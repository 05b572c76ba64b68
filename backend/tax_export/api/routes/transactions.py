"""Transaction history endpoints."""
from fastapi import APIRouter, Depends
from tax_export.api.deps import get_wallet_service, run_pipeline
from tax_export.models.wallet import WalletReport, WalletRequest
from tax_export.services.wallet_service import WalletService

router = APIRouter()


@router.post("/fetch", response_model=WalletReport)
async def fetch_transactions(
    request: WalletRequest,
    service: WalletService = Depends(get_wallet_service)
):
    """
    Fetch and classify a wallet's transaction history.

    This endpoint will:
    1. Validate the address for the chain
    2. Fetch every record stream from the chain's data source
    3. Merge records by hash and classify them for the wallet
    """
    return await run_pipeline(service, request.chain, request.address)
