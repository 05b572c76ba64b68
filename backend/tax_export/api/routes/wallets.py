"""Wallet validation endpoints."""
from fastapi import APIRouter, HTTPException
from tax_export.chains.registry import get_chain_config
from tax_export.utils.errors import UnsupportedChainError

router = APIRouter()


@router.get("/validate/{chain_id}/{address}")
async def validate_wallet(chain_id: str, address: str):
    """Validate a wallet address for a chain."""
    try:
        chain = get_chain_config(chain_id)
    except UnsupportedChainError as e:
        raise HTTPException(status_code=400, detail=str(e))

    is_valid = chain.validate_address(address)

    return {
        "chain": chain.id,
        "address": address,
        "valid": is_valid,
        "message": "Address is valid" if is_valid else f"Invalid {chain.display_name} address format"
    }
