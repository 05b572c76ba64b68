"""Chain registry endpoints."""
from fastapi import APIRouter, HTTPException
from typing import List
from pydantic import BaseModel
from tax_export.chains.base import ChainConfig
from tax_export.chains.registry import DEFAULT_CHAIN, get_chain_config, list_chains
from tax_export.utils.errors import UnsupportedChainError

router = APIRouter()


class ChainSummary(BaseModel):
    """Public view of a chain configuration."""
    id: str
    name: str
    display_name: str
    family: str
    address_prefix: str
    test_address: str
    explorer_url: str
    decimals: int
    native_symbol: str
    enabled: bool
    description: str
    sources: List[str]

    @classmethod
    def from_config(cls, config: ChainConfig) -> "ChainSummary":
        return cls(
            id=config.id,
            name=config.name,
            display_name=config.display_name,
            family=config.family.value,
            address_prefix=config.address_prefix,
            test_address=config.test_address,
            explorer_url=config.explorer_url,
            decimals=config.decimals,
            native_symbol=config.native_symbol,
            enabled=config.enabled,
            description=config.description,
            sources=[source.value for source in config.sources],
        )


@router.get("")
async def get_chains(enabled_only: bool = False):
    """List supported chains."""
    return {
        "default": DEFAULT_CHAIN,
        "chains": [ChainSummary.from_config(config) for config in list_chains(enabled_only)],
    }


@router.get("/{chain_id}", response_model=ChainSummary)
async def get_chain(chain_id: str):
    """Get one chain's configuration."""
    try:
        return ChainSummary.from_config(get_chain_config(chain_id))
    except UnsupportedChainError as e:
        raise HTTPException(status_code=404, detail=str(e))
