"""Chain registry."""
from typing import Dict, List
from tax_export.chains.base import ChainConfig
from tax_export.utils.errors import UnsupportedChainError

# Registry of supported chains
_chains: Dict[str, ChainConfig] = {}

DEFAULT_CHAIN = "osmosis"


def register_chain(config: ChainConfig):
    """Register a chain configuration."""
    _chains[config.id.lower()] = config


def get_chain_config(chain_id: str) -> ChainConfig:
    """
    Get the configuration for a chain.

    Args:
        chain_id: Chain identifier (e.g. 'osmosis')

    Returns:
        Chain configuration

    Raises:
        UnsupportedChainError: If the chain is not registered
    """
    chain_id = (chain_id or "").lower()
    if chain_id not in _chains:
        raise UnsupportedChainError(f"Unknown chain: {chain_id}")

    return _chains[chain_id]


def list_chains(enabled_only: bool = False) -> List[ChainConfig]:
    """List registered chains."""
    return [
        config for config in _chains.values()
        if config.enabled or not enabled_only
    ]


def is_chain_enabled(chain_id: str) -> bool:
    """Check whether a chain is registered and enabled."""
    config = _chains.get((chain_id or "").lower())
    return config.enabled if config else False
