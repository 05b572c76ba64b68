"""EVM chains module."""
from tax_export.chains.evm.networks import CELO, FANTOM, RONIN
from tax_export.chains.registry import register_chain

# Register EVM chains
register_chain(CELO)
register_chain(FANTOM)
register_chain(RONIN)
