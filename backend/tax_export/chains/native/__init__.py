"""Non-EVM, non-Cosmos L1 chains module."""
from tax_export.chains.native.networks import NEAR, POLKADOT, FLOW
from tax_export.chains.registry import register_chain

# Register native L1 chains
register_chain(NEAR)
register_chain(POLKADOT)
register_chain(FLOW)
