"""Cosmos SDK chains module."""
from tax_export.chains.cosmos.networks import OSMOSIS, BABYLON, CELESTIA
from tax_export.chains.registry import register_chain

# Register Cosmos chains
register_chain(OSMOSIS)
register_chain(BABYLON)
register_chain(CELESTIA)
