"""Cosmos SDK chain definitions."""
from tax_export.chains.base import ChainConfig, ChainFamily, DataSource

# Cosmos bech32 addresses: <hrp>1 + 38 data characters
OSMOSIS = ChainConfig(
    id="osmosis",
    name="Osmosis",
    display_name="Osmosis",
    family=ChainFamily.COSMOS,
    address_prefix="osmo",
    address_regex=r"(?i)^osmo[a-z0-9]{39}$",
    test_address="osmo1g8gv8ayl55698fscstajt9uqw9r6w8a34aly9v",
    rpc_endpoints=[
        "https://rpc.osmosis.zone",
        "https://osmosis-rpc.polkachu.com",
        "https://osmosis-rpc.publicnode.com",
    ],
    api_endpoints=[
        "https://lcd.osmosis.zone",
        "https://osmosis-api.polkachu.com",
        "https://rest-osmosis.blockapsis.com",
    ],
    explorer_url="https://www.mintscan.io/osmosis/tx",
    decimals=6,
    native_denom="uosmo",
    native_symbol="OSMO",
    description="Cosmos DEX and DeFi hub",
    sources=[DataSource.COSMOS_LCD, DataSource.MINTSCAN],
    upstream_chain="osmosis",
    denom_symbols={
        "uosmo": "OSMO",
        "uatom": "ATOM",
        "uusdc": "USDC",
        "uion": "ION",
    },
)

BABYLON = ChainConfig(
    id="babylon",
    name="Babylon",
    display_name="Babylon",
    family=ChainFamily.COSMOS,
    address_prefix="bbn",
    address_regex=r"(?i)^bbn[a-z0-9]{39}$",
    test_address="bbn1e5h88h7lw6d6d9x9zg5v0p4j7t9z5q0n9s0d8e",
    rpc_endpoints=["https://babylon-rpc.polkachu.com"],
    api_endpoints=[
        "https://babylon-api.polkachu.com",
        "https://babylon-rest.publicnode.com",
    ],
    explorer_url="https://babylon.explorers.guru/transaction",
    decimals=6,
    native_denom="ubbn",
    native_symbol="BABY",
    description="Bitcoin staking protocol on Cosmos",
    sources=[DataSource.COSMOS_LCD],
    upstream_chain="babylon",
    denom_symbols={
        "ubbn": "BABY",
        "uatom": "ATOM",
    },
)

CELESTIA = ChainConfig(
    id="celestia",
    name="Celestia",
    display_name="Celestia",
    family=ChainFamily.COSMOS,
    address_prefix="celestia",
    address_regex=r"(?i)^celestia[a-z0-9]{39}$",
    test_address="celestia1lrzx6ntrdxamsqajnr0d3ww3jj9qfx2ypxmsqn",
    rpc_endpoints=["https://celestia-rpc.polkachu.com"],
    api_endpoints=[
        "https://celestia-api.polkachu.com",
        "https://celestia-rest.publicnode.com",
    ],
    explorer_url="https://celenium.io/tx",
    decimals=6,
    native_denom="utia",
    native_symbol="TIA",
    description="Data availability layer",
    sources=[DataSource.MINTSCAN, DataSource.CELENIUM],
    upstream_chain="celestia",
    denom_symbols={"utia": "TIA"},
)
