"""NEAR, Polkadot and Flow definitions."""
from tax_export.chains.base import AddressEncoding, ChainConfig, ChainFamily, DataSource

NEAR = ChainConfig(
    id="near",
    name="NEAR",
    display_name="NEAR Protocol",
    family=ChainFamily.NATIVE,
    # named accounts (alice.near) or 64-hex implicit accounts
    address_regex=r"(?i)^(?:[a-z0-9_-]+\.)*[a-z0-9_-]+\.near$|^[a-f0-9]{64}$",
    test_address="alice.near",
    rpc_endpoints=["https://rpc.mainnet.near.org"],
    api_endpoints=["https://api.pikespeak.ai"],
    explorer_url="https://nearblocks.io/txns",
    decimals=24,
    native_symbol="NEAR",
    description="Scalable L1 blockchain",
    sources=[DataSource.PIKESPEAK],
    upstream_chain="near",
)

POLKADOT = ChainConfig(
    id="polkadot",
    name="Polkadot",
    display_name="Polkadot",
    family=ChainFamily.NATIVE,
    address_prefix="1",
    address_regex=r"^[1-9A-HJ-NP-Za-km-z]{47,48}$",
    address_encoding=AddressEncoding.SS58,
    test_address="15oF4uVJwmo4TdGW7VfQxNLavjCXviqxT9S1MgbjMNHr6Sp5",
    explorer_url="https://polkadot.subscan.io/extrinsic",
    decimals=10,
    native_symbol="DOT",
    enabled=False,
    description="Multi-chain network (Coming soon)",
)

FLOW = ChainConfig(
    id="flow",
    name="Flow",
    display_name="Flow",
    family=ChainFamily.NATIVE,
    address_prefix="0x",
    address_regex=r"^0x[a-fA-F0-9]{16}$",
    test_address="0x1654653399040a61",
    api_endpoints=["https://rest-mainnet.onflow.org"],
    explorer_url="https://flowscan.org/transaction",
    decimals=8,
    native_symbol="FLOW",
    enabled=False,
    description="NFT and gaming chain (Coming soon)",
)
