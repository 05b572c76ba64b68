"""EVM chain definitions."""
from tax_export.chains.base import ChainConfig, ChainFamily, DataSource

EVM_ADDRESS_REGEX = r"^0x[a-fA-F0-9]{40}$"

# Well-known token contracts, keyed by lowercased address
CELO_TOKENS = {
    "0x765de816845861e75a25fca122bb6898b8b1282a": "cUSD",   # Celo Dollar
    "0xd8763cba276a3738e6de85b4b3bf5fded6d6ca73": "cEUR",   # Celo Euro
    "0xe8537a3d056ba44681e743195c4bc1a6a8f4b93c": "cREAL",  # Celo Brazilian Real
    "0x471ece3750da237f93b8e339c536989b8978a438": "CELO",   # GoldToken (native CELO as ERC20)
}

FANTOM_TOKENS = {
    "0x21be370d5312f44cb42ce377bc9b8a0cef1a4c83": "WFTM",
    "0x04068da6c83afcfa0e13ba15a6696662335d5b75": "USDC",
}

RONIN_TOKENS = {
    "0xe514d9deb7966c8be0ca922de8a064264ea6bcd4": "WRON",
    "0x0b7007c13325c48911f73a2dad5fa5dcbf808adc": "USDC",
    "0xc99a6a985ed2cac1ef41640596c5a5f9f4e19ef5": "WETH",
    "0x97a9107c1793bc407d6f527b77e7fff4d812bece": "AXS",
    "0xa8754b9fa15fc18bb59458815510e40a12cd2014": "SLP",
}

CELO = ChainConfig(
    id="celo",
    name="CELO",
    display_name="Celo",
    family=ChainFamily.EVM,
    address_prefix="0x",
    address_regex=EVM_ADDRESS_REGEX,
    test_address="0xD8763CBa276a3738E6DE85b4b3bF5FDed6D6cA73",
    rpc_endpoints=["https://celo-mainnet.gateway.tatum.io/"],
    api_endpoints=["https://api.etherscan.io/v2/api", "https://api.tatum.io/v4/data/transactions"],
    explorer_url="https://explorer.celo.org/mainnet/tx",
    decimals=18,
    native_symbol="CELO",
    description="Mobile-first blockchain for DeFi",
    sources=[DataSource.ETHERSCAN, DataSource.TATUM],
    evm_chain_id=42220,
    upstream_chain="celo-mainnet",
    known_tokens=CELO_TOKENS,
)

FANTOM = ChainConfig(
    id="fantom",
    name="Fantom",
    display_name="Fantom",
    family=ChainFamily.EVM,
    address_prefix="0x",
    address_regex=EVM_ADDRESS_REGEX,
    test_address="0xD8763CBa276a3738E6DE85b4b3bF5FDed6D6cA73",
    rpc_endpoints=["https://fantom-mainnet.gateway.tatum.io/"],
    api_endpoints=["https://api.tatum.io/v4/data/transactions"],
    explorer_url="https://ftmscan.com/tx",
    decimals=18,
    native_symbol="FTM",
    description="High-performance EVM chain",
    sources=[DataSource.TATUM],
    evm_chain_id=250,
    upstream_chain="fantom-mainnet",
    known_tokens=FANTOM_TOKENS,
)

RONIN = ChainConfig(
    id="ronin",
    name="Ronin",
    display_name="Ronin",
    family=ChainFamily.EVM,
    address_prefix="ronin:",
    address_regex=r"^(0x|ronin:)[a-fA-F0-9]{40}$",
    test_address="ronin:a09a9b6f90ab23fcdcd6c3d087c1dfb65dddfb05",
    rpc_endpoints=["https://api.roninchain.com/rpc"],
    api_endpoints=["https://api.covalenthq.com/v1"],
    explorer_url="https://app.roninchain.com/tx",
    decimals=18,
    native_symbol="RON",
    description="Gaming-focused EVM chain",
    sources=[DataSource.GOLDRUSH],
    evm_chain_id=2020,
    upstream_chain="ronin-mainnet",
    known_tokens=RONIN_TOKENS,
)
