"""Fetcher factory."""
from typing import Dict, Type
import httpx
from tax_export.chains.base import ChainConfig, DataSource
from tax_export.config import Settings
from tax_export.services.fetchers.base import ChainFetcher
from tax_export.services.fetchers.celenium import CeleniumFetcher
from tax_export.services.fetchers.cosmos_lcd import CosmosLcdFetcher
from tax_export.services.fetchers.etherscan import EtherscanFetcher
from tax_export.services.fetchers.goldrush import GoldRushFetcher
from tax_export.services.fetchers.mintscan import MintscanFetcher
from tax_export.services.fetchers.pikespeak import PikespeakFetcher
from tax_export.services.fetchers.tatum import TatumFetcher
from tax_export.utils.errors import UnsupportedChainError

# Registry of fetcher classes by data source
_fetchers: Dict[DataSource, Type[ChainFetcher]] = {
    DataSource.ETHERSCAN: EtherscanFetcher,
    DataSource.COSMOS_LCD: CosmosLcdFetcher,
    DataSource.MINTSCAN: MintscanFetcher,
    DataSource.CELENIUM: CeleniumFetcher,
    DataSource.TATUM: TatumFetcher,
    DataSource.GOLDRUSH: GoldRushFetcher,
    DataSource.PIKESPEAK: PikespeakFetcher,
}


def register_fetcher(source: DataSource, fetcher_class: Type[ChainFetcher]):
    """Register (or replace) the fetcher for a data source."""
    _fetchers[source] = fetcher_class


def get_fetcher(
    source: DataSource,
    chain: ChainConfig,
    client: httpx.AsyncClient,
    settings: Settings
) -> ChainFetcher:
    """
    Create the fetcher for a data source.

    Args:
        source: Upstream API to fetch from
        chain: Chain being fetched
        client: Shared HTTP client
        settings: Application settings

    Returns:
        Fetcher instance

    Raises:
        UnsupportedChainError: If no fetcher exists for the source
    """
    fetcher_class = _fetchers.get(DataSource(source))
    if fetcher_class is None:
        raise UnsupportedChainError(f"No fetcher for data source: {source}")
    return fetcher_class(chain, client, settings)
