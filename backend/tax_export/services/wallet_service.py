"""Wallet history pipeline: validate, fetch, normalize, classify."""
import logging
from typing import List, Optional
import httpx
from tax_export.chains.base import ChainConfig
from tax_export.chains.registry import get_chain_config
from tax_export.config import Settings, settings as default_settings
from tax_export.models.wallet import FetchMetadata, WalletReport
from tax_export.services.fetchers.base import FetchResult
from tax_export.services.fetchers.factory import get_fetcher
from tax_export.services.token_cache import TokenMetadataCache
from tax_export.services.transaction_classifier import TransactionClassifier
from tax_export.services.transaction_normalizer import TransactionNormalizer, summarize_dates
from tax_export.utils.errors import InvalidAddress, NoDataFound, UnsupportedChainError, UpstreamError

# Register chain families
import tax_export.chains.cosmos  # noqa: F401
import tax_export.chains.evm  # noqa: F401
import tax_export.chains.native  # noqa: F401

logger = logging.getLogger(__name__)

NO_TRANSACTIONS_MESSAGE = "No transactions found"


class WalletService:
    """Run one wallet through the export pipeline."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or default_settings
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=self.settings.http_timeout_seconds)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._owns_client:
            await self.client.aclose()

    def validate(self, chain_id: str, address: str) -> ChainConfig:
        """
        Check the chain and address before any network call.

        Raises:
            UnsupportedChainError: Unknown or disabled chain
            InvalidAddress: Address fails the chain's format check
        """
        chain = get_chain_config(chain_id)
        if not chain.enabled:
            raise UnsupportedChainError(f"{chain.display_name} is not supported yet")
        if not chain.validate_address(address):
            raise InvalidAddress(chain.id, address)
        return chain

    async def fetch(self, chain_id: str, address: str) -> FetchResult:
        """
        Fetch raw records, falling back to the next source when one is empty.

        Raises:
            UpstreamError: Every source failed and none answered cleanly
            NoDataFound: At least one source answered cleanly with nothing
        """
        chain = self.validate(chain_id, address)
        if not chain.sources:
            raise UnsupportedChainError(f"No data source configured for {chain.id}")

        errors: List[str] = []
        answered = False
        result: Optional[FetchResult] = None
        for source in chain.sources:
            fetcher = get_fetcher(source, chain, self.client, self.settings)
            result = await fetcher.fetch_transactions(address)
            errors.extend(result.errors)
            if result.record_count:
                result.errors = errors
                return result
            answered = answered or not result.errors
            logger.warning("[WALLET] %s returned no records for %s", source.value, chain.id)

        # An empty answer from any source means the wallet is empty
        if errors and not answered:
            raise UpstreamError(
                f"Could not fetch {chain.display_name} transactions: {'; '.join(errors)}",
                source=",".join(source.value for source in chain.sources),
            )
        raise NoDataFound(f"No transactions found for {address} on {chain.display_name}")

    async def process(self, chain_id: str, address: str) -> WalletReport:
        """
        Fetch and classify a wallet's full history.

        Args:
            chain_id: Chain identifier
            address: Wallet address

        Returns:
            Report with fetch metadata and classified transactions
        """
        chain = self.validate(chain_id, address)

        try:
            result = await self.fetch(chain.id, address)
        except NoDataFound as e:
            logger.info("[WALLET] %s", e)
            return WalletReport(
                metadata=FetchMetadata(address=chain.canonical_address(address), chain=chain.id),
                status="success",
                message=NO_TRANSACTIONS_MESSAGE,
            )

        transactions = TransactionNormalizer(chain).normalize(result.streams)
        classifier = TransactionClassifier(chain, TokenMetadataCache(chain.known_tokens))
        parsed = classifier.classify_all(transactions, result.metadata.address)

        metadata = result.metadata
        metadata.total_fetched = len(transactions)
        metadata.first_transaction_date, metadata.last_transaction_date = summarize_dates(transactions)

        return WalletReport(
            metadata=metadata,
            transactions=parsed,
            status="success",
            message=f"Processed {len(parsed)} {chain.display_name} transactions",
            errors=result.errors,
        )
