"""Token metadata cache for one classification pass."""
import logging
from typing import Dict, Optional
from tax_export.models.transaction import TokenMetadata
from tax_export.utils.coerce import to_str

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_DECIMALS = 18


class TokenMetadataCache:
    """
    Resolve and pin token metadata per contract address.

    Once a contract has been resolved, every later lookup in the same fetch
    session returns the identical symbol/decimals/name, whatever the API
    reports on later transfers. Create one instance per session.
    """

    def __init__(self, known_tokens: Optional[Dict[str, str]] = None):
        self.known_tokens = {k.lower(): v for k, v in (known_tokens or {}).items()}
        self._cache: Dict[str, TokenMetadata] = {}

    @staticmethod
    def _make_key(contract: str) -> str:
        return (contract or "").lower()

    def get(self, contract: str) -> Optional[TokenMetadata]:
        """Get cached metadata for a contract."""
        return self._cache.get(self._make_key(contract))

    def resolve(
        self,
        contract: str,
        api_symbol: str = "",
        api_name: str = "",
        api_decimals: str = ""
    ) -> TokenMetadata:
        """
        Resolve metadata for a contract, caching the result.

        Order: cache, well-known token table, API symbol (unless empty or the
        literal "null"), then the first 10 characters of the address.

        Args:
            contract: Contract address or denom
            api_symbol: Symbol reported by the API
            api_name: Name reported by the API
            api_decimals: Decimals reported by the API (defaults to 18)

        Returns:
            Token metadata
        """
        key = self._make_key(contract)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        decimals = self._parse_decimals(api_decimals)
        api_symbol = to_str(api_symbol)
        api_name = to_str(api_name)

        if key in self.known_tokens:
            symbol = self.known_tokens[key]
        elif api_symbol:
            symbol = api_symbol
        else:
            symbol = key[:10]

        metadata = TokenMetadata(symbol=symbol, decimals=decimals, name=api_name or symbol)
        self._cache[key] = metadata
        logger.debug("[TOKENS] Cached %s as %s (%d decimals)", key, symbol, decimals)
        return metadata

    @staticmethod
    def _parse_decimals(value: str) -> int:
        text = to_str(value).strip()
        if not text:
            return DEFAULT_TOKEN_DECIMALS
        try:
            decimals = int(text)
        except ValueError:
            return DEFAULT_TOKEN_DECIMALS
        return decimals if decimals >= 0 else DEFAULT_TOKEN_DECIMALS

    def __contains__(self, contract: str) -> bool:
        return self._make_key(contract) in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self):
        """Clear all cached metadata."""
        self._cache.clear()
