"""Abstract base class for chain fetchers and the shared paginator."""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import httpx
from pydantic import BaseModel, Field, ValidationError
from tax_export.chains.base import ChainConfig, DataSource
from tax_export.config import Settings
from tax_export.models.raw import AnyRecord, RecordKind
from tax_export.models.wallet import FetchMetadata
from tax_export.services.rate_limiter import RateLimiter
from tax_export.utils.errors import InvalidAddress, UpstreamError

logger = logging.getLogger(__name__)

# Gateway errors and throttling are worth another attempt; a plain 500 is not
RETRYABLE_STATUS_CODES = {408, 429, 502, 503, 504}


class PaginationStyle(str, Enum):
    """How an upstream API pages through results."""
    PAGE = "page"
    OFFSET = "offset"
    CURSOR = "cursor"


class PageState(BaseModel):
    """Position of the paginator, handed to the request builder."""
    page: int = 1
    offset: int = 0
    cursor: Optional[str] = None
    index: int = 0


class PageRequest(BaseModel):
    """One HTTP GET to issue."""
    url: str
    params: Dict[str, Any] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)


class Page(BaseModel):
    """Items and continuation data extracted from one response envelope."""
    items: List[Any] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: Optional[bool] = None
    total: Optional[int] = None


class StreamResult(BaseModel):
    """Records collected from one paginated stream."""
    records: List[AnyRecord] = Field(default_factory=list)
    pages: int = 0
    total: Optional[int] = None
    errors: List[str] = Field(default_factory=list)


class FetchResult(BaseModel):
    """Raw record streams returned by a fetcher."""
    streams: Dict[RecordKind, List[AnyRecord]] = Field(default_factory=dict)
    metadata: FetchMetadata
    errors: List[str] = Field(default_factory=list)

    def add_stream(self, kind: RecordKind, stream: StreamResult):
        """Append a stream's records and bookkeeping."""
        self.streams.setdefault(kind, []).extend(stream.records)
        self.errors.extend(stream.errors)
        self.metadata.pages_fetched += stream.pages
        if stream.total:
            self.metadata.estimated_total += stream.total

    @property
    def record_count(self) -> int:
        return sum(len(records) for records in self.streams.values())

    def finalize(self) -> "FetchResult":
        """Fill per-stream counts and the covered date range."""
        self.metadata.stream_counts = {
            kind.value: len(records) for kind, records in self.streams.items()
        }
        records = [record for records in self.streams.values() for record in records]
        self.metadata.total_fetched = len({record.hash for record in records})
        if records:
            timestamps = [record.timestamp for record in records]
            self.metadata.first_transaction_date = min(timestamps)
            self.metadata.last_transaction_date = max(timestamps)
        return self


class Paginator:
    """
    Drive one paginated upstream stream to exhaustion.

    The paginator owns the stop rules; callers supply three callables:

    - ``build_request(state)`` returns the ``PageRequest`` for a page,
    - ``parse_page(payload)`` extracts a ``Page`` from the JSON envelope and
      raises ``UpstreamError`` for an error envelope,
    - ``map_item(item)`` turns one item into a raw record (or ``None`` to
      drop it). An item that fails validation or mapping is skipped.

    Upstream errors never propagate: the stream stops and everything
    collected so far is returned together with the error text.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        limiter: RateLimiter,
        style: PaginationStyle,
        page_size: int,
        max_pages: int,
        label: str,
        max_consecutive_errors: int = 3,
        first_page: int = 1
    ):
        self.client = client
        self.limiter = limiter
        self.style = style
        self.page_size = page_size
        self.max_pages = max_pages
        self.label = label
        self.max_consecutive_errors = max(1, max_consecutive_errors)
        self.first_page = first_page

    async def get_json(self, request: PageRequest) -> Any:
        """
        Issue one rate-limited GET and decode the JSON body.

        Raises:
            UpstreamError: On non-2xx status, transport failure or invalid JSON
        """
        try:
            async with self.limiter:
                response = await self.client.get(
                    request.url, params=request.params, headers=request.headers
                )
        except httpx.TransportError as e:
            raise UpstreamError(
                f"{self.label}: request failed: {e}", source=self.label, retryable=True
            )

        if response.status_code >= 400:
            raise UpstreamError(
                f"{self.label}: HTTP {response.status_code}",
                source=self.label,
                status_code=response.status_code,
                retryable=response.status_code in RETRYABLE_STATUS_CODES,
            )

        try:
            return response.json()
        except ValueError:
            raise UpstreamError(f"{self.label}: malformed JSON response", source=self.label)

    async def run(
        self,
        build_request: Callable[[PageState], PageRequest],
        parse_page: Callable[[Any], Page],
        map_item: Callable[[Any], Optional[AnyRecord]]
    ) -> StreamResult:
        """Fetch pages until a stop condition is met."""
        result = StreamResult()
        state = PageState(page=self.first_page)
        consecutive_errors = 0

        while state.index < self.max_pages:
            request = build_request(state)
            try:
                page = self._parse(parse_page, await self.get_json(request))
            except UpstreamError as e:
                if e.retryable:
                    consecutive_errors += 1
                    if consecutive_errors < self.max_consecutive_errors:
                        logger.warning(
                            "[%s] %s (attempt %d/%d), retrying",
                            self.label, e, consecutive_errors, self.max_consecutive_errors
                        )
                        continue
                logger.error("[%s] Stopping stream after page %d: %s", self.label, state.index, e)
                result.errors.append(str(e))
                break

            consecutive_errors = 0
            state.index += 1
            result.pages += 1
            if page.total is not None and result.total is None:
                result.total = page.total

            if not page.items:
                break

            added = 0
            for item in page.items:
                try:
                    record = map_item(item)
                except ValidationError as e:
                    logger.warning("[%s] Skipping malformed item: %s", self.label, e.errors()[:1])
                    continue
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    logger.warning("[%s] Skipping malformed item: %r", self.label, e)
                    continue
                if record is not None:
                    result.records.append(record)
                    added += 1

            logger.info(
                "[%s] Page %d: +%d | Total: %d", self.label, state.index, added, len(result.records)
            )

            if not self._advance(state, page):
                break
        else:
            logger.warning("[%s] Page cap of %d reached, history may be incomplete", self.label, self.max_pages)

        return result

    def _parse(self, parse_page: Callable[[Any], Page], payload: Any) -> Page:
        try:
            return parse_page(payload)
        except ValidationError as e:
            raise UpstreamError(
                f"{self.label}: unexpected response envelope", source=self.label
            ) from e

    def _advance(self, state: PageState, page: Page) -> bool:
        """Move to the next page; False when the stream is exhausted."""
        if self.style == PaginationStyle.CURSOR:
            if not page.next_cursor or page.next_cursor == state.cursor:
                return False
            state.cursor = page.next_cursor
            return True

        if page.has_more is False:
            return False
        if page.has_more is None and len(page.items) < self.page_size:
            return False

        state.page += 1
        state.offset += self.page_size
        if page.total is not None and state.offset >= page.total:
            return False
        return True


class ChainFetcher(ABC):
    """Abstract base class for upstream transaction fetchers."""

    source: DataSource

    def __init__(self, chain: ChainConfig, client: httpx.AsyncClient, settings: Settings):
        self.chain = chain
        self.client = client
        self.settings = settings

    def validate_address(self, address: str) -> bool:
        """
        Validate a wallet address format.

        Args:
            address: Wallet address to validate

        Returns:
            True if address is valid
        """
        return self.chain.validate_address(address)

    def paginator(
        self,
        interval: float,
        style: PaginationStyle,
        page_size: int,
        max_pages: int,
        label: str,
        limiter: Optional[RateLimiter] = None,
        first_page: int = 1
    ) -> Paginator:
        """Build a paginator for one stream of this fetcher."""
        return Paginator(
            client=self.client,
            limiter=limiter or RateLimiter(interval, name=label),
            style=style,
            page_size=page_size,
            max_pages=max_pages,
            label=label,
            max_consecutive_errors=self.settings.max_consecutive_errors,
            first_page=first_page,
        )

    async def fetch_transactions(self, address: str) -> FetchResult:
        """
        Fetch every raw record stream for a wallet.

        Args:
            address: Wallet address

        Returns:
            Raw record streams with fetch metadata

        Raises:
            InvalidAddress: If the address fails chain validation
        """
        if not self.validate_address(address):
            raise InvalidAddress(self.chain.id, address)

        address = self.chain.canonical_address(address)
        result = FetchResult(
            metadata=FetchMetadata(
                address=address,
                chain=self.chain.id,
                data_source=self.source.value,
            )
        )
        logger.info("[%s] Fetching %s history for %s", self.source.value.upper(), self.chain.id, address)
        await self._fetch_streams(address, result)
        result.finalize()
        logger.info(
            "[%s] Done: %d records, %d unique hashes, %d errors",
            self.source.value.upper(), result.record_count,
            result.metadata.total_fetched, len(result.errors)
        )
        return result

    @abstractmethod
    async def _fetch_streams(self, address: str, result: FetchResult):
        """
        Populate ``result`` with the upstream's record streams.

        Args:
            address: Canonical wallet address
            result: Result to fill via ``add_stream``
        """
        pass

    def _missing_key(self, result: FetchResult, setting: str) -> bool:
        """Record an error when a required API key is not configured."""
        if getattr(self.settings, setting, None):
            return False
        message = f"{self.source.value}: {setting.upper()} is not configured"
        logger.error("[%s] %s", self.source.value.upper(), message)
        result.errors.append(message)
        return True
