"""Mintscan indexer fetcher."""
import logging
from typing import Any
from tax_export.chains.base import DataSource
from tax_export.models.raw import CosmosTxRecord, RecordKind
from tax_export.services.fetchers.base import (
    ChainFetcher,
    FetchResult,
    Page,
    PageRequest,
    PageState,
    PaginationStyle,
)
from tax_export.services.fetchers.cosmos_lcd import TxResponse
from tax_export.utils.errors import UpstreamError

logger = logging.getLogger(__name__)


class MintscanFetcher(ChainFetcher):
    """Fetch account transactions from Mintscan, paged by ``searchAfter``."""

    source = DataSource.MINTSCAN

    async def _fetch_streams(self, address: str, result: FetchResult):
        if self._missing_key(result, "mintscan_api_key"):
            return

        network = self.chain.upstream_chain or self.chain.id
        url = f"{self.settings.mintscan_api_url.rstrip('/')}/v1/{network}/accounts/{address}/transactions"
        result.metadata.endpoints = [url]

        paginator = self.paginator(
            interval=self.settings.mintscan_interval_seconds,
            style=PaginationStyle.CURSOR,
            page_size=self.settings.mintscan_page_size,
            max_pages=self.settings.mintscan_max_pages,
            label="MINTSCAN",
        )
        stream = await paginator.run(
            build_request=lambda state: self._build_request(url, state),
            parse_page=self._parse_page,
            map_item=self._map_item,
        )
        result.add_stream(RecordKind.COSMOS, stream)

    def _build_request(self, url: str, state: PageState) -> PageRequest:
        params = {"take": self.settings.mintscan_page_size}
        if state.cursor:
            params["searchAfter"] = state.cursor
        return PageRequest(
            url=url,
            params=params,
            headers={"Authorization": f"Bearer {self.settings.mintscan_api_key}"},
        )

    @staticmethod
    def _parse_page(payload: Any) -> Page:
        if not isinstance(payload, dict):
            raise UpstreamError("mintscan: unexpected response envelope", source="mintscan")
        pagination = payload.get("pagination") or {}
        cursor = pagination.get("searchAfter")
        return Page(
            items=payload.get("transactions") or [],
            next_cursor=str(cursor) if cursor else None,
        )

    @staticmethod
    def _map_item(item: Any) -> CosmosTxRecord:
        # items are either bare TxResponses or wrapped as {header, data}
        if isinstance(item, dict) and isinstance(item.get("data"), dict):
            item = item["data"]
        return TxResponse.model_validate(item).to_record()
