"""Celenium (Celestia indexer) fetcher."""
import logging
from typing import Any, List
from pydantic import Field
from tax_export.chains.base import DataSource
from tax_export.models.raw import CosmosTxRecord, RecordKind, UpstreamModel
from tax_export.models.transaction import Coin
from tax_export.services.fetchers.base import (
    ChainFetcher,
    FetchResult,
    Page,
    PageRequest,
    PageState,
    PaginationStyle,
)
from tax_export.utils.errors import UpstreamError

logger = logging.getLogger(__name__)


class CeleniumTx(UpstreamModel):
    """Transaction summary from ``/v1/address/{address}/txs``."""
    hash: str
    height: str = "0"
    time: str = ""
    status: str = "success"
    fee: str = "0"
    memo: str = ""
    message_types: List[str] = Field(default_factory=list)

    def to_record(self, fee_denom: str) -> CosmosTxRecord:
        # Celenium lists message type names only; amounts are not included
        return CosmosTxRecord(
            hash=self.hash,
            block_number=self.height,
            timestamp=self.time,
            code=0 if self.status == "success" else 1,
            messages=[{"@type": message_type} for message_type in self.message_types],
            memo=self.memo,
            fee=[Coin(denom=fee_denom, amount=self.fee)] if self.fee else [],
        )


class CeleniumFetcher(ChainFetcher):
    """Fetch Celestia address transactions from Celenium (offset paging)."""

    source = DataSource.CELENIUM

    async def _fetch_streams(self, address: str, result: FetchResult):
        url = f"{self.settings.celenium_api_url.rstrip('/')}/v1/address/{address}/txs"
        result.metadata.endpoints = [url]

        paginator = self.paginator(
            interval=self.settings.celenium_interval_seconds,
            style=PaginationStyle.OFFSET,
            page_size=self.settings.celenium_page_size,
            max_pages=self.settings.celenium_max_pages,
            label="CELENIUM",
        )
        stream = await paginator.run(
            build_request=lambda state: self._build_request(url, state),
            parse_page=self._parse_page,
            map_item=lambda item: CeleniumTx.model_validate(item).to_record(self.chain.native_denom),
        )
        result.add_stream(RecordKind.COSMOS, stream)

    def _build_request(self, url: str, state: PageState) -> PageRequest:
        headers = {}
        if self.settings.celenium_api_key:
            headers["apikey"] = self.settings.celenium_api_key
        return PageRequest(
            url=url,
            params={
                "limit": self.settings.celenium_page_size,
                "offset": state.offset,
                "sort": "desc",
            },
            headers=headers,
        )

    @staticmethod
    def _parse_page(payload: Any) -> Page:
        if isinstance(payload, list):
            return Page(items=payload)
        if isinstance(payload, dict) and payload.get("message"):
            raise UpstreamError(f"celenium: {payload['message']}", source="celenium")
        raise UpstreamError("celenium: unexpected response envelope", source="celenium")
