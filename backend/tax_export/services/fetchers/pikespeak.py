"""Pikespeak (NEAR) fetcher."""
import logging
from typing import Any, Union
from pydantic import AliasChoices, Field
from tax_export.chains.base import DataSource
from tax_export.models.raw import BaseTxRecord, RecordKind, UpstreamModel
from tax_export.services.fetchers.base import (
    ChainFetcher,
    FetchResult,
    Page,
    PageRequest,
    PageState,
    PaginationStyle,
)
from tax_export.utils.coerce import to_base_units
from tax_export.utils.errors import UpstreamError

logger = logging.getLogger(__name__)


class PikespeakTransaction(UpstreamModel):
    """Account transaction row; field names vary between endpoint versions."""
    hash: str = Field(validation_alias=AliasChoices("transaction_id", "transaction_hash", "hash", "id"))
    block_height: str = Field(default="0", validation_alias=AliasChoices("block_height", "height"))
    timestamp: str = Field(default="", validation_alias=AliasChoices("timestamp", "block_timestamp"))
    signer: str = Field(default="", validation_alias=AliasChoices("signer", "signer_id", "sender"))
    receiver: str = Field(default="", validation_alias=AliasChoices("receiver", "receiver_id"))
    amount: str = Field(default="0", validation_alias=AliasChoices("amount", "deposit"))
    status: Union[bool, str] = True
    transaction_type: str = Field(default="", validation_alias=AliasChoices("type", "transaction_type"))

    def value_in_yocto(self, decimals: int) -> str:
        # integer amounts are yoctoNEAR, fractional ones are NEAR
        if "." in self.amount:
            return to_base_units(self.amount, decimals)
        return to_base_units(self.amount, 0)

    def to_record(self, decimals: int) -> BaseTxRecord:
        failed = str(self.status).lower() in ("false", "failure", "failed")
        return BaseTxRecord(
            hash=self.hash,
            block_number=self.block_height,
            timestamp=self.timestamp,
            from_address=self.signer,
            to_address=self.receiver,
            value=self.value_in_yocto(decimals),
            is_error=failed,
            memo=self.transaction_type,
        )


class PikespeakFetcher(ChainFetcher):
    """Fetch NEAR account transactions from Pikespeak (offset paging)."""

    source = DataSource.PIKESPEAK

    async def _fetch_streams(self, address: str, result: FetchResult):
        if self._missing_key(result, "pikespeak_api_key"):
            return

        url = f"{self.settings.pikespeak_api_url.rstrip('/')}/account/transactions/{address}"
        result.metadata.endpoints = [url]
        paginator = self.paginator(
            interval=self.settings.pikespeak_interval_seconds,
            style=PaginationStyle.OFFSET,
            page_size=self.settings.pikespeak_page_size,
            max_pages=self.settings.pikespeak_max_pages,
            label="PIKESPEAK",
        )
        stream = await paginator.run(
            build_request=lambda state: self._build_request(url, state),
            parse_page=self._parse_page,
            map_item=lambda item: PikespeakTransaction.model_validate(item).to_record(self.chain.decimals),
        )
        result.add_stream(RecordKind.BASE, stream)

    def _build_request(self, url: str, state: PageState) -> PageRequest:
        return PageRequest(
            url=url,
            params={"limit": self.settings.pikespeak_page_size, "offset": state.offset},
            headers={"x-api-key": self.settings.pikespeak_api_key},
        )

    @staticmethod
    def _parse_page(payload: Any) -> Page:
        if isinstance(payload, list):
            return Page(items=payload)
        if isinstance(payload, dict) and isinstance(payload.get("data"), list):
            return Page(items=payload["data"])
        raise UpstreamError("pikespeak: unexpected response envelope", source="pikespeak")
