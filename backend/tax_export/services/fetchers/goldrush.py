"""GoldRush (Covalent) transactions_v2 fetcher."""
import logging
from typing import Any, Dict, List, Optional
from pydantic import Field
from tax_export.chains.base import DataSource
from tax_export.models.raw import BaseTxRecord, RecordKind, TokenTransferRecord, UpstreamModel
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


class DecodedEvent(UpstreamModel):
    name: str = ""
    params: List[Dict[str, Any]] = Field(default_factory=list)

    def param(self, *names: str) -> Optional[str]:
        for entry in self.params:
            if entry.get("name") in names and entry.get("value") is not None:
                return str(entry["value"])
        return None


class LogEvent(UpstreamModel):
    sender_address: str = ""
    sender_name: str = ""
    sender_contract_ticker_symbol: str = ""
    sender_contract_decimals: str = ""
    decoded: Optional[DecodedEvent] = None


class CovalentTransaction(UpstreamModel):
    tx_hash: str
    block_height: str = "0"
    block_signed_at: str = ""
    successful: bool = True
    from_address: str = ""
    to_address: str = ""
    value: str = "0"
    gas_spent: str = ""
    gas_price: str = ""
    fees_paid: Optional[str] = None
    log_events: List[LogEvent] = Field(default_factory=list)

    def to_record(self) -> BaseTxRecord:
        return BaseTxRecord(
            hash=self.tx_hash,
            block_number=self.block_height,
            timestamp=self.block_signed_at,
            from_address=self.from_address,
            to_address=self.to_address,
            value=self.value,
            gas_used=self.gas_spent,
            gas_price=self.gas_price,
            fee=self.fees_paid,
            is_error=not self.successful,
        )

    def transfers(self) -> List[TokenTransferRecord]:
        """Token transfers decoded from ``Transfer`` log events."""
        records = []
        for event in self.log_events:
            decoded = event.decoded
            if decoded is None or decoded.name != "Transfer":
                continue
            token_id = decoded.param("tokenId", "_tokenId", "id")
            value = decoded.param("value", "_value", "amount")
            records.append(TokenTransferRecord(
                kind=RecordKind.ERC721 if token_id is not None else RecordKind.ERC20,
                hash=self.tx_hash,
                block_number=self.block_height,
                timestamp=self.block_signed_at,
                from_address=decoded.param("from", "_from") or "",
                to_address=decoded.param("to", "_to") or "",
                contract_address=event.sender_address,
                value="1" if token_id is not None else (value or "0"),
                token_name=event.sender_name,
                token_symbol=event.sender_contract_ticker_symbol,
                token_decimal=event.sender_contract_decimals,
                token_id=token_id,
            ))
        return records


class GoldRushFetcher(ChainFetcher):
    """Fetch transactions with decoded log events from GoldRush."""

    source = DataSource.GOLDRUSH

    async def _fetch_streams(self, address: str, result: FetchResult):
        if self._missing_key(result, "goldrush_api_key"):
            return

        chain_name = self.chain.upstream_chain or self.chain.id
        url = f"{self.settings.goldrush_api_url.rstrip('/')}/{chain_name}/address/{address}/transactions_v2/"
        result.metadata.endpoints = [url]
        transfers: List[TokenTransferRecord] = []

        def map_item(item: Any) -> BaseTxRecord:
            tx = CovalentTransaction.model_validate(item)
            transfers.extend(tx.transfers())
            return tx.to_record()

        paginator = self.paginator(
            interval=self.settings.goldrush_interval_seconds,
            style=PaginationStyle.PAGE,
            page_size=self.settings.goldrush_page_size,
            max_pages=self.settings.goldrush_max_pages,
            label="GOLDRUSH",
            first_page=0,
        )
        stream = await paginator.run(
            build_request=lambda state: self._build_request(url, state),
            parse_page=self._parse_page,
            map_item=map_item,
        )
        result.add_stream(RecordKind.BASE, stream)
        for transfer in transfers:
            result.streams.setdefault(transfer.kind, []).append(transfer)

    def _build_request(self, url: str, state: PageState) -> PageRequest:
        return PageRequest(
            url=url,
            params={
                "page-size": self.settings.goldrush_page_size,
                "page-number": state.page,
            },
            headers={"Authorization": f"Bearer {self.settings.goldrush_api_key}"},
        )

    @staticmethod
    def _parse_page(payload: Any) -> Page:
        if not isinstance(payload, dict):
            raise UpstreamError("goldrush: unexpected response envelope", source="goldrush")
        if payload.get("error"):
            raise UpstreamError(
                f"goldrush: {payload.get('error_message') or 'request failed'}",
                source="goldrush",
            )
        data = payload.get("data") or {}
        pagination = data.get("pagination") or {}
        has_more = pagination.get("has_more")
        return Page(
            items=data.get("items") or [],
            has_more=bool(has_more) if has_more is not None else None,
        )
