"""Tatum v4 data API fetcher."""
import logging
from typing import Any, Optional
from pydantic.alias_generators import to_camel
from tax_export.chains.base import DataSource
from tax_export.models.raw import (
    BaseTxRecord,
    InternalTxRecord,
    RecordKind,
    TokenTransferRecord,
    UpstreamModel,
)
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

# transactionType -> stream
TRANSACTION_TYPES = {
    "native": RecordKind.BASE,
    "internal": RecordKind.INTERNAL,
    "fungible": RecordKind.ERC20,
    "nft": RecordKind.ERC721,
    "multitoken": RecordKind.ERC1155,
}

TOKEN_DECIMALS = 18


class TatumTransaction(UpstreamModel):
    """
    One wallet-relative row from ``/v4/data/transactions``.

    Tatum reports one row per value movement, with ``amount`` as a signed
    display value (negative when leaving the wallet) and the other party in
    ``counterAddress``.
    """
    hash: str
    block_number: str = "0"
    timestamp: str = ""
    address: str = ""
    counter_address: str = ""
    transaction_type: str = "native"
    transaction_subtype: str = ""
    amount: str = "0"
    token_address: str = ""
    token_id: Optional[str] = None

    class Config:
        alias_generator = to_camel

    @property
    def outgoing(self) -> bool:
        if self.transaction_subtype:
            return self.transaction_subtype == "outgoing"
        return self.amount.startswith("-")

    def parties(self):
        if self.outgoing:
            return self.address, self.counter_address
        return self.counter_address, self.address

    def to_record(self, kind: RecordKind, decimals: int):
        sender, recipient = self.parties()
        common = dict(
            hash=self.hash,
            block_number=self.block_number,
            timestamp=self.timestamp,
            from_address=sender,
            to_address=recipient,
        )
        if kind == RecordKind.BASE:
            return BaseTxRecord(value=to_base_units(self.amount, decimals), **common)
        if kind == RecordKind.INTERNAL:
            return InternalTxRecord(value=to_base_units(self.amount, decimals), **common)
        # token amounts arrive already scaled; rescale them to a fixed precision
        value = to_base_units(self.amount, TOKEN_DECIMALS) if kind != RecordKind.ERC721 else "1"
        return TokenTransferRecord(
            kind=kind,
            contract_address=self.token_address,
            value=value,
            token_decimal=str(TOKEN_DECIMALS),
            token_id=self.token_id,
            **common,
        )


class TatumFetcher(ChainFetcher):
    """Fetch EVM wallet history from Tatum, one stream per transaction type."""

    source = DataSource.TATUM

    async def _fetch_streams(self, address: str, result: FetchResult):
        if self._missing_key(result, "tatum_api_key"):
            return

        result.metadata.endpoints = [self.settings.tatum_api_url]
        paginator = self.paginator(
            interval=self.settings.tatum_interval_seconds,
            style=PaginationStyle.OFFSET,
            page_size=self.settings.tatum_page_size,
            max_pages=self.settings.tatum_max_pages,
            label="TATUM",
        )
        stream = await paginator.run(
            build_request=lambda state: self._build_request(address, state),
            parse_page=self._parse_page,
            map_item=self._map_item,
        )

        # one API call returns every type; split into streams by record kind
        for kind in TRANSACTION_TYPES.values():
            records = [record for record in stream.records if record.kind == kind]
            if records:
                result.streams.setdefault(kind, []).extend(records)
        result.errors.extend(stream.errors)
        result.metadata.pages_fetched += stream.pages

    def _build_request(self, address: str, state: PageState) -> PageRequest:
        return PageRequest(
            url=self.settings.tatum_api_url,
            params={
                "chain": self.chain.upstream_chain,
                "addresses": address,
                "pageSize": self.settings.tatum_page_size,
                "offset": state.index,  # page number, not item offset
                "sort": "DESC",
            },
            headers={"x-api-key": self.settings.tatum_api_key},
        )

    @staticmethod
    def _parse_page(payload: Any) -> Page:
        if isinstance(payload, dict) and isinstance(payload.get("result"), list):
            return Page(items=payload["result"])
        if isinstance(payload, dict) and payload.get("message"):
            raise UpstreamError(f"tatum: {payload['message']}", source="tatum")
        raise UpstreamError("tatum: unexpected response envelope", source="tatum")

    def _map_item(self, item: Any):
        row = TatumTransaction.model_validate(item)
        kind = TRANSACTION_TYPES.get(row.transaction_type)
        if kind is None:
            logger.debug("[TATUM] Skipping %s row for %s", row.transaction_type, row.hash)
            return None
        return row.to_record(kind, self.chain.decimals)
