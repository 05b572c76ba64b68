"""Etherscan v2 fetcher (multichain endpoint, selected by chainid)."""
import logging
from typing import Any, Optional
from pydantic import Field
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
from tax_export.services.rate_limiter import RateLimiter
from tax_export.utils.errors import UpstreamError

logger = logging.getLogger(__name__)

# action -> stream
ACTIONS = {
    "txlist": RecordKind.BASE,
    "txlistinternal": RecordKind.INTERNAL,
    "tokentx": RecordKind.ERC20,
    "tokennfttx": RecordKind.ERC721,
    "token1155tx": RecordKind.ERC1155,
}

NO_TRANSACTIONS = "No transactions found"


class EtherscanModel(UpstreamModel):
    """Etherscan items use camelCase keys."""

    class Config:
        alias_generator = to_camel


class EtherscanTransaction(EtherscanModel):
    block_number: str = "0"
    time_stamp: str = "0"
    hash: str
    from_: str = Field(default="", alias="from")
    to: str = ""
    value: str = "0"
    gas_price: str = ""
    gas_used: str = ""
    is_error: str = "0"
    input: str = ""

    def to_record(self) -> BaseTxRecord:
        return BaseTxRecord(
            hash=self.hash,
            block_number=self.block_number,
            timestamp=self.time_stamp,
            from_address=self.from_,
            to_address=self.to,
            value=self.value,
            gas_used=self.gas_used,
            gas_price=self.gas_price,
            is_error=self.is_error == "1",
            input=self.input,
        )


class EtherscanInternalTransaction(EtherscanModel):
    block_number: str = "0"
    time_stamp: str = "0"
    hash: str
    from_: str = Field(default="", alias="from")
    to: str = ""
    value: str = "0"
    contract_address: str = ""
    type_: str = Field(default="", alias="type")
    trace_id: str = ""
    is_error: str = "0"
    err_code: str = ""

    def to_record(self) -> InternalTxRecord:
        return InternalTxRecord(
            hash=self.hash,
            block_number=self.block_number,
            timestamp=self.time_stamp,
            from_address=self.from_,
            to_address=self.to,
            value=self.value,
            call_type=self.type_,
            trace_id=self.trace_id,
            contract_address=self.contract_address,
            err_code=self.err_code,
            is_error=self.is_error == "1",
        )


class EtherscanTokenTransfer(EtherscanModel):
    block_number: str = "0"
    time_stamp: str = "0"
    hash: str
    from_: str = Field(default="", alias="from")
    to: str = ""
    contract_address: str = ""
    value: str = ""
    token_value: str = ""
    token_name: str = ""
    token_symbol: str = ""
    token_decimal: str = ""
    token_id: Optional[str] = Field(default=None, alias="tokenID")

    def to_record(self, kind: RecordKind) -> TokenTransferRecord:
        # token1155tx reports the amount as tokenValue; an NFT without one is a single token
        value = self.value or self.token_value or ("0" if kind == RecordKind.ERC20 else "1")
        return TokenTransferRecord(
            kind=kind,
            hash=self.hash,
            block_number=self.block_number,
            timestamp=self.time_stamp,
            from_address=self.from_,
            to_address=self.to,
            contract_address=self.contract_address,
            value=value,
            token_name=self.token_name,
            token_symbol=self.token_symbol,
            token_decimal=self.token_decimal,
            token_id=self.token_id,
        )


class EtherscanFetcher(ChainFetcher):
    """Fetch regular, internal and token transfer lists from Etherscan v2."""

    source = DataSource.ETHERSCAN

    async def _fetch_streams(self, address: str, result: FetchResult):
        if self.chain.evm_chain_id is None:
            result.errors.append(f"etherscan: no chainid configured for {self.chain.id}")
            return

        result.metadata.endpoints = [self.settings.etherscan_api_url]
        # one limiter for all five lists: they hit the same API key
        limiter = RateLimiter(self.settings.etherscan_interval_seconds, name="etherscan")

        for action, kind in ACTIONS.items():
            paginator = self.paginator(
                interval=self.settings.etherscan_interval_seconds,
                style=PaginationStyle.PAGE,
                page_size=self.settings.etherscan_page_size,
                max_pages=self.settings.etherscan_max_pages,
                label=f"ETHERSCAN:{action}",
                limiter=limiter,
            )
            stream = await paginator.run(
                build_request=lambda state, action=action: self._build_request(address, action, state),
                parse_page=self._parse_page,
                map_item=lambda item, kind=kind: self._map_item(kind, item),
            )
            result.add_stream(kind, stream)

    def _build_request(self, address: str, action: str, state: PageState) -> PageRequest:
        params = {
            "chainid": self.chain.evm_chain_id,
            "module": "account",
            "action": action,
            "address": address,
            "startblock": 0,
            "endblock": 99999999,
            "page": state.page,
            "offset": self.settings.etherscan_page_size,
            "sort": "desc",
        }
        if self.settings.etherscan_api_key:
            params["apikey"] = self.settings.etherscan_api_key
        return PageRequest(url=self.settings.etherscan_api_url, params=params)

    @staticmethod
    def _parse_page(payload: Any) -> Page:
        if not isinstance(payload, dict):
            raise UpstreamError("etherscan: unexpected response envelope", source="etherscan")

        result = payload.get("result")
        if str(payload.get("status")) == "1" and isinstance(result, list):
            return Page(items=result)

        message = str(payload.get("message") or "")
        detail = result if isinstance(result, str) else message
        if NO_TRANSACTIONS in (detail, message):
            return Page(items=[])
        if isinstance(result, list) and not result:
            return Page(items=[])

        raise UpstreamError(
            f"etherscan: {detail or 'request failed'}",
            source="etherscan",
            retryable="rate limit" in detail.lower(),
        )

    @staticmethod
    def _map_item(kind: RecordKind, item: Any):
        if kind == RecordKind.BASE:
            return EtherscanTransaction.model_validate(item).to_record()
        if kind == RecordKind.INTERNAL:
            return EtherscanInternalTransaction.model_validate(item).to_record()
        return EtherscanTokenTransfer.model_validate(item).to_record(kind)
