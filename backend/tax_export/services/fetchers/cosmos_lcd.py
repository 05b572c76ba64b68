"""Cosmos SDK LCD fetcher (/cosmos/tx/v1beta1/txs event queries)."""
import logging
from typing import Any, Dict, List, Set
from pydantic import Field
from tax_export.chains.base import DataSource
from tax_export.models.raw import CosmosTxRecord, RecordKind, UpstreamModel
from tax_export.models.transaction import parse_coins
from tax_export.services.fetchers.base import (
    ChainFetcher,
    FetchResult,
    Page,
    PageRequest,
    PageState,
    PaginationStyle,
    StreamResult,
)
from tax_export.services.rate_limiter import RateLimiter
from tax_export.utils.coerce import to_int
from tax_export.utils.errors import UpstreamError

logger = logging.getLogger(__name__)

TXS_PATH = "/cosmos/tx/v1beta1/txs"

# Event queries every Cosmos SDK chain indexes
COMMON_QUERIES = [
    "message.sender='{address}'",
    "transfer.recipient='{address}'",
    "transfer.sender='{address}'",
    "ibc_transfer.sender='{address}'",
    "ibc_transfer.receiver='{address}'",
    "fungible_token_packet.receiver='{address}'",
    "delegate.delegator='{address}'",
    "unbond.delegator='{address}'",
    "redelegate.delegator='{address}'",
    "withdraw_rewards.delegator='{address}'",
    "proposal_vote.voter='{address}'",
    "proposal_deposit.depositor='{address}'",
    "coin_received.receiver='{address}'",
    "coin_spent.spender='{address}'",
]

# Chain-specific module events
CHAIN_QUERIES: Dict[str, List[str]] = {
    "osmosis": [
        "token_swapped.sender='{address}'",
        "pool_joined.sender='{address}'",
        "pool_exited.sender='{address}'",
        "lock_tokens.owner='{address}'",
        "begin_unlock.owner='{address}'",
        "superfluid_delegate.owner='{address}'",
        "create_denom.creator='{address}'",
        "tf_mint.mint_to_address='{address}'",
        "tf_burn.burn_from_address='{address}'",
    ],
    "babylon": [
        "babylon.btcstaking.v1.EventBTCDelegationStateUpdate.staker_addr='{address}'",
        "babylon.epoching.v1.EventWrappedDelegate.delegator_address='{address}'",
    ],
}


class TxBody(UpstreamModel):
    messages: List[Any] = Field(default_factory=list)
    memo: str = ""


class TxFee(UpstreamModel):
    amount: List[Any] = Field(default_factory=list)


class TxAuthInfo(UpstreamModel):
    fee: TxFee = Field(default_factory=TxFee)


class TxEnvelope(UpstreamModel):
    body: TxBody = Field(default_factory=TxBody)
    auth_info: TxAuthInfo = Field(default_factory=TxAuthInfo)


class TxResponse(UpstreamModel):
    """A Cosmos ``TxResponse`` as served by LCD nodes and Mintscan."""
    txhash: str
    height: str = "0"
    timestamp: str = ""
    code: int = 0
    tx: TxEnvelope = Field(default_factory=TxEnvelope)

    def to_record(self) -> CosmosTxRecord:
        body = self.tx.body
        messages = [m for m in body.messages if isinstance(m, dict)]
        return CosmosTxRecord(
            hash=self.txhash,
            block_number=self.height,
            timestamp=self.timestamp,
            code=self.code,
            messages=messages,
            memo=body.memo,
            fee=parse_coins(self.tx.auth_info.fee.amount),
        )


class CosmosLcdFetcher(ChainFetcher):
    """
    Fetch a Cosmos wallet's history through LCD event queries.

    Every query type is paged with ``pagination.offset``; hashes already seen
    through an earlier query are dropped. Endpoints are tried in order and
    the first one that returns data wins.
    """

    source = DataSource.COSMOS_LCD

    def queries(self) -> List[str]:
        return COMMON_QUERIES + CHAIN_QUERIES.get(self.chain.id, [])

    async def _fetch_streams(self, address: str, result: FetchResult):
        if not self.chain.api_endpoints:
            result.errors.append(f"cosmos_lcd: no LCD endpoints configured for {self.chain.id}")
            return

        for endpoint in self.chain.api_endpoints:
            endpoint = endpoint.rstrip("/")
            result.metadata.endpoints.append(endpoint)
            stream = await self._fetch_endpoint(endpoint, address)
            result.add_stream(RecordKind.COSMOS, stream)
            if stream.records:
                logger.info("[LCD] %s returned %d transactions", endpoint, len(stream.records))
                break
            logger.warning("[LCD] No data from %s, trying next endpoint", endpoint)

    async def _fetch_endpoint(self, endpoint: str, address: str) -> StreamResult:
        limiter = RateLimiter(self.settings.lcd_interval_seconds, name=endpoint)
        combined = StreamResult()
        seen: Set[str] = set()

        for template in self.queries():
            query = template.format(address=address)
            paginator = self.paginator(
                interval=self.settings.lcd_interval_seconds,
                style=PaginationStyle.OFFSET,
                page_size=self.settings.lcd_page_size,
                max_pages=self.settings.lcd_max_pages,
                label=f"LCD:{query.split('=')[0]}",
                limiter=limiter,
            )
            stream = await paginator.run(
                build_request=lambda state, query=query: self._build_request(endpoint, query, state),
                parse_page=self._parse_page,
                map_item=lambda item: TxResponse.model_validate(item).to_record(),
            )

            new = [record for record in stream.records if record.hash not in seen]
            seen.update(record.hash for record in new)
            combined.records.extend(new)
            combined.pages += stream.pages
            combined.total = (combined.total or 0) + (stream.total or 0)
            combined.errors.extend(stream.errors)
            logger.debug("[LCD] %s: %d new of %d", query, len(new), len(stream.records))

        return combined

    def _build_request(self, endpoint: str, query: str, state: PageState) -> PageRequest:
        return PageRequest(
            url=f"{endpoint}{TXS_PATH}",
            params={
                "query": query,
                "pagination.offset": state.offset,
                "pagination.limit": self.settings.lcd_page_size,
                "pagination.count_total": "true",
                "order_by": "ORDER_BY_DESC",
            },
        )

    @staticmethod
    def _parse_page(payload: Any) -> Page:
        if not isinstance(payload, dict):
            raise UpstreamError("cosmos_lcd: unexpected response envelope", source="cosmos_lcd")
        if payload.get("code") and "tx_responses" not in payload:
            raise UpstreamError(
                f"cosmos_lcd: {payload.get('message') or 'query failed'}", source="cosmos_lcd"
            )

        pagination = payload.get("pagination") or {}
        total = payload.get("total") or pagination.get("total")
        return Page(
            items=payload.get("tx_responses") or [],
            total=to_int(total) or None,
        )
