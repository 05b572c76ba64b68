"""Shared fixtures."""
import json
from datetime import datetime, timezone
from typing import Callable, Dict, List
import httpx
import pytest

from tax_export.config import Settings
from tax_export.chains.registry import get_chain_config

# Register chain families
import tax_export.chains.cosmos  # noqa: F401
import tax_export.chains.evm  # noqa: F401
import tax_export.chains.native  # noqa: F401

WALLET = "0x" + "a" * 40
OTHER = "0x" + "b" * 40
THIRD = "0x" + "c" * 40
CONTRACT_USDC = "0x" + "1" * 40
CONTRACT_WETH = "0x" + "2" * 40
OSMO_WALLET = "osmo1g8gv8ayl55698fscstajt9uqw9r6w8a34aly9v"
OSMO_OTHER = "osmo1" + "q" * 38


@pytest.fixture
def settings() -> Settings:
    """Settings with API keys set and no request spacing."""
    return Settings(
        _env_file=None,
        etherscan_api_key="etherscan-key",
        mintscan_api_key="mintscan-key",
        celenium_api_key="celenium-key",
        tatum_api_key="tatum-key",
        goldrush_api_key="goldrush-key",
        pikespeak_api_key="pikespeak-key",
        etherscan_interval_seconds=0,
        lcd_interval_seconds=0,
        mintscan_interval_seconds=0,
        celenium_interval_seconds=0,
        tatum_interval_seconds=0,
        goldrush_interval_seconds=0,
        pikespeak_interval_seconds=0,
        max_consecutive_errors=3,
    )


@pytest.fixture
def celo():
    return get_chain_config("celo")


@pytest.fixture
def osmosis():
    return get_chain_config("osmosis")


class RecordingTransport:
    """MockTransport handler that records every request."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode(), headers={"content-type": "application/json"})


def ts(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def epoch(value: datetime) -> str:
    return str(int(value.timestamp()))


def etherscan_tx(tx_hash: str, when: datetime, **fields) -> Dict[str, str]:
    item = {
        "blockNumber": "100",
        "timeStamp": epoch(when),
        "hash": tx_hash,
        "from": WALLET,
        "to": OTHER,
        "value": "0",
        "gasPrice": "1000000000",
        "gasUsed": "21000",
        "isError": "0",
        "input": "0x",
    }
    item.update(fields)
    return item


def etherscan_token_tx(tx_hash: str, when: datetime, **fields) -> Dict[str, str]:
    item = {
        "blockNumber": "100",
        "timeStamp": epoch(when),
        "hash": tx_hash,
        "from": WALLET,
        "to": OTHER,
        "contractAddress": CONTRACT_USDC,
        "value": "1500000",
        "tokenName": "USD Coin",
        "tokenSymbol": "USDC",
        "tokenDecimal": "6",
    }
    item.update(fields)
    return item
