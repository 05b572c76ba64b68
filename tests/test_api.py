"""Tests for the HTTP API."""
import csv
import io

import httpx
import pytest
from fastapi.testclient import TestClient

from tax_export.api.deps import get_wallet_service
from tax_export.main import app
from tax_export.services.wallet_service import WalletService

from conftest import OTHER, WALLET, etherscan_tx, json_response, ts

API = "/api/v1"


def etherscan_handler(request):
    if request.url.host == "api.etherscan.io" and request.url.params["action"] == "txlist":
        return json_response({"status": "1", "result": [
            etherscan_tx("0x01", ts(2024, 3, 1), value="1000000000000000000"),
            etherscan_tx("0x02", ts(2024, 3, 2), value="2000000000000000000", **{"from": OTHER, "to": WALLET}),
        ]})
    return json_response({"status": "0", "message": "No transactions found", "result": []})


@pytest.fixture
def client_for(settings):
    """Build a TestClient whose wallet service talks to a mock transport."""
    def build(handler):
        async def override():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
                yield WalletService(settings, http)

        app.dependency_overrides[get_wallet_service] = override
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


class TestMeta:
    """Tests for root and health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestChains:
    """Tests for chain registry endpoints."""

    def test_list(self, client):
        body = client.get(f"{API}/chains").json()
        ids = {chain["id"] for chain in body["chains"]}

        assert body["default"] == "osmosis"
        assert {"osmosis", "celo", "polkadot"} <= ids

    def test_enabled_only(self, client):
        body = client.get(f"{API}/chains", params={"enabled_only": True}).json()
        assert all(chain["enabled"] for chain in body["chains"])

    def test_get_chain(self, client):
        body = client.get(f"{API}/chains/celo").json()
        assert body["native_symbol"] == "CELO"
        assert body["sources"] == ["etherscan", "tatum"]

    def test_unknown_chain(self, client):
        assert client.get(f"{API}/chains/dogecoin").status_code == 404


class TestValidate:
    """Tests for address validation."""

    def test_valid(self, client):
        body = client.get(f"{API}/wallets/validate/celo/{WALLET}").json()
        assert body["valid"] is True
        assert body["message"] == "Address is valid"

    def test_invalid(self, client):
        body = client.get(f"{API}/wallets/validate/celo/0x123").json()
        assert body["valid"] is False
        assert body["message"] == "Invalid Celo address format"

    def test_unknown_chain(self, client):
        assert client.get(f"{API}/wallets/validate/dogecoin/{WALLET}").status_code == 400


class TestFetch:
    """Tests for the transaction fetch endpoint."""

    def test_success(self, client_for):
        response = client_for(etherscan_handler).post(
            f"{API}/transactions/fetch", json={"chain": "celo", "address": WALLET}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["metadata"]["total_fetched"] == 2
        first = body["transactions"][0]
        assert first["hash"] == "0x02"
        assert first["type"] == "receive"
        assert first["from"] == OTHER
        assert first["to"] == WALLET

    def test_invalid_address(self, client_for):
        response = client_for(etherscan_handler).post(
            f"{API}/transactions/fetch", json={"chain": "celo", "address": "0x123"}
        )
        assert response.status_code == 400
        assert "Invalid celo address" in response.json()["detail"]

    def test_unknown_chain(self, client_for):
        response = client_for(etherscan_handler).post(
            f"{API}/transactions/fetch", json={"chain": "dogecoin", "address": WALLET}
        )
        assert response.status_code == 400

    def test_upstream_failure(self, client_for):
        response = client_for(lambda request: json_response({}, status_code=500)).post(
            f"{API}/transactions/fetch", json={"chain": "celo", "address": WALLET}
        )
        assert response.status_code == 502
        assert "try again in a minute" in response.json()["detail"]

    def test_empty_wallet(self, client_for):
        handler = lambda request: json_response(  # noqa: E731
            {"status": "0", "message": "No transactions found", "result": []}
            if request.url.host == "api.etherscan.io" else {"result": []}
        )
        body = client_for(handler).post(
            f"{API}/transactions/fetch", json={"chain": "celo", "address": WALLET}
        ).json()

        assert body["transactions"] == []
        assert body["message"] == "No transactions found"


class TestExport:
    """Tests for report downloads."""

    def test_standard_csv(self, client_for):
        response = client_for(etherscan_handler).post(
            f"{API}/reports/export", json={"chain": "celo", "address": WALLET}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "celo-awaken-0xaaaaaa-" in response.headers["content-disposition"]

        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert [row["Received Quantity"] for row in rows] == ["2.000000", ""]
        assert [row["Sent Quantity"] for row in rows] == ["", "1.000000"]
        assert rows[1]["Fee Amount"] == "0.00002100"
        assert rows[1]["Fee Currency"] == "CELO"

    def test_trading_csv(self, client_for):
        response = client_for(etherscan_handler).post(
            f"{API}/reports/export", json={"chain": "celo", "address": WALLET, "format": "trading"}
        )

        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert [row["Amount"] for row in rows] == ["2.000000", "-1.000000"]
        assert "-trading-" in response.headers["content-disposition"]

    def test_excel(self, client_for):
        response = client_for(etherscan_handler).post(
            f"{API}/reports/export", json={"chain": "celo", "address": WALLET, "format": "excel"}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert ".xlsx" in response.headers["content-disposition"]
        assert response.content[:2] == b"PK"

    def test_unknown_format(self, client_for):
        response = client_for(etherscan_handler).post(
            f"{API}/reports/export", json={"chain": "celo", "address": WALLET, "format": "pdf"}
        )
        assert response.status_code == 422
