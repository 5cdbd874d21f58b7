"""
Unit tests for the Kundli service routes.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from respx import MockRouter

from service_kundli.app.main import KundliService, create_app
from shared.config import get_config
from shared.logging import request_id_var

API_BASE = "https://api.test"
TOKEN_URL = f"{API_BASE}/token"
QUERY = "datetime=2004-02-12T15:19:21+05:30&coordinates=10.214747,78.097626&ayanamsa=1"


@pytest.fixture(autouse=True)
def clear_credential_env(monkeypatch):
    """Keep host environment credentials out of the tests."""
    for name in ("PROKERALA_CLIENT_ID", "PROKERALA_CLIENT_SECRET", "KUNDLI_CLIENT_ID", "KUNDLI_CLIENT_SECRET"):
        monkeypatch.delenv(name, raising=False)


def make_config(**overrides):
    values = {
        "client_id": "client-id",
        "client_secret": "client-secret",
        "token_url": TOKEN_URL,
        "api_base_url": API_BASE,
    }
    values.update(overrides)
    return get_config("kundli", 8000, **values)


def mock_provider(respx_mock: MockRouter, dasha=None):
    """Register token and resource routes."""
    routes = {
        "token": respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "bearer-token", "expires_in": 3600})
        ),
        "kundli": respx_mock.get(path="/v2/astrology/kundli").mock(
            return_value=httpx.Response(200, json={"data": {"nakshatra_details": {"nakshatra": {"name": "Ashwini"}}}})
        ),
        "dasha": respx_mock.get(path="/v2/astrology/major-dasha").mock(
            return_value=dasha if dasha is not None else httpx.Response(200, json={"data": {"dasha_periods": []}})
        ),
        "planet_position": respx_mock.get(path="/v2/astrology/planet-position").mock(
            return_value=httpx.Response(200, json={"data": {"ascendant": "Leo", "planets": [{"name": "Sun"}]}})
        ),
    }
    return routes


class TestKundliService:
    """Test cases for KundliService."""

    @pytest.fixture
    def client(self):
        """Create test client for a configured service."""
        with TestClient(create_app(make_config())) as test_client:
            yield test_client

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "kundli"

    def test_health_endpoint(self, client):
        """Health reports configured credentials."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"] == {"credentials": "ok"}

    def test_health_without_credentials(self):
        """Health is degraded when the secrets are absent."""
        app = create_app(make_config(client_id=None, client_secret=None))
        with TestClient(app) as client:
            data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["dependencies"] == {"credentials": "missing"}

    def test_metrics_endpoint(self, client):
        """Prometheus exposition is served."""
        client.get("/")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_request_id_echoed(self, client):
        """The caller's request id comes back on the response."""
        response = client.get("/", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_request_id_cleared_when_route_raises(self):
        """The request id does not outlive a request that blew up."""
        service = KundliService(make_config())
        request = MagicMock()
        request.headers = {"X-Request-ID": "req-boom"}
        call_next = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await service._time_request(request, call_next)

        assert request_id_var.get() is None

    def test_no_query_string(self, client):
        """No query string is a 400 with an error field."""
        response = client.get("/api/v1/astrology")
        assert response.status_code == 400
        assert set(response.json()) == {"error"}

    def test_missing_parameter(self, client):
        """A missing parameter is a 400 naming it."""
        response = client.get("/api/v1/astrology?datetime=2004-02-12T15:19:21%2B05:30&ayanamsa=1")
        assert response.status_code == 400
        assert response.json() == {"error": "missing required parameter: coordinates"}

    def test_missing_credentials(self):
        """Unconfigured secrets answer 500 with a configuration error."""
        app = create_app(make_config(client_id=None, client_secret=None))
        with TestClient(app) as client:
            response = client.get(f"/api/v1/astrology?{QUERY}")

        assert response.status_code == 500
        assert "credentials" in response.json()["error"]

    def test_get_success_end_to_end(self, client, respx_mock: MockRouter):
        """The corrupted offset is repaired and the results merged."""
        routes = mock_provider(respx_mock)

        response = client.get(f"/api/v1/astrology?{QUERY}")

        assert response.status_code == 200
        data = response.json()
        assert data["kundliData"]["data"]["ascendant"] == "Leo"
        assert data["kundliData"]["data"]["planet_positions"] == [{"name": "Sun"}]
        assert data["kundliData"]["data"]["nakshatra_details"]["nakshatra"]["name"] == "Ashwini"
        assert data["dashaData"] == {"data": {"dasha_periods": []}}

        forwarded = routes["kundli"].calls.last.request
        assert "datetime=2004-02-12T15:19:21%2B05:30" in str(forwarded.url)
        assert forwarded.headers["Authorization"] == "Bearer bearer-token"

    def test_token_reused_across_requests(self, client, respx_mock: MockRouter):
        """Two requests share one token exchange."""
        routes = mock_provider(respx_mock)

        client.get(f"/api/v1/astrology?{QUERY}")
        client.get(f"/api/v1/astrology?{QUERY}")

        assert routes["token"].call_count == 1
        assert routes["kundli"].call_count == 2

    def test_upstream_failure(self, client, respx_mock: MockRouter):
        """A failing resource is reported by name and detail."""
        mock_provider(
            respx_mock,
            dasha=httpx.Response(400, json={"errors": [{"detail": "Invalid coordinates"}]}),
        )

        response = client.get(f"/api/v1/astrology?{QUERY}")

        assert response.status_code == 500
        assert response.json() == {"error": "dasha: Invalid coordinates"}

    def test_auth_failure(self, client, respx_mock: MockRouter):
        """A rejected token exchange answers 500 without leaking the secret."""
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(401, json={"error": "invalid_client"}))

        response = client.get(f"/api/v1/astrology?{QUERY}")

        assert response.status_code == 500
        error = response.json()["error"]
        assert "invalid_client" in error
        assert "client-secret" not in error

    def test_post_json_success(self, client, respx_mock: MockRouter):
        """The JSON-body variant reaches the same pipeline."""
        mock_provider(respx_mock)

        response = client.post(
            "/api/v1/astrology",
            json={"datetime": "2004-02-12T15:19:21+05:30", "coordinates": "10.214747,78.097626"},
        )

        assert response.status_code == 200
        assert set(response.json()) == {"kundliData", "dashaData"}

    def test_post_invalid_json(self, client):
        """An unparseable body is a 400."""
        response = client.post(
            "/api/v1/astrology",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert set(response.json()) == {"error"}

    def test_planet_positions_can_be_disabled(self, respx_mock: MockRouter):
        """With planet positions off only two resources are called."""
        token = respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "t", "expires_in": 3600})
        )
        kundli = respx_mock.get(path="/v2/astrology/kundli").mock(
            return_value=httpx.Response(200, json={"data": {"foo": 1}})
        )
        dasha = respx_mock.get(path="/v2/astrology/major-dasha").mock(
            return_value=httpx.Response(200, json={"data": {"bar": 2}})
        )

        service = KundliService(make_config(include_planet_positions=False))
        with TestClient(service.app) as client:
            response = client.get(f"/api/v1/astrology?{QUERY}")

        assert response.json() == {"kundliData": {"data": {"foo": 1}}, "dashaData": {"data": {"bar": 2}}}
        assert token.called and kundli.called and dasha.called
