"""Tests for the forecast API client with mocked httpx."""

import httpx
import pytest
import respx

from wxsync.config.schema import ApiConfig
from wxsync.errors import ConfigError, FetchError, FetchErrorKind
from wxsync.ingest.owm_client import OwmClient, build_query_params
from wxsync.models.location import Location
from wxsync.tests.factories import TEST_BASE_URL, forecast_route, make_response


@pytest.fixture
def client() -> OwmClient:
    return OwmClient(base_url=TEST_BASE_URL, api_key="test-key")


class TestBuildQueryParams:
    def test_query_by_name(self):
        params = build_query_params(Location(query="Berlin,DE"), ApiConfig())
        assert params["q"] == "Berlin,DE"
        assert params["units"] == "metric"
        assert params["mode"] == "json"
        assert params["cnt"] == "14"
        assert "lat" not in params

    def test_coordinates_take_precedence(self):
        location = Location(query="Berlin,DE", latitude=52.52, longitude=13.4)
        params = build_query_params(location, ApiConfig(days=7))
        assert params["lat"] == "52.52"
        assert params["lon"] == "13.4"
        assert params["cnt"] == "7"
        assert "q" not in params

    def test_unresolved_location(self):
        with pytest.raises(ConfigError):
            build_query_params(Location(), ApiConfig())


class TestGetForecast:
    @respx.mock
    def test_success(self, client: OwmClient):
        route = forecast_route().mock(
            return_value=httpx.Response(200, json=make_response([800, 500]))
        )
        body = client.get_forecast({"q": "Berlin,DE"})
        assert body["cnt"] == 2
        request = route.calls.last.request
        assert request.url.params["q"] == "Berlin,DE"
        assert request.url.params["APPID"] == "test-key"
        assert "wxsync" in request.headers["user-agent"]

    @respx.mock
    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("OWM_API_KEY", "env-key")
        route = forecast_route().mock(
            return_value=httpx.Response(200, json=make_response([800]))
        )
        OwmClient(base_url=TEST_BASE_URL).get_forecast({"q": "x"})
        assert route.calls.last.request.url.params["APPID"] == "env-key"

    @respx.mock
    def test_404_is_not_found(self, client: OwmClient):
        forecast_route().mock(
            return_value=httpx.Response(404, json={"cod": "404", "message": "city not found"})
        )
        with pytest.raises(FetchError) as exc:
            client.get_forecast({"q": "Atlantis"})
        assert exc.value.kind == FetchErrorKind.NOT_FOUND
        assert exc.value.status_code == 404

    @respx.mock
    def test_500_is_server_error(self, client: OwmClient):
        forecast_route().mock(return_value=httpx.Response(500))
        with pytest.raises(FetchError) as exc:
            client.get_forecast({"q": "x"})
        assert exc.value.kind == FetchErrorKind.SERVER_ERROR

    @respx.mock
    def test_single_round_trip_no_retry(self, client: OwmClient):
        route = forecast_route().mock(return_value=httpx.Response(503))
        with pytest.raises(FetchError):
            client.get_forecast({"q": "x"})
        assert route.call_count == 1

    @respx.mock
    def test_connect_error_is_network_error(self, client: OwmClient):
        forecast_route().mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(FetchError) as exc:
            client.get_forecast({"q": "x"})
        assert exc.value.kind == FetchErrorKind.NETWORK_ERROR

    @respx.mock
    def test_invalid_json_is_malformed(self, client: OwmClient):
        forecast_route().mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(FetchError) as exc:
            client.get_forecast({"q": "x"})
        assert exc.value.kind == FetchErrorKind.MALFORMED_RESPONSE

    @respx.mock
    def test_json_array_is_malformed(self, client: OwmClient):
        forecast_route().mock(return_value=httpx.Response(200, json=[1, 2]))
        with pytest.raises(FetchError) as exc:
            client.get_forecast({"q": "x"})
        assert exc.value.kind == FetchErrorKind.MALFORMED_RESPONSE
