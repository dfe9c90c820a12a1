"""OpenWeatherMap daily forecast client. One request per call, no retries."""

import logging
import os

import httpx

from wxsync.config.schema import ApiConfig
from wxsync.errors import ConfigError, ConfigErrorKind, FetchError, FetchErrorKind
from wxsync.models.location import Location

logger = logging.getLogger(__name__)

OWM_BASE_URL = "https://api.openweathermap.org/data/2.5"
DEFAULT_USER_AGENT = "wxsync/0.1.0"

APP_ID_PARAM = "APPID"
QUERY_PARAM = "q"
LAT_PARAM = "lat"
LON_PARAM = "lon"
FORMAT_PARAM = "mode"
UNITS_PARAM = "units"
METRIC_UNITS = "metric"
DAYS_PARAM = "cnt"


def build_query_params(location: Location, api: ApiConfig, api_key: str = "") -> dict[str, str]:
    """Build the forecast query map. Coordinates take precedence over a name."""
    params = {
        APP_ID_PARAM: api_key,
        FORMAT_PARAM: "json",
        UNITS_PARAM: METRIC_UNITS,
        DAYS_PARAM: str(api.days),
    }
    if location.has_coordinates:
        params[LAT_PARAM] = str(location.latitude)
        params[LON_PARAM] = str(location.longitude)
    elif location.query:
        params[QUERY_PARAM] = location.query
    else:
        raise ConfigError(
            ConfigErrorKind.LOCATION_UNRESOLVED,
            "location has neither a name nor coordinates",
        )
    return params


class OwmClient:
    def __init__(
        self,
        base_url: str = OWM_BASE_URL,
        api_key: str | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or os.environ.get("OWM_API_KEY", "")
        self.user_agent = user_agent
        self.timeout = timeout

    @classmethod
    def from_config(cls, api: ApiConfig) -> "OwmClient":
        return cls(base_url=api.base_url, api_key=api.api_key or None, timeout=api.timeout_seconds)

    def get_forecast(self, params: dict[str, str]) -> dict:
        """GET {base_url}/forecast and return the decoded JSON object.

        Raises FetchError on transport failure, non-2xx status, or a body
        that is not a JSON object.
        """
        url = f"{self.base_url}/forecast"
        params = {**params, APP_ID_PARAM: params.get(APP_ID_PARAM) or self.api_key}
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}

        try:
            resp = httpx.get(url, params=params, headers=headers, timeout=self.timeout)
        except httpx.RequestError as e:
            logger.warning("Forecast request error: %s", e)
            raise FetchError(FetchErrorKind.NETWORK_ERROR, f"request failed: {e}") from e

        if resp.status_code == 404:
            raise FetchError(FetchErrorKind.NOT_FOUND, "location not found", resp.status_code)
        if not resp.is_success:
            logger.warning("Forecast API returned %d", resp.status_code)
            raise FetchError(
                FetchErrorKind.SERVER_ERROR, f"HTTP {resp.status_code}", resp.status_code
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise FetchError(
                FetchErrorKind.MALFORMED_RESPONSE, f"invalid JSON: {e}", resp.status_code
            ) from e
        if not isinstance(body, dict):
            raise FetchError(
                FetchErrorKind.MALFORMED_RESPONSE, "response is not a JSON object", resp.status_code
            )
        return body
