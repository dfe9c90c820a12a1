"""Forecast fetcher: one round trip, validated and stamped with normalized dates."""

import logging

from pydantic import ValidationError

from wxsync import dates
from wxsync.config.schema import ApiConfig
from wxsync.errors import FetchError, FetchErrorKind
from wxsync.ingest.owm_client import OwmClient, build_query_params
from wxsync.ingest.owm_schema import ForecastResponse
from wxsync.models.common import utc_now_iso
from wxsync.models.forecast import ForecastBatch, ForecastDay
from wxsync.models.location import Location
from wxsync.preferences import Preferences

logger = logging.getLogger(__name__)

STATUS_OK = 200
STATUS_NOT_FOUND = 404


class ForecastFetcher:
    def __init__(
        self,
        client: OwmClient,
        preferences: Preferences,
        api: ApiConfig | None = None,
    ):
        self.client = client
        self.preferences = preferences
        self.api = api or ApiConfig()

    def fetch(self, location: Location | None = None, now_ms: int | None = None) -> ForecastBatch:
        """Fetch the daily forecast for a location (stored preference by default).

        Row dates are assigned by position: entry i gets today + i days.
        On success the resolved coordinates are written back to preferences,
        unless the preferred location name changed during the request.
        Raises FetchError or ConfigError; never retries.
        """
        if location is None:
            location = self.preferences.require_location()
        params = build_query_params(location, self.api)

        raw = self.client.get_forecast(params)
        batch = parse_forecast(raw, dates.today(now_ms))

        self.preferences.store_resolved_coordinates(
            location.query, batch.latitude, batch.longitude
        )
        logger.info(
            "Fetched %d forecast days for %s (%.4f,%.4f)",
            len(batch.days), batch.city_name or "?", batch.latitude, batch.longitude,
        )
        return batch


def parse_forecast(raw: dict, start_day: int) -> ForecastBatch:
    """Validate a response body and build a batch starting at start_day."""
    status = _declared_status(raw)
    if status == STATUS_NOT_FOUND:
        raise FetchError(FetchErrorKind.NOT_FOUND, str(raw.get("message") or "not found"), status)
    if status != STATUS_OK:
        raise FetchError(FetchErrorKind.SERVER_ERROR, f"declared status {status}", status)

    try:
        response = ForecastResponse.model_validate(raw)
    except ValidationError as e:
        raise FetchError(
            FetchErrorKind.MALFORMED_RESPONSE,
            f"{e.error_count()} validation error(s): {e.errors()[0]['loc']}",
        ) from e

    days = [
        ForecastDay(
            date=start_day + dates.DAY_IN_MILLIS * i,
            condition_id=entry.weather[0].id,
            min_temp=entry.main.temp_min,
            max_temp=entry.main.temp_max,
            humidity=entry.main.humidity,
            pressure=entry.main.pressure,
            wind_speed=entry.wind.speed,
            wind_direction=entry.wind.deg,
        )
        for i, entry in enumerate(response.entries)
    ]
    return ForecastBatch(
        city_name=response.city.name,
        latitude=response.city.coord.lat,
        longitude=response.city.coord.lon,
        fetched_at=utc_now_iso(),
        days=days,
    )


def _declared_status(raw: dict) -> int:
    if "cod" not in raw:
        raise FetchError(FetchErrorKind.MALFORMED_RESPONSE, "missing status code")
    try:
        return int(raw["cod"])
    except (TypeError, ValueError) as e:
        raise FetchError(
            FetchErrorKind.MALFORMED_RESPONSE, f"bad status code {raw['cod']!r}"
        ) from e
