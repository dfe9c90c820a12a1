"""Forecast data models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ForecastDay:
    date: int  # UTC midnight, epoch ms
    condition_id: int
    min_temp: float
    max_temp: float
    humidity: float
    pressure: float
    wind_speed: float
    wind_direction: float


@dataclass(frozen=True)
class ForecastBatch:
    city_name: str
    latitude: float
    longitude: float
    fetched_at: str
    days: list[ForecastDay] = field(default_factory=list)
