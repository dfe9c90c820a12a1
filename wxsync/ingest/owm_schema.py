"""Pydantic models for the forecast response body."""

from pydantic import BaseModel, Field


class Coordinates(BaseModel):
    lat: float
    lon: float


class City(BaseModel):
    name: str = ""
    coord: Coordinates
    country: str = ""


class MainReading(BaseModel):
    temp_min: float
    temp_max: float
    pressure: float
    humidity: float


class Condition(BaseModel):
    id: int


class Wind(BaseModel):
    speed: float
    deg: float


class ForecastEntry(BaseModel):
    dt: int | None = None  # ignored; dates come from position
    main: MainReading
    weather: list[Condition] = Field(min_length=1)
    wind: Wind


class ForecastResponse(BaseModel):
    cod: int
    message: str | float | None = None
    cnt: int | None = None
    city: City
    entries: list[ForecastEntry] = Field(alias="list", min_length=1)
