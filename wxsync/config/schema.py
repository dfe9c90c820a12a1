"""Pydantic v2 configuration schema with strict validation."""

from pydantic import BaseModel, Field, model_validator


class ApiConfig(BaseModel):
    model_config = {"extra": "forbid"}

    base_url: str = "https://api.openweathermap.org/data/2.5"
    api_key: str = ""  # falls back to OWM_API_KEY
    days: int = Field(default=14, ge=1, le=16)
    timeout_seconds: float = Field(default=30.0, gt=0.0)


class SyncConfig(BaseModel):
    model_config = {"extra": "forbid"}

    interval_hours: float = Field(default=3.0, gt=0.0)
    flex_fraction: float = Field(default=1 / 3, ge=0.0, le=1.0)
    max_workers: int = Field(default=2, ge=1)

    @property
    def interval_seconds(self) -> float:
        return self.interval_hours * 3600

    @property
    def flex_seconds(self) -> float:
        return self.interval_seconds * self.flex_fraction


class NotificationConfig(BaseModel):
    model_config = {"extra": "forbid"}

    enabled: bool = True
    webhook_url: str = ""


class LocationConfig(BaseModel):
    model_config = {"extra": "forbid"}

    query: str = ""
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)

    @model_validator(mode="after")
    def _coordinates_paired(self) -> "LocationConfig":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be set together")
        return self


class AppConfig(BaseModel):
    model_config = {"extra": "forbid"}

    api: ApiConfig = ApiConfig()
    sync: SyncConfig = SyncConfig()
    notifications: NotificationConfig = NotificationConfig()
    location: LocationConfig = LocationConfig()
