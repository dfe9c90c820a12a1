"""Preferred forecast location."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Location:
    query: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_resolvable(self) -> bool:
        return self.has_coordinates or bool(self.query)
