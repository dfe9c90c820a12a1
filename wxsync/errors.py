"""Typed failures raised by the fetch, storage and config layers."""

from enum import StrEnum


class FetchErrorKind(StrEnum):
    NOT_FOUND = "NOT_FOUND"
    SERVER_ERROR = "SERVER_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    NETWORK_ERROR = "NETWORK_ERROR"


class StoreErrorKind(StrEnum):
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    IO_FAILURE = "IO_FAILURE"
    NOT_FOUND = "NOT_FOUND"


class ConfigErrorKind(StrEnum):
    LOCATION_UNRESOLVED = "LOCATION_UNRESOLVED"


class WxSyncError(Exception):
    """Base class for all pipeline errors."""


class FetchError(WxSyncError):
    """Raised when a forecast round trip yields no usable batch."""

    def __init__(
        self, kind: FetchErrorKind, message: str, status_code: int | None = None
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.kind}: {self.args[0]}"


class StoreError(WxSyncError):
    def __init__(self, kind: StoreErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"{self.kind}: {self.args[0]}"


class ConfigError(WxSyncError):
    def __init__(self, kind: ConfigErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"{self.kind}: {self.args[0]}"


class NotificationError(WxSyncError):
    """Raised when a notifier fails to deliver."""
