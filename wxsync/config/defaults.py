"""Default location used when neither config nor stored preferences name one."""

from wxsync.config.schema import LocationConfig

DEFAULT_LOCATION = LocationConfig(query="94043,USA")
