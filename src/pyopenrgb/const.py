"""Defaults and protocol constants."""

from typing import Final

DEFAULT_HOST: Final = "127.0.0.1"
DEFAULT_PORT: Final = 6742
DEFAULT_CLIENT_NAME: Final = "pyopenrgb"
DEFAULT_TIMEOUT: Final = 5.0  # seconds

# Highest protocol version this library speaks
PROTOCOL_VERSION: Final = 5
