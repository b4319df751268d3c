"""Exceptions raised by pyopenrgb.

Every exception derives from :class:`OpenRGBError`. Validation errors are
detected from the local controller snapshot before anything is sent, so a
failed call never leaves a half-built command or a modified snapshot behind.
"""

from __future__ import annotations


class OpenRGBError(Exception):
    """Base class for all pyopenrgb errors."""


class MalformedMessageError(OpenRGBError, ValueError):
    """A received message could not be decoded.

    Raised when a message is shorter than its declared contents, when a size
    prefix disagrees with the bytes present, or when the decoded values break
    an invariant of the device model. No partially decoded object is ever
    returned alongside this error.
    """


class CommandError(OpenRGBError, ValueError):
    """A command was rejected by local validation before being sent."""


class CapabilityError(CommandError):
    """The target does not support the requested operation.

    Raised for modes lacking a capability flag, and for operations that need a
    newer protocol version than the one negotiated for the session.
    """


class RangeError(CommandError):
    """A value lies outside the bounds reported by the device."""

    def __init__(self, name: str, minimum: int, maximum: int, value: int) -> None:
        """Initialize the error.

        Args:
            name: Parameter name used in the message (e.g. "Speed")
            minimum: Lowest accepted value
            maximum: Highest accepted value
            value: The rejected value
        """
        super().__init__(f"{name} must be between {minimum} and {maximum}, got: {value}")
        self.minimum = minimum
        self.maximum = maximum
        self.value = value


class TransportError(OpenRGBError, ConnectionError):
    """Sending a request or receiving its response failed."""
