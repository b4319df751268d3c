"""pyopenrgb - asyncio client library for the OpenRGB SDK protocol.

Decoding, LED offset resolution, command batching and mode validation are
synchronous and work on immutable controller snapshots. Only the connection
and the ``async`` methods of the views perform network I/O.

Example:
    >>> from pyopenrgb import OpenRGBClient
    >>> client = await OpenRGBClient.connect("127.0.0.1")
    >>> controller = await client.get_controller(0)
    >>> await controller.cmd_with_leds(lambda led: "purple").execute()
"""

import importlib.metadata as _importlib_metadata

from pyopenrgb.client import OpenRGBClient
from pyopenrgb.codec import UNSUPPORTED, UnsupportedVersion
from pyopenrgb.command import Command
from pyopenrgb.connection import OpenRGBConnection, Transport
from pyopenrgb.controller import Controller, Led, Segment, Zone
from pyopenrgb.data import (
    BLACK,
    Color,
    ColorMode,
    ControllerData,
    ControllerFlag,
    DeviceType,
    Direction,
    LedData,
    MatrixMap,
    ModeData,
    ModeFlag,
    SegmentData,
    ZoneData,
    ZoneType,
)
from pyopenrgb.errors import (
    CapabilityError,
    CommandError,
    MalformedMessageError,
    OpenRGBError,
    RangeError,
    TransportError,
)
from pyopenrgb.mode import ControllerMode, ControllerModeBuilder, ModeKind
from pyopenrgb.plugins import (
    EffectsPlugin,
    OpenRGBPlugin,
    PluginData,
    PluginEffect,
    PluginKind,
)
from pyopenrgb.semantic import build_controller_data, parse_controller_data

__version__: str = _importlib_metadata.version(__package__ or __name__)

__all__ = [
    # Version
    "__version__",
    # Client (high-level API)
    "OpenRGBClient",
    "OpenRGBConnection",
    "Transport",
    # Views
    "Controller",
    "Zone",
    "Segment",
    "Led",
    "Command",
    "ControllerMode",
    "ControllerModeBuilder",
    "ModeKind",
    # Plugins
    "EffectsPlugin",
    "OpenRGBPlugin",
    "PluginData",
    "PluginEffect",
    "PluginKind",
    # Data model
    "BLACK",
    "Color",
    "ColorMode",
    "ControllerData",
    "ControllerFlag",
    "DeviceType",
    "Direction",
    "LedData",
    "MatrixMap",
    "ModeData",
    "ModeFlag",
    "SegmentData",
    "ZoneData",
    "ZoneType",
    "UNSUPPORTED",
    "UnsupportedVersion",
    "parse_controller_data",
    "build_controller_data",
    # Errors
    "OpenRGBError",
    "MalformedMessageError",
    "CommandError",
    "CapabilityError",
    "RangeError",
    "TransportError",
]
