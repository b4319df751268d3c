"""SDK plugins and the effects plugin sub-protocol.

Servers report their loaded plugins in a "plugin list" response. Talking to a
plugin goes through "plugin specific" packets: the header's device field
carries the plugin index and the payload starts with a u32 plugin-defined
packet type. Responses repeat that type before their body.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any

from construct import Adapter, Construct, Flag, Int32sl, Int32ul, Prefixed, Struct

from pyopenrgb.builders import build_plugin_specific
from pyopenrgb.codec import OrgbString, counted, parse_versioned
from pyopenrgb.errors import MalformedMessageError

if TYPE_CHECKING:
    from pyopenrgb.connection import Transport

_LOGGER = logging.getLogger(__name__)


class OpenRGBPlugin(Enum):
    """Plugins published on openrgb.org, by their reported name."""

    EFFECTS = "OpenRGB Effects Plugin"
    VISUAL_MAP = "Visual Map"
    HARDWARE_SYNC = "Hardware Sync"
    FAN_SYNC = "Fan Sync"
    E131_RECEIVER = "E131 Receiver"
    SCHEDULER = "Scheduler"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PluginKind:
    """Known kind of a plugin, along with the name it reported."""

    kind: OpenRGBPlugin
    name: str

    @classmethod
    def from_name(cls, name: str) -> PluginKind:
        for plugin in OpenRGBPlugin:
            if plugin is not OpenRGBPlugin.UNKNOWN and plugin.value == name:
                return cls(plugin, name)
        return cls(OpenRGBPlugin.UNKNOWN, name)


@dataclass(frozen=True)
class PluginData:
    """A plugin loaded by the server."""

    name: str
    description: str
    version: str
    index: int
    sdk_version: int

    @property
    def kind(self) -> PluginKind:
        return PluginKind.from_name(self.name)


PluginStruct: Construct = Struct(
    "name" / OrgbString,
    "description" / OrgbString,
    "version" / OrgbString,
    "index" / Int32ul,
    "sdk_version" / Int32sl,
)


class PluginAdapter(Adapter):  # type: ignore[misc]
    def _decode(self, obj: Any, context: Any, path: str) -> PluginData:
        return PluginData(
            name=obj.name,
            description=obj.description,
            version=obj.version,
            index=obj.index,
            sdk_version=obj.sdk_version,
        )

    def _encode(self, obj: PluginData, context: Any, path: str) -> dict[str, Any]:
        return {
            "name": obj.name,
            "description": obj.description,
            "version": obj.version,
            "index": obj.index,
            "sdk_version": obj.sdk_version,
        }


PluginListPayload: Construct = Prefixed(
    Int32ul,
    Struct(
        "plugins" / counted(PluginAdapter(PluginStruct)),
    ),
    includelength=True,
)


def parse_plugin_list(data: bytes) -> list[PluginData]:
    """Parse a "plugin list" response.

    Raises:
        MalformedMessageError: If the payload cannot be decoded
    """
    return list(parse_versioned(PluginListPayload, data, 0).plugins)


class EffectsPluginPacket(IntEnum):
    """Packet types understood by the effects plugin."""

    REQUEST_EFFECT_LIST = 0
    START_EFFECT = 20
    STOP_EFFECT = 21


@dataclass(frozen=True)
class PluginEffect:
    """An effect offered by the effects plugin."""

    name: str
    description: str
    enabled: bool


EffectStruct: Construct = Struct(
    "name" / OrgbString,
    "description" / OrgbString,
    "enabled" / Flag,
)

EffectListResponse: Construct = Struct(
    "packet_type" / Int32ul,
    "effects" / counted(EffectStruct),
)


def parse_effect_list(data: bytes) -> list[PluginEffect]:
    """Parse the effects plugin's answer to an effect list request.

    Raises:
        MalformedMessageError: If the payload cannot be decoded or answers
            another packet type
    """
    response = parse_versioned(EffectListResponse, data, 0)
    if response.packet_type != EffectsPluginPacket.REQUEST_EFFECT_LIST:
        raise MalformedMessageError(
            f"Expected effect list response, got plugin packet type {response.packet_type}"
        )
    return [
        PluginEffect(name=effect.name, description=effect.description, enabled=effect.enabled)
        for effect in response.effects
    ]


class EffectsPlugin:
    """Client side of the OpenRGB Effects Plugin."""

    def __init__(self, transport: Transport, plugin: PluginData) -> None:
        self._transport = transport
        self._plugin = plugin

    def __repr__(self) -> str:
        return f"<EffectsPlugin {self._plugin.index}: {self._plugin.version!r}>"

    @property
    def plugin(self) -> PluginData:
        return self._plugin

    async def list_effects(self) -> list[PluginEffect]:
        """Request the effects offered by the plugin.

        Raises:
            TransportError: If the request fails
            MalformedMessageError: If the response cannot be decoded
        """
        response = await self._transport.request(
            build_plugin_specific(self._plugin.index, EffectsPluginPacket.REQUEST_EFFECT_LIST)
        )
        return parse_effect_list(response)

    async def start_effect(self, name: str) -> None:
        """Start the effect with the given name."""
        _LOGGER.debug("Starting effect %s", name)
        await self._transport.send(
            build_plugin_specific(
                self._plugin.index, EffectsPluginPacket.START_EFFECT, OrgbString.build(name)
            )
        )

    async def stop_effect(self, name: str) -> None:
        """Stop the effect with the given name."""
        _LOGGER.debug("Stopping effect %s", name)
        await self._transport.send(
            build_plugin_specific(
                self._plugin.index, EffectsPluginPacket.STOP_EFFECT, OrgbString.build(name)
            )
        )
