"""Helper functions to build OpenRGB SDK request packets.

Each builder returns a complete packet (header and payload) ready to be handed
to a transport. Builders do no validation against the controller snapshot;
that happens in the command, view and mode layers before a builder is called.
"""

from __future__ import annotations

from typing import Iterable

from pyopenrgb.codec import build_versioned
from pyopenrgb.data import BLACK, Color, ModeData, SegmentData, ZoneData
from pyopenrgb.protocol import PacketId, build_packet
from pyopenrgb.semantic import (
    AddSegmentPayload,
    ClearSegmentsPayload,
    ClientNamePayload,
    ProtocolVersionPayload,
    ResizeZonePayload,
    UpdateLedsPayload,
    UpdateModePayload,
    UpdateSingleLedPayload,
    UpdateZoneLedsPayload,
)


def build_request_controller_count() -> bytes:
    """Build a controller count request (packet 0)."""
    return build_packet(PacketId.REQUEST_CONTROLLER_COUNT)


def build_request_controller_data(controller_id: int, protocol_version: int) -> bytes:
    """Build a controller data request (packet 1).

    Args:
        controller_id: Index of the controller
        protocol_version: Negotiated protocol version; servers answer with the
            record layout of this version

    Returns:
        Complete packet bytes ready to send
    """
    payload = b""
    if protocol_version >= 1:
        payload = ProtocolVersionPayload.build({"version": protocol_version})
    return build_packet(PacketId.REQUEST_CONTROLLER_DATA, payload, controller_id)


def build_request_protocol_version(client_version: int) -> bytes:
    """Build a protocol version request (packet 40) announcing the client's version."""
    payload = ProtocolVersionPayload.build({"version": client_version})
    return build_packet(PacketId.REQUEST_PROTOCOL_VERSION, payload)


def build_set_client_name(name: str) -> bytes:
    """Build a set client name packet (packet 50)."""
    return build_packet(PacketId.SET_CLIENT_NAME, ClientNamePayload.build({"name": name}))


def build_update_leds(controller_id: int, colors: Iterable[Color]) -> bytes:
    """Build an update LEDs packet (packet 1050) carrying the full color array.

    Args:
        controller_id: Index of the controller
        colors: One color per LED of the controller

    Returns:
        Complete packet bytes ready to send
    """
    payload = UpdateLedsPayload.build({"colors": list(colors)})
    return build_packet(PacketId.UPDATE_LEDS, payload, controller_id)


def build_update_zone_leds(controller_id: int, zone_id: int, colors: Iterable[Color]) -> bytes:
    """Build an update zone LEDs packet (packet 1051).

    Args:
        controller_id: Index of the controller
        zone_id: Id of the zone
        colors: One color per LED of the zone

    Returns:
        Complete packet bytes ready to send
    """
    payload = UpdateZoneLedsPayload.build({"zone_id": zone_id, "colors": list(colors)})
    return build_packet(PacketId.UPDATE_ZONE_LEDS, payload, controller_id)


def build_update_segment_leds(
    controller_id: int, zone: ZoneData, segment: SegmentData, colors: Iterable[Color]
) -> bytes:
    """Build a packet updating the LEDs of one segment.

    The protocol has no segment-level update, so this is a zone update where
    every LED of the zone outside the segment is set to black.

    Args:
        controller_id: Index of the controller
        zone: Zone owning the segment
        segment: Target segment
        colors: Colors for the segment, at most ``segment.led_count`` of them

    Returns:
        Complete packet bytes ready to send
    """
    zone_colors = [BLACK] * zone.leds_count
    for idx, color in enumerate(colors):
        zone_colors[segment.offset + idx] = color
    return build_update_zone_leds(controller_id, zone.id, zone_colors)


def build_update_single_led(controller_id: int, led_id: int, color: Color) -> bytes:
    """Build an update single LED packet (packet 1052)."""
    payload = UpdateSingleLedPayload.build({"led_id": led_id, "color": color})
    return build_packet(PacketId.UPDATE_SINGLE_LED, payload, controller_id)


def build_resize_zone(controller_id: int, zone_id: int, new_size: int) -> bytes:
    """Build a resize zone packet (packet 1000)."""
    payload = ResizeZonePayload.build({"zone_id": zone_id, "new_size": new_size})
    return build_packet(PacketId.RESIZE_ZONE, payload, controller_id)


def build_clear_segments(controller_id: int, zone_id: int) -> bytes:
    """Build a clear segments packet (packet 1001)."""
    payload = ClearSegmentsPayload.build({"zone_id": zone_id})
    return build_packet(PacketId.CLEAR_SEGMENTS, payload, controller_id)


def build_add_segment(
    controller_id: int, zone_id: int, segment: SegmentData, protocol_version: int
) -> bytes:
    """Build an add segment packet (packet 1002).

    Args:
        controller_id: Index of the controller
        zone_id: Id of the zone receiving the segment
        segment: Segment to add; its ``id`` is ignored
        protocol_version: Negotiated protocol version

    Returns:
        Complete packet bytes ready to send
    """
    payload = build_versioned(
        AddSegmentPayload, {"zone_id": zone_id, "segment": segment}, protocol_version
    )
    return build_packet(PacketId.ADD_SEGMENT, payload, controller_id)


def _build_mode_packet(
    packet_id: PacketId, controller_id: int, mode: ModeData, protocol_version: int
) -> bytes:
    payload = build_versioned(
        UpdateModePayload, {"mode_index": mode.index, "mode": mode}, protocol_version
    )
    return build_packet(packet_id, payload, controller_id)


def build_update_mode(controller_id: int, mode: ModeData, protocol_version: int) -> bytes:
    """Build an update mode packet (packet 1101) carrying the full mode record.

    The mode is addressed by ``mode.index`` and becomes the active mode.
    """
    return _build_mode_packet(PacketId.UPDATE_MODE, controller_id, mode, protocol_version)


def build_save_mode(controller_id: int, mode: ModeData, protocol_version: int) -> bytes:
    """Build a save mode packet (packet 1102), persisting a mode to the device."""
    return _build_mode_packet(PacketId.SAVE_MODE, controller_id, mode, protocol_version)


def build_set_custom_mode(controller_id: int) -> bytes:
    """Build a set custom mode packet (packet 1100), switching to direct control."""
    return build_packet(PacketId.SET_CUSTOM_MODE, b"", controller_id)


def build_request_plugin_list() -> bytes:
    """Build a plugin list request (packet 200)."""
    return build_packet(PacketId.REQUEST_PLUGIN_LIST)


def build_plugin_specific(plugin_index: int, packet_type: int, body: bytes = b"") -> bytes:
    """Build a plugin-specific packet (packet 201).

    Args:
        plugin_index: Index of the plugin, sent in the header's device field
        packet_type: Plugin-defined packet type
        body: Plugin-defined body

    Returns:
        Complete packet bytes ready to send
    """
    payload = packet_type.to_bytes(4, byteorder="little") + body
    return build_packet(PacketId.PLUGIN_SPECIFIC, payload, plugin_index)
