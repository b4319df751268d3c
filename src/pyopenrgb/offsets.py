"""Absolute LED positions for zones and segments.

A controller's colors form one flat array. Zone *k* starts after the LEDs of
zones ``0..k-1``; a segment starts at its zone's offset plus its own
zone-relative offset. Offsets are computed from the snapshot on every call,
never cached, since zones and segments only change with a new snapshot.
"""

from __future__ import annotations

from pyopenrgb.codec import UnsupportedVersion
from pyopenrgb.data import ControllerData, SegmentData, ZoneData
from pyopenrgb.errors import CapabilityError, CommandError


def get_zone(controller: ControllerData, zone_id: int) -> ZoneData:
    """Look up a zone by id.

    Raises:
        CommandError: If there is no zone with that id
    """
    if not 0 <= zone_id < len(controller.zones):
        raise CommandError(
            f"Zone with id {zone_id} not found in controller {controller.name} "
            f"with {len(controller.zones)} zones"
        )
    return controller.zones[zone_id]


def get_segment(controller: ControllerData, zone_id: int, segment_id: int) -> SegmentData:
    """Look up a segment by zone id and segment id.

    Raises:
        CapabilityError: If segments are not supported at the negotiated protocol version
        CommandError: If the zone or segment does not exist
    """
    zone = get_zone(controller, zone_id)
    if isinstance(zone.segments, UnsupportedVersion):
        raise CapabilityError("Segments not supported in protocol version < 4")
    if not 0 <= segment_id < len(zone.segments):
        raise CommandError(f"Segment with id {segment_id} not found in zone {zone.name}")
    return zone.segments[segment_id]


def zone_offsets(controller: ControllerData) -> list[int]:
    """Return the absolute offset of every zone, in zone order."""
    offsets = []
    offset = 0
    for zone in controller.zones:
        offsets.append(offset)
        offset += zone.leds_count
    return offsets


def zone_offset(controller: ControllerData, zone_id: int) -> int:
    """Return the absolute offset of a zone in the controller's color array.

    Raises:
        CommandError: If there is no zone with that id
    """
    get_zone(controller, zone_id)
    return sum(zone.leds_count for zone in controller.zones[:zone_id])


def segment_offset(controller: ControllerData, zone_id: int, segment_id: int) -> int:
    """Return the absolute offset of a segment in the controller's color array."""
    segment = get_segment(controller, zone_id, segment_id)
    return zone_offset(controller, zone_id) + segment.offset


def resolve_led(controller: ControllerData, index: int) -> int:
    """Validate an absolute LED index.

    Raises:
        CommandError: If the index is out of bounds
    """
    if not 0 <= index < controller.num_leds:
        raise CommandError(
            f"Index {index} out of bounds for controller {controller.name} "
            f"with {controller.num_leds} LEDs"
        )
    return index


def resolve_zone_led(controller: ControllerData, zone_id: int, index: int) -> int:
    """Translate a zone-relative LED index into an absolute one.

    Raises:
        CommandError: If the zone does not exist or the index is out of bounds
    """
    zone = get_zone(controller, zone_id)
    if not 0 <= index < zone.leds_count:
        raise CommandError(
            f"Index {index} out of bounds for zone {zone.name} with {zone.leds_count} LEDs"
        )
    return zone_offset(controller, zone_id) + index


def resolve_segment_led(
    controller: ControllerData, zone_id: int, segment_id: int, index: int
) -> int:
    """Translate a segment-relative LED index into an absolute one.

    Raises:
        CapabilityError: If segments are not supported at the negotiated protocol version
        CommandError: If the zone or segment does not exist or the index is out of bounds
    """
    segment = get_segment(controller, zone_id, segment_id)
    if not 0 <= index < segment.led_count:
        raise CommandError(
            f"Index {index} out of bounds for segment {segment.name} "
            f"with {segment.led_count} LEDs"
        )
    return zone_offset(controller, zone_id) + segment.offset + index
