"""Record-level constructs - higher level protocol understanding.

This module maps the wire records of the OpenRGB SDK (controllers, modes,
zones, segments, LEDs, colors and request payloads) to construct definitions,
and adapts them to the immutable records of :mod:`pyopenrgb.data`.

Field order follows the protocol revision history; fields introduced by a later
revision are appended at the tail of their record and wrapped in
:class:`~pyopenrgb.codec.VersionGated`.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from construct import (
    Adapter,
    Array,
    Construct,
    CString,
    FixedSized,
    If,
    Int8ul,
    Int16ul,
    Int32sl,
    Int32ul,
    Padding,
    Prefixed,
    Rebuild,
    Struct,
    Terminated,
    ValidationError,
    this,
)

from pyopenrgb.codec import (
    UNSUPPORTED,
    OrgbString,
    UnsupportedVersion,
    VersionGated,
    build_versioned,
    counted,
    parse_versioned,
)
from pyopenrgb.data import (
    HAS_DIRECTION,
    Color,
    ColorMode,
    ControllerData,
    DeviceType,
    Direction,
    LedData,
    MatrixMap,
    ModeData,
    ModeFlag,
    SegmentData,
    ZoneData,
    ZoneType,
    enum_or_int,
)

# Minimum protocol versions of gated fields
VENDOR_MIN_VERSION = 1
BRIGHTNESS_MIN_VERSION = 3
SEGMENTS_MIN_VERSION = 4
CONTROLLER_FLAGS_MIN_VERSION = 5


def _or_zero(value: int | None) -> int:
    return 0 if value is None else value


# Color: r, g, b and one padding byte
ColorStruct: Construct = Struct(
    "r" / Int8ul,
    "g" / Int8ul,
    "b" / Int8ul,
    Padding(1),
)


class ColorAdapter(Adapter):  # type: ignore[misc]
    def _decode(self, obj: Any, context: Any, path: str) -> Color:
        return Color(obj.r, obj.g, obj.b)

    def _encode(self, obj: Color, context: Any, path: str) -> dict[str, int]:
        return {"r": obj.r, "g": obj.g, "b": obj.b}


ColorRecord: Construct = ColorAdapter(ColorStruct)
ColorList: Construct = counted(ColorRecord)


LedStruct: Construct = Struct(
    "name" / OrgbString,
    "value" / Int32ul,  # Device-internal flag value
)


class LedAdapter(Adapter):  # type: ignore[misc]
    def _decode(self, obj: Any, context: Any, path: str) -> LedData:
        return LedData(name=obj.name, value=obj.value)

    def _encode(self, obj: LedData, context: Any, path: str) -> dict[str, Any]:
        return {"name": obj.name, "value": obj.value}


LedRecord: Construct = LedAdapter(LedStruct)


ModeStruct: Construct = Struct(
    "name" / OrgbString,
    "value" / Int32sl,  # Device-specific mode value
    "flags" / Int32ul,
    "speed_min" / Int32ul,
    "speed_max" / Int32ul,
    "brightness_min" / VersionGated(BRIGHTNESS_MIN_VERSION, Int32ul),
    "brightness_max" / VersionGated(BRIGHTNESS_MIN_VERSION, Int32ul),
    "colors_min" / Int32ul,
    "colors_max" / Int32ul,
    "speed" / Int32ul,
    "brightness" / VersionGated(BRIGHTNESS_MIN_VERSION, Int32ul),
    "direction" / Int32ul,
    "color_mode" / Int32ul,
    "colors" / ColorList,
)


class ModeAdapter(Adapter):  # type: ignore[misc]
    """Hide speed/brightness/direction values the mode does not declare."""

    def _decode(self, obj: Any, context: Any, path: str) -> ModeData:
        flags = obj.flags
        has_speed = bool(flags & ModeFlag.HAS_SPEED)
        has_brightness = bool(flags & ModeFlag.HAS_BRIGHTNESS) and not isinstance(
            obj.brightness, UnsupportedVersion
        )
        return ModeData(
            name=obj.name,
            value=obj.value,
            flags=flags,
            speed_min=obj.speed_min if has_speed else None,
            speed_max=obj.speed_max if has_speed else None,
            brightness_min=obj.brightness_min if has_brightness else None,
            brightness_max=obj.brightness_max if has_brightness else None,
            colors_min=obj.colors_min,
            colors_max=obj.colors_max,
            speed=obj.speed if has_speed else None,
            brightness=obj.brightness if has_brightness else None,
            direction=enum_or_int(Direction, obj.direction) if flags & HAS_DIRECTION else None,
            color_mode=enum_or_int(ColorMode, obj.color_mode),
            colors=tuple(obj.colors),
        )

    def _encode(self, obj: ModeData, context: Any, path: str) -> dict[str, Any]:
        return {
            "name": obj.name,
            "value": obj.value,
            "flags": obj.flags,
            "speed_min": _or_zero(obj.speed_min),
            "speed_max": _or_zero(obj.speed_max),
            "brightness_min": _or_zero(obj.brightness_min),
            "brightness_max": _or_zero(obj.brightness_max),
            "colors_min": obj.colors_min,
            "colors_max": obj.colors_max,
            "speed": _or_zero(obj.speed),
            "brightness": _or_zero(obj.brightness),
            "direction": _or_zero(obj.direction),
            "color_mode": obj.color_mode,
            "colors": list(obj.colors),
        }


ModeRecord: Construct = ModeAdapter(ModeStruct)


SegmentStruct: Construct = Struct(
    "name" / OrgbString,
    "zone_type" / Int32sl,
    "offset" / Int32ul,  # Relative to the start of the zone
    "led_count" / Int32ul,
)


class SegmentAdapter(Adapter):  # type: ignore[misc]
    def _decode(self, obj: Any, context: Any, path: str) -> SegmentData:
        return SegmentData(
            name=obj.name,
            zone_type=enum_or_int(ZoneType, obj.zone_type),
            offset=obj.offset,
            led_count=obj.led_count,
        )

    def _encode(self, obj: SegmentData, context: Any, path: str) -> dict[str, Any]:
        return {
            "name": obj.name,
            "zone_type": obj.zone_type,
            "offset": obj.offset,
            "led_count": obj.led_count,
        }


SegmentRecord: Construct = SegmentAdapter(SegmentStruct)


# Matrix map, preceded in the zone record by its size in bytes (0 = no map)
MatrixStruct: Construct = Struct(
    "height" / Int32ul,
    "width" / Int32ul,
    "map" / Array(this.height * this.width, Int32ul),
)


def _matrix_size(ctx: Any) -> int:
    if ctx.matrix is None:
        return 0
    return 8 + 4 * len(ctx.matrix["map"])


ZoneStruct: Construct = Struct(
    "name" / OrgbString,
    "zone_type" / Int32sl,
    "leds_min" / Int32ul,
    "leds_max" / Int32ul,
    "leds_count" / Int32ul,
    "matrix_size" / Rebuild(Int16ul, _matrix_size),
    "matrix" / If(this.matrix_size > 0, FixedSized(this.matrix_size, MatrixStruct)),
    "segments" / VersionGated(SEGMENTS_MIN_VERSION, counted(SegmentRecord)),
)


class ZoneAdapter(Adapter):  # type: ignore[misc]
    """Assign segment ids and check that every segment fits in its zone."""

    def _decode(self, obj: Any, context: Any, path: str) -> ZoneData:
        segments: tuple[SegmentData, ...] | UnsupportedVersion = UNSUPPORTED
        if not isinstance(obj.segments, UnsupportedVersion):
            segments = tuple(replace(seg, id=idx) for idx, seg in enumerate(obj.segments))
            for seg in segments:
                if seg.offset + seg.led_count > obj.leds_count:
                    raise ValidationError(
                        f"Segment {seg.name!r} ({seg.offset} + {seg.led_count}) exceeds "
                        f"zone {obj.name!r} with {obj.leds_count} LEDs",
                        path=path,
                    )

        matrix = None
        if obj.matrix is not None:
            matrix = MatrixMap(
                height=obj.matrix.height, width=obj.matrix.width, map=tuple(obj.matrix.map)
            )

        return ZoneData(
            name=obj.name,
            zone_type=enum_or_int(ZoneType, obj.zone_type),
            leds_min=obj.leds_min,
            leds_max=obj.leds_max,
            leds_count=obj.leds_count,
            matrix=matrix,
            segments=segments,
        )

    def _encode(self, obj: ZoneData, context: Any, path: str) -> dict[str, Any]:
        matrix = None
        if obj.matrix is not None:
            matrix = {
                "height": obj.matrix.height,
                "width": obj.matrix.width,
                "map": list(obj.matrix.map),
            }
        segments = obj.segments
        if not isinstance(segments, UnsupportedVersion):
            segments = list(segments)
        return {
            "name": obj.name,
            "zone_type": obj.zone_type,
            "leds_min": obj.leds_min,
            "leds_max": obj.leds_max,
            "leds_count": obj.leds_count,
            "matrix": matrix,
            "segments": segments,
        }


ZoneRecord: Construct = ZoneAdapter(ZoneStruct)


# Controller record body, after its u32 byte size
ControllerBody: Construct = Struct(
    "device_type" / Int32sl,
    "name" / OrgbString,
    "vendor" / VersionGated(VENDOR_MIN_VERSION, OrgbString),
    "description" / OrgbString,
    "version" / OrgbString,
    "serial" / OrgbString,
    "location" / OrgbString,
    "num_modes" / Rebuild(Int16ul, lambda ctx: len(ctx.modes)),
    "active_mode" / Int32sl,
    "modes" / Array(this.num_modes, ModeRecord),
    "zones" / counted(ZoneRecord),
    "leds" / counted(LedRecord),
    "colors" / ColorList,
    "led_alt_names" / VersionGated(CONTROLLER_FLAGS_MIN_VERSION, counted(OrgbString)),
    "flags" / VersionGated(CONTROLLER_FLAGS_MIN_VERSION, Int32ul),
    Terminated,
)


class ControllerAdapter(Adapter):  # type: ignore[misc]
    """Assign mode indices and zone ids, and validate the active mode."""

    def _decode(self, obj: Any, context: Any, path: str) -> ControllerData:
        modes = tuple(replace(mode, index=idx) for idx, mode in enumerate(obj.modes))
        zones = tuple(replace(zone, id=idx) for idx, zone in enumerate(obj.zones))

        # Policy: an active mode outside the mode list is treated as a broken message
        if not 0 <= obj.active_mode < len(modes):
            raise ValidationError(
                f"Active mode {obj.active_mode} out of range for {len(modes)} modes",
                path=path,
            )

        led_alt_names = obj.led_alt_names
        if not isinstance(led_alt_names, UnsupportedVersion):
            led_alt_names = tuple(led_alt_names)

        return ControllerData(
            device_type=enum_or_int(DeviceType, obj.device_type),
            name=obj.name,
            vendor=obj.vendor,
            description=obj.description,
            version=obj.version,
            serial=obj.serial,
            location=obj.location,
            active_mode_index=obj.active_mode,
            modes=modes,
            zones=zones,
            leds=tuple(obj.leds),
            colors=tuple(obj.colors),
            led_alt_names=led_alt_names,
            flags=obj.flags,
            id=getattr(context._params, "controller_id", 0),
        )

    def _encode(self, obj: ControllerData, context: Any, path: str) -> dict[str, Any]:
        led_alt_names = obj.led_alt_names
        if not isinstance(led_alt_names, UnsupportedVersion):
            led_alt_names = list(led_alt_names)
        return {
            "device_type": obj.device_type,
            "name": obj.name,
            "vendor": obj.vendor,
            "description": obj.description,
            "version": obj.version,
            "serial": obj.serial,
            "location": obj.location,
            "active_mode": obj.active_mode_index,
            "modes": list(obj.modes),
            "zones": list(obj.zones),
            "leds": list(obj.leds),
            "colors": list(obj.colors),
            "led_alt_names": led_alt_names,
            "flags": obj.flags,
        }


# u32 size prefix counts its own four bytes
ControllerRecord: Construct = ControllerAdapter(
    Prefixed(Int32ul, ControllerBody, includelength=True)
)


# Request payloads

ProtocolVersionPayload: Construct = Struct(
    "version" / Int32ul,
)

ControllerCountPayload: Construct = Struct(
    "count" / Int32ul,
)

ClientNamePayload: Construct = Struct(
    "name" / CString("utf8"),
)

ResizeZonePayload: Construct = Struct(
    "zone_id" / Int32sl,
    "new_size" / Int32sl,
)

ClearSegmentsPayload: Construct = Struct(
    "zone_id" / Int32sl,
)

AddSegmentPayload: Construct = Prefixed(
    Int32ul,
    Struct(
        "zone_id" / Int32sl,
        "segment" / SegmentRecord,
    ),
    includelength=True,
)

UpdateLedsPayload: Construct = Prefixed(
    Int32ul,
    Struct(
        "colors" / ColorList,
    ),
    includelength=True,
)

UpdateZoneLedsPayload: Construct = Prefixed(
    Int32ul,
    Struct(
        "zone_id" / Int32ul,
        "colors" / ColorList,
    ),
    includelength=True,
)

UpdateSingleLedPayload: Construct = Struct(
    "led_id" / Int32sl,
    "color" / ColorRecord,
)

# Shared by UPDATE_MODE and SAVE_MODE
UpdateModePayload: Construct = Prefixed(
    Int32ul,
    Struct(
        "mode_index" / Int32sl,
        "mode" / ModeRecord,
    ),
    includelength=True,
)


def parse_controller_data(
    data: bytes, protocol_version: int, controller_id: int = 0
) -> ControllerData:
    """Parse a "controller data" response.

    Args:
        data: Response payload
        protocol_version: Negotiated protocol version
        controller_id: Index the controller was requested with

    Returns:
        Decoded controller data

    Raises:
        MalformedMessageError: If the payload is truncated, its counts or size
            prefix disagree with the bytes present, or the decoded values are
            inconsistent
    """
    return parse_versioned(  # type: ignore[no-any-return]
        ControllerRecord, data, protocol_version, controller_id=controller_id
    )


def build_controller_data(controller: ControllerData, protocol_version: int) -> bytes:
    """Encode controller data the way a server sends it.

    Args:
        controller: Controller data to encode
        protocol_version: Protocol version to encode for

    Returns:
        Response payload bytes
    """
    return build_versioned(ControllerRecord, controller, protocol_version)


def parse_mode_data(data: bytes, protocol_version: int) -> ModeData:
    """Parse a standalone mode record."""
    return parse_versioned(ModeRecord, data, protocol_version)  # type: ignore[no-any-return]


def build_mode_data(mode: ModeData, protocol_version: int) -> bytes:
    """Encode a standalone mode record."""
    return build_versioned(ModeRecord, mode, protocol_version)


def parse_zone_data(data: bytes, protocol_version: int) -> ZoneData:
    """Parse a standalone zone record."""
    return parse_versioned(ZoneRecord, data, protocol_version)  # type: ignore[no-any-return]


def build_zone_data(zone: ZoneData, protocol_version: int) -> bytes:
    """Encode a standalone zone record."""
    return build_versioned(ZoneRecord, zone, protocol_version)


def parse_u32(data: bytes) -> int:
    """Parse a response consisting of a single u32 (count or version)."""
    return parse_versioned(ControllerCountPayload, data, 0).count  # type: ignore[no-any-return]
