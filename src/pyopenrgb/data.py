"""Device data model: controllers, modes, zones, segments, LEDs and colors.

These are the decoded, immutable records of one "controller data" response.
Identifiers that are not sent on the wire (mode index, zone id, segment id)
are assigned by position when the response is decoded.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Iterator, Union

import webcolors

from pyopenrgb.codec import UNSUPPORTED, UnsupportedVersion


class DeviceType(IntEnum):
    """Controller device type."""

    MOTHERBOARD = 0
    DRAM = 1
    GPU = 2
    COOLER = 3
    LEDSTRIP = 4
    KEYBOARD = 5
    MOUSE = 6
    MOUSEMAT = 7
    HEADSET = 8
    HEADSET_STAND = 9
    GAMEPAD = 10
    LIGHT = 11
    SPEAKER = 12
    VIRTUAL = 13
    STORAGE = 14
    CASE = 15
    MICROPHONE = 16
    ACCESSORY = 17
    KEYPAD = 18
    UNKNOWN = 19


class ZoneType(IntEnum):
    """Layout of the LEDs in a zone."""

    SINGLE = 0
    LINEAR = 1
    MATRIX = 2


class Direction(IntEnum):
    """Direction of a mode's effect."""

    LEFT = 0
    RIGHT = 1
    UP = 2
    DOWN = 3
    HORIZONTAL = 4
    VERTICAL = 5


class ColorMode(IntEnum):
    """How a mode takes its colors."""

    NONE = 0
    PER_LED = 1
    MODE_SPECIFIC = 2
    RANDOM = 3


class ModeFlag(IntFlag):
    """Named bits of a mode's capability flags.

    Flags are stored as plain integers on :class:`ModeData` so that bits
    unknown to this library survive a decode/encode round trip.
    """

    HAS_SPEED = 1 << 0
    HAS_DIRECTION_LR = 1 << 1
    HAS_DIRECTION_UD = 1 << 2
    HAS_DIRECTION_HV = 1 << 3
    HAS_BRIGHTNESS = 1 << 4
    HAS_PER_LED_COLOR = 1 << 5
    HAS_MODE_SPECIFIC_COLOR = 1 << 6
    HAS_RANDOM_COLOR = 1 << 7
    MANUAL_SAVE = 1 << 8
    AUTOMATIC_SAVE = 1 << 9


HAS_DIRECTION = ModeFlag.HAS_DIRECTION_LR | ModeFlag.HAS_DIRECTION_UD | ModeFlag.HAS_DIRECTION_HV


class ControllerFlag(IntFlag):
    """Named bits of a controller's flags (protocol version 5 and later)."""

    IS_LOCAL = 1 << 0
    IS_REMOTE = 1 << 1
    IS_VIRTUAL = 1 << 2
    RESET_BEFORE_UPDATE = 1 << 8


def enum_or_int(enum_type: type[IntEnum], value: int) -> IntEnum | int:
    """Map a raw value onto an enum, keeping unknown values as plain ints."""
    try:
        return enum_type(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class Color:
    """An RGB color."""

    r: int = 0
    g: int = 0
    b: int = 0

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"Color channels must be 0-255, got {self.to_tuple()}")

    @classmethod
    def from_hex(cls, value: str) -> Color:
        """Create a color from a hex string such as ``"#ff8800"`` or ``"#f80"``."""
        rgb = webcolors.hex_to_rgb(webcolors.normalize_hex(value))
        return cls(rgb.red, rgb.green, rgb.blue)

    @classmethod
    def from_name(cls, name: str) -> Color:
        """Create a color from a CSS color name such as ``"orange"``."""
        rgb = webcolors.name_to_rgb(name)
        return cls(rgb.red, rgb.green, rgb.blue)

    @classmethod
    def coerce(cls, value: ColorLike) -> Color:
        """Convert a color, an ``(r, g, b)`` tuple, a hex string or a color name."""
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            if value.startswith("#"):
                return cls.from_hex(value)
            return cls.from_name(value)
        r, g, b = value
        return cls(r, g, b)

    def to_tuple(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def to_hex(self) -> str:
        return webcolors.rgb_to_hex(self.to_tuple())


ColorLike = Union[Color, tuple[int, int, int], str]

BLACK = Color(0, 0, 0)


@dataclass(frozen=True)
class LedData:
    """A single LED as reported by the controller.

    ``value`` is a device-internal flag value with no meaning to clients.
    """

    name: str
    value: int = 0


@dataclass(frozen=True)
class ModeData:
    """A mode of a controller.

    Speed, brightness and direction are ``None`` unless the corresponding
    capability flag is set. Brightness is also ``None`` when the negotiated
    protocol version predates it.
    """

    name: str
    value: int
    flags: int
    speed_min: int | None = None
    speed_max: int | None = None
    brightness_min: int | None = None
    brightness_max: int | None = None
    colors_min: int = 0
    colors_max: int = 0
    speed: int | None = None
    brightness: int | None = None
    direction: Direction | int | None = None
    color_mode: ColorMode | int = ColorMode.NONE
    colors: tuple[Color, ...] = ()
    index: int = 0

    def has_flag(self, flag: ModeFlag) -> bool:
        return bool(self.flags & flag)

    @property
    def has_speed(self) -> bool:
        return self.has_flag(ModeFlag.HAS_SPEED)

    @property
    def has_brightness(self) -> bool:
        return self.has_flag(ModeFlag.HAS_BRIGHTNESS)

    @property
    def has_direction(self) -> bool:
        return bool(self.flags & HAS_DIRECTION)

    @property
    def has_per_led_color(self) -> bool:
        return self.has_flag(ModeFlag.HAS_PER_LED_COLOR)

    @property
    def has_mode_specific_color(self) -> bool:
        return self.has_flag(ModeFlag.HAS_MODE_SPECIFIC_COLOR)

    @property
    def has_random_color(self) -> bool:
        return self.has_flag(ModeFlag.HAS_RANDOM_COLOR)

    @property
    def manual_save(self) -> bool:
        return self.has_flag(ModeFlag.MANUAL_SAVE)

    @property
    def automatic_save(self) -> bool:
        return self.has_flag(ModeFlag.AUTOMATIC_SAVE)


@dataclass(frozen=True)
class SegmentData:
    """A user-defined sub-range of a zone (protocol version 4 and later).

    ``offset`` is relative to the start of the owning zone.
    """

    name: str
    zone_type: ZoneType | int
    offset: int
    led_count: int
    id: int = 0


NO_LED = 0xFFFFFFFF


@dataclass(frozen=True)
class MatrixMap:
    """Row-major 2-D map from matrix positions to LED indices within a zone."""

    height: int
    width: int
    map: tuple[int, ...]

    def get(self, row: int, col: int) -> int | None:
        """Return the zone-relative LED index at a position, or None if no LED is there.

        Raises:
            IndexError: If the position is outside the matrix
        """
        if not (0 <= row < self.height and 0 <= col < self.width):
            raise IndexError(f"Position ({row}, {col}) outside {self.height}x{self.width} matrix")
        value = self.map[row * self.width + col]
        return None if value == NO_LED else value

    def rows(self) -> Iterator[tuple[int, ...]]:
        for row in range(self.height):
            yield self.map[row * self.width : (row + 1) * self.width]


@dataclass(frozen=True)
class ZoneData:
    """A named, contiguous run of LEDs within a controller."""

    name: str
    zone_type: ZoneType | int
    leds_min: int
    leds_max: int
    leds_count: int
    matrix: MatrixMap | None = None
    segments: tuple[SegmentData, ...] | UnsupportedVersion = UNSUPPORTED
    id: int = 0

    @property
    def is_resizable(self) -> bool:
        return self.leds_min != self.leds_max


@dataclass(frozen=True)
class ControllerData:
    """Full decoded state of one controller.

    ``id`` is the controller index the data was requested with; it is not part
    of the response itself.
    """

    device_type: DeviceType | int
    name: str
    vendor: str | UnsupportedVersion
    description: str
    version: str
    serial: str
    location: str
    active_mode_index: int
    modes: tuple[ModeData, ...]
    zones: tuple[ZoneData, ...]
    leds: tuple[LedData, ...]
    colors: tuple[Color, ...]
    led_alt_names: tuple[str, ...] | UnsupportedVersion = UNSUPPORTED
    flags: int | UnsupportedVersion = UNSUPPORTED
    id: int = 0

    @property
    def num_leds(self) -> int:
        """Number of LEDs, summed over the zones.

        Zone sizes are authoritative; the LED name list may be shorter.
        """
        return sum(zone.leds_count for zone in self.zones)

    def active_mode(self) -> ModeData | None:
        """Return the currently active mode."""
        if 0 <= self.active_mode_index < len(self.modes):
            return self.modes[self.active_mode_index]
        return None

    def has_flag(self, flag: ControllerFlag) -> bool:
        """Whether a controller flag is set; False when flags are unsupported."""
        if isinstance(self.flags, UnsupportedVersion):
            return False
        return bool(self.flags & flag)

    @property
    def is_local(self) -> bool:
        return self.has_flag(ControllerFlag.IS_LOCAL)

    @property
    def is_remote(self) -> bool:
        return self.has_flag(ControllerFlag.IS_REMOTE)

    @property
    def is_virtual(self) -> bool:
        return self.has_flag(ControllerFlag.IS_VIRTUAL)

    @property
    def reset_before_update(self) -> bool:
        return self.has_flag(ControllerFlag.RESET_BEFORE_UPDATE)
