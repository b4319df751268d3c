"""Views over a controller snapshot: controller, zones, segments and LEDs.

A :class:`Controller` pairs one decoded :class:`~pyopenrgb.data.ControllerData`
with the transport it came from. Zones, segments and LEDs are lightweight
views holding an id and a reference to their controller; names, sizes and
offsets are read from the snapshot on every access.

Snapshots are never refreshed implicitly. After changing modes, segments or
zone sizes, call :meth:`Controller.sync_controller_data` to get a new one.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterable, Iterator

from pyopenrgb.builders import (
    build_add_segment,
    build_clear_segments,
    build_request_controller_data,
    build_resize_zone,
    build_save_mode,
    build_set_custom_mode,
    build_update_leds,
    build_update_mode,
    build_update_segment_leds,
    build_update_single_led,
    build_update_zone_leds,
)
from pyopenrgb.codec import UnsupportedVersion
from pyopenrgb.command import Command
from pyopenrgb.data import (
    BLACK,
    Color,
    ColorLike,
    ControllerData,
    DeviceType,
    LedData,
    MatrixMap,
    ModeData,
    SegmentData,
    ZoneData,
    ZoneType,
)
from pyopenrgb.errors import CapabilityError, CommandError, RangeError
from pyopenrgb.mode import ControllerMode
from pyopenrgb.offsets import get_segment, get_zone, resolve_led, zone_offset
from pyopenrgb.semantic import SEGMENTS_MIN_VERSION, parse_controller_data

if TYPE_CHECKING:
    from pyopenrgb.connection import Transport

_LOGGER = logging.getLogger(__name__)


class Controller:
    """One RGB controller and the transport used to drive it."""

    def __init__(self, data: ControllerData, transport: Transport) -> None:
        self._data = data
        self._transport = transport

    def __repr__(self) -> str:
        return f"<Controller {self.id}: {self.name!r} ({self.num_leds} LEDs)>"

    @classmethod
    async def fetch(cls, transport: Transport, controller_id: int) -> Controller:
        """Request and decode the data of one controller.

        Args:
            transport: Connected transport
            controller_id: Index of the controller

        Returns:
            A controller wrapping a fresh snapshot

        Raises:
            TransportError: If the request fails
            MalformedMessageError: If the response cannot be decoded
        """
        version = transport.protocol_version
        response = await transport.request(build_request_controller_data(controller_id, version))
        return cls(parse_controller_data(response, version, controller_id), transport)

    async def sync_controller_data(self) -> Controller:
        """Fetch a new snapshot of this controller.

        This controller and the views derived from it keep the old snapshot.
        """
        return await Controller.fetch(self._transport, self.id)

    @property
    def data(self) -> ControllerData:
        return self._data

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def protocol_version(self) -> int:
        return self._transport.protocol_version

    @property
    def id(self) -> int:
        return self._data.id

    @property
    def name(self) -> str:
        return self._data.name

    @property
    def vendor(self) -> str | UnsupportedVersion:
        return self._data.vendor

    @property
    def description(self) -> str:
        return self._data.description

    @property
    def version(self) -> str:
        return self._data.version

    @property
    def serial(self) -> str:
        return self._data.serial

    @property
    def location(self) -> str:
        return self._data.location

    @property
    def device_type(self) -> DeviceType | int:
        return self._data.device_type

    @property
    def num_leds(self) -> int:
        return self._data.num_leds

    @property
    def colors(self) -> tuple[Color, ...]:
        """Colors of all LEDs as of the snapshot."""
        return self._data.colors

    def led_data(self) -> tuple[LedData, ...]:
        return self._data.leds

    # Modes

    def modes(self) -> list[ControllerMode]:
        return [
            ControllerMode(mode, mode.index == self._data.active_mode_index)
            for mode in self._data.modes
        ]

    def active_mode(self) -> ControllerMode | None:
        mode = self._data.active_mode()
        return None if mode is None else ControllerMode(mode, True)

    def get_mode(self, index: int) -> ControllerMode:
        """Return the mode with the given index.

        Raises:
            CommandError: If there is no such mode
        """
        if not 0 <= index < len(self._data.modes):
            raise CommandError(f"Mode with index {index} not found in controller {self.name}")
        return ControllerMode(self._data.modes[index], index == self._data.active_mode_index)

    def get_mode_by_name(self, name: str) -> ControllerMode | None:
        """Return the first mode with the given name (case-insensitive), if any."""
        for mode in self.modes():
            if mode.name.lower() == name.lower():
                return mode
        return None

    def _check_mode(self, mode: ModeData) -> None:
        if not 0 <= mode.index < len(self._data.modes):
            raise CommandError(f"Mode with index {mode.index} not found in controller {self.name}")

    async def set_mode(self, mode: ModeData) -> None:
        """Send a full mode record, making it the active mode.

        Raises:
            CommandError: If the mode index does not belong to this controller
        """
        self._check_mode(mode)
        await self._transport.send(build_update_mode(self.id, mode, self.protocol_version))

    async def save_mode(self, mode: ModeData) -> None:
        """Send a full mode record and persist it on the device.

        Raises:
            CommandError: If the mode index does not belong to this controller
        """
        self._check_mode(mode)
        await self._transport.send(build_save_mode(self.id, mode, self.protocol_version))

    async def set_custom_mode(self) -> None:
        """Switch the controller to its direct (software controlled) mode."""
        await self._transport.send(build_set_custom_mode(self.id))

    # Zones and LEDs

    @property
    def num_zones(self) -> int:
        return len(self._data.zones)

    def get_zone(self, zone_id: int) -> Zone:
        """Return the zone with the given id.

        Raises:
            CommandError: If there is no such zone
        """
        get_zone(self._data, zone_id)
        return Zone(self, zone_id)

    def zone_iter(self) -> Iterator[Zone]:
        for zone in self._data.zones:
            yield Zone(self, zone.id)

    def get_zone_led_offset(self, zone_id: int) -> int:
        """Return the absolute offset of a zone in the color array."""
        return zone_offset(self._data, zone_id)

    def get_led(self, led_id: int) -> Led:
        """Return the LED with the given absolute index.

        Raises:
            CommandError: If the index is out of bounds
        """
        return Led(self, resolve_led(self._data, led_id))

    def led_iter(self) -> Iterator[Led]:
        for led_id in range(self.num_leds):
            yield Led(self, led_id)

    # Commands

    def cmd(self) -> Command:
        """Create an empty command for this controller.

        The command must be executed by calling ``.execute()``.
        """
        return Command(self)

    def led_colors(self, led_clr: Callable[[Led], ColorLike]) -> Iterator[tuple[int, ColorLike]]:
        """Lazily map every LED to an ``(index, color)`` pair."""
        return ((led.id, led_clr(led)) for led in self.led_iter())

    def cmd_with_leds(self, led_clr: Callable[[Led], ColorLike]) -> Command:
        """Create a command with the color of every LED given by ``led_clr``."""
        return self.cmd().set_leds_from(self.led_colors(led_clr))

    async def set_led(self, led_id: int, color: ColorLike) -> None:
        """Set a single LED, leaving the others unchanged.

        Raises:
            CommandError: If the index is out of bounds
        """
        idx = resolve_led(self._data, led_id)
        await self._transport.send(build_update_single_led(self.id, idx, Color.coerce(color)))

    async def set_leds(self, colors: Iterable[ColorLike]) -> None:
        """Set the LEDs of the controller, black for LEDs past the given colors.

        Raises:
            CommandError: If more colors than LEDs are given
        """
        await self.cmd().set_leds(colors).execute()

    async def set_all_leds(self, color: ColorLike) -> None:
        color = Color.coerce(color)
        await self._transport.send(build_update_leds(self.id, [color] * self.num_leds))

    async def set_zone_leds(self, zone_id: int, colors: Iterable[ColorLike]) -> None:
        """Set all LEDs of a zone; exactly one color per zone LED is expected.

        Raises:
            CommandError: If the zone does not exist or the color count is wrong
        """
        zone = get_zone(self._data, zone_id)
        color_v = [Color.coerce(color) for color in colors]
        if len(color_v) != zone.leds_count:
            raise CommandError(
                f"{len(color_v)} colors given for zone {zone.name} with {zone.leds_count} LEDs"
            )
        await self._transport.send(build_update_zone_leds(self.id, zone_id, color_v))

    async def clear_segments(self) -> None:
        """Remove the segments of every zone of this controller.

        Raises:
            CapabilityError: If segments are not supported at the negotiated protocol version
        """
        for zone in self.zone_iter():
            await zone.clear_segments()


class Zone:
    """A zone of a controller: a named, contiguous run of LEDs."""

    def __init__(self, controller: Controller, zone_id: int) -> None:
        self._controller = controller
        self._zone_id = zone_id

    def __repr__(self) -> str:
        return f"<Zone {self.id}: {self.name!r} ({self.num_leds} LEDs)>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Zone):
            return NotImplemented
        return self._controller is other._controller and self._zone_id == other._zone_id

    def __hash__(self) -> int:
        return hash((id(self._controller), self._zone_id))

    @property
    def data(self) -> ZoneData:
        return self._controller.data.zones[self._zone_id]

    @property
    def controller(self) -> Controller:
        return self._controller

    @property
    def controller_id(self) -> int:
        return self._controller.id

    @property
    def id(self) -> int:
        return self._zone_id

    @property
    def name(self) -> str:
        return self.data.name

    @property
    def zone_type(self) -> ZoneType | int:
        return self.data.zone_type

    @property
    def leds_min(self) -> int:
        return self.data.leds_min

    @property
    def leds_max(self) -> int:
        return self.data.leds_max

    @property
    def num_leds(self) -> int:
        return self.data.leds_count

    @property
    def is_resizable(self) -> bool:
        return self.data.is_resizable

    @property
    def matrix(self) -> MatrixMap | None:
        return self.data.matrix

    @property
    def offset(self) -> int:
        """Offset of this zone in the controller's color array."""
        return zone_offset(self._controller.data, self._zone_id)

    def led_iter(self) -> Iterator[Led]:
        offset = self.offset
        for idx in range(self.num_leds):
            yield Led(self._controller, offset + idx)

    def segment_data(self) -> tuple[SegmentData, ...] | UnsupportedVersion:
        return self.data.segments

    def get_segment(self, segment_id: int) -> Segment:
        """Return the segment with the given id.

        Raises:
            CapabilityError: If segments are not supported at the negotiated protocol version
            CommandError: If there is no such segment
        """
        get_segment(self._controller.data, self._zone_id, segment_id)
        return Segment(self, segment_id)

    def segment_iter(self) -> Iterator[Segment]:
        """Iterate over the segments; empty when segments are unsupported."""
        segments = self.data.segments
        if isinstance(segments, UnsupportedVersion):
            return
        for segment in segments:
            yield Segment(self, segment.id)

    def cmd(self) -> Command:
        """Create a new command for the controller of this zone."""
        return self._controller.cmd()

    def cmd_with_leds(self, led_clr: Callable[[Led], ColorLike]) -> Command:
        """Create a command setting each LED of this zone to ``led_clr(led)``."""
        return self.cmd().set_leds_from((led.id, led_clr(led)) for led in self.led_iter())

    def cmd_with_set_leds(self, colors: Iterable[ColorLike]) -> Command:
        """Create a command setting the LEDs of this zone to ``colors``."""
        return self.cmd().set_zone_leds(self._zone_id, colors)

    async def set_led(self, idx: int, color: ColorLike) -> None:
        """Set a single LED of this zone.

        Raises:
            CommandError: If the index is out of bounds for this zone
        """
        if not 0 <= idx < self.num_leds:
            raise CommandError(
                f"Index {idx} out of bounds for zone {self.name} with {self.num_leds} LEDs"
            )
        await self._controller.set_led(self.offset + idx, color)

    async def set_leds(self, colors: Iterable[ColorLike]) -> None:
        """Set the LEDs of this zone, black for LEDs past the given colors.

        Extra colors beyond the zone's size are dropped with a warning.
        """
        color_v = [Color.coerce(color) for color in colors]
        if len(color_v) > self.num_leds:
            _LOGGER.warning(
                "Zone %s for controller %s was given %d colors, while its length is %d",
                self.name,
                self._controller.name,
                len(color_v),
                self.num_leds,
            )
            del color_v[self.num_leds :]
        else:
            color_v.extend([BLACK] * (self.num_leds - len(color_v)))
        await self._controller.set_zone_leds(self._zone_id, color_v)

    async def set_all_leds(self, color: ColorLike) -> None:
        await self.set_leds([Color.coerce(color)] * self.num_leds)

    def _check_segments_supported(self) -> None:
        if self._controller.protocol_version < SEGMENTS_MIN_VERSION:
            raise CapabilityError("Segments not supported in protocol version < 4")

    async def add_segment(self, name: str, offset: int, led_count: int) -> None:
        """Add a segment to this zone.

        Resync the controller data to see the new segment.

        Raises:
            CapabilityError: If segments are not supported at the negotiated protocol version
            CommandError: If the segment does not fit in the zone
        """
        self._check_segments_supported()
        if offset < 0 or led_count < 1 or offset + led_count > self.num_leds:
            raise CommandError(
                f"Segment start index {offset} + count {led_count} "
                f"exceeds zone LED count {self.num_leds}"
            )
        segment = SegmentData(
            name=name, zone_type=ZoneType.LINEAR, offset=offset, led_count=led_count
        )
        await self._controller.transport.send(
            build_add_segment(
                self.controller_id, self._zone_id, segment, self._controller.protocol_version
            )
        )

    async def clear_segments(self) -> None:
        """Remove all segments of this zone.

        Resync the controller data to see the change.
        """
        self._check_segments_supported()
        await self._controller.transport.send(build_clear_segments(self.controller_id, self._zone_id))

    async def resize(self, new_size: int) -> None:
        """Resize this zone.

        Resync the controller data to see the new size.

        Raises:
            CapabilityError: If the zone is not resizable
            RangeError: If the size is outside the zone's bounds
        """
        if not self.is_resizable:
            raise CapabilityError(f"Zone {self.name} is not resizable")
        if not self.leds_min <= new_size <= self.leds_max:
            raise RangeError("Zone size", self.leds_min, self.leds_max, new_size)
        await self._controller.transport.send(
            build_resize_zone(self.controller_id, self._zone_id, new_size)
        )


class Segment:
    """A segment of a zone, containing a sub-range of its LEDs."""

    def __init__(self, zone: Zone, segment_id: int) -> None:
        self._zone = zone
        self._segment_id = segment_id

    def __repr__(self) -> str:
        return f"<Segment {self.zone_id}.{self.id}: {self.name!r} ({self.num_leds} LEDs)>"

    @property
    def data(self) -> SegmentData:
        return get_segment(self._zone.controller.data, self._zone.id, self._segment_id)

    @property
    def zone(self) -> Zone:
        return self._zone

    @property
    def id(self) -> int:
        return self._segment_id

    @property
    def zone_id(self) -> int:
        return self._zone.id

    @property
    def controller_id(self) -> int:
        return self._zone.controller_id

    @property
    def name(self) -> str:
        return self.data.name

    @property
    def num_leds(self) -> int:
        return self.data.led_count

    @property
    def offset(self) -> int:
        """Offset of this segment within its zone.

        ``zone.led_iter()`` items ``offset .. offset + num_leds`` belong to this segment.
        """
        return self.data.offset

    @property
    def absolute_offset(self) -> int:
        """Offset of this segment in the controller's color array."""
        return self._zone.offset + self.offset

    def led_iter(self) -> Iterator[Led]:
        offset = self.absolute_offset
        for idx in range(self.num_leds):
            yield Led(self._zone.controller, offset + idx)

    def cmd(self) -> Command:
        """Create a new command for the controller of this segment's zone."""
        return self._zone.cmd()

    def cmd_with_set_leds(self, colors: Iterable[ColorLike]) -> Command:
        """Create a command setting the LEDs of this segment to ``colors``."""
        return self.cmd().set_segment_leds(self.zone_id, self._segment_id, colors)

    async def set_led(self, idx: int, color: ColorLike) -> None:
        """Set a single LED of this segment.

        Raises:
            CommandError: If the index is out of bounds for this segment
        """
        if not 0 <= idx < self.num_leds:
            raise CommandError(
                f"Index {idx} out of bounds for segment {self.name} with {self.num_leds} LEDs"
            )
        await self._zone.set_led(self.offset + idx, color)

    async def set_leds(self, colors: Iterable[ColorLike]) -> None:
        """Set the LEDs of this segment.

        Limitation: every other LED of the zone is set to black.

        Raises:
            CommandError: If more colors than LEDs are given
        """
        color_v = [Color.coerce(color) for color in colors]
        if len(color_v) > self.num_leds:
            raise CommandError(
                f"{len(color_v)} colors given for segment {self.name} with {self.num_leds} LEDs"
            )
        controller = self._zone.controller
        await controller.transport.send(
            build_update_segment_leds(controller.id, self._zone.data, self.data, color_v)
        )

    async def set_all_leds(self, color: ColorLike) -> None:
        """Set all LEDs of this segment to one color; the rest of the zone turns black."""
        await self.set_leds([Color.coerce(color)] * self.num_leds)


class Led:
    """A single LED of a controller."""

    def __init__(self, controller: Controller, led_id: int) -> None:
        self._controller = controller
        self._led_id = led_id

    def __repr__(self) -> str:
        return f"<Led {self.id}: {self.name!r} {self.color}>"

    @property
    def id(self) -> int:
        """Index of this LED in the controller's color array."""
        return self._led_id

    @property
    def name(self) -> str | None:
        """Name of this LED, e.g. the key name on keyboards.

        Some controllers report fewer LED names than LEDs.
        """
        leds = self._controller.data.leds
        return leds[self._led_id].name if self._led_id < len(leds) else None

    @property
    def alt_name(self) -> str | None:
        names = self._controller.data.led_alt_names
        if isinstance(names, UnsupportedVersion) or self._led_id >= len(names):
            return None
        return names[self._led_id]

    @property
    def color(self) -> Color | None:
        """Color of this LED as of the snapshot, if the snapshot holds one."""
        colors = self._controller.data.colors
        return colors[self._led_id] if self._led_id < len(colors) else None

    def cmd_with_color(self, color: ColorLike) -> Command:
        """Create a command setting this LED to ``color``."""
        return self._controller.cmd().set_led(self._led_id, color)

    async def set_led(self, color: ColorLike) -> None:
        """Set this LED to ``color``.

        Prefer a command (see :meth:`Controller.cmd`) for many successive writes.
        """
        await self._controller.set_led(self._led_id, color)
