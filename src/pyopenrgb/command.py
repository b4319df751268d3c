"""Batched LED color updates.

A :class:`Command` collects color assignments for one controller without any
network I/O. Every assignment is resolved to an absolute LED index and checked
against the controller snapshot when it is made; a rejected assignment leaves
the batch exactly as it was. :meth:`Command.execute` then sends the whole batch
as a single full-width update.

Limitation: the protocol only accepts a color for every LED of the
controller. LEDs that were not given a color in the batch are set to black,
including the other LEDs of a zone or segment that was only partially written.
Include the snapshot's current colors in the batch to keep them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from pyopenrgb.builders import build_update_leds
from pyopenrgb.data import BLACK, Color, ColorLike, ControllerData
from pyopenrgb.errors import CommandError
from pyopenrgb.offsets import (
    get_segment,
    get_zone,
    resolve_led,
    resolve_segment_led,
    resolve_zone_led,
    segment_offset,
    zone_offset,
)

if TYPE_CHECKING:
    from pyopenrgb.controller import Controller

_LOGGER = logging.getLogger(__name__)


class Command:
    """A batch of LED colors for one controller, sent in one request."""

    def __init__(self, controller: Controller) -> None:
        """Create an empty batch for a controller.

        Args:
            controller: Controller whose current snapshot validates the batch

        Raises:
            CommandError: If the snapshot's color array does not match its LED count
        """
        data = controller.data
        if len(data.colors) != data.num_leds:
            raise CommandError(
                f"Controller {data.name} reports {len(data.colors)} colors "
                f"for {data.num_leds} LEDs"
            )
        self._controller = controller
        self._colors: dict[int, Color] = {}
        self._executed = False

    @property
    def data(self) -> ControllerData:
        return self._controller.data

    @property
    def executed(self) -> bool:
        return self._executed

    def __len__(self) -> int:
        return len(self._colors)

    def pending(self) -> dict[int, Color]:
        """Return a copy of the explicitly set colors, keyed by absolute LED index."""
        return dict(self._colors)

    def _update(self, colors: dict[int, Color]) -> Command:
        if self._executed:
            raise CommandError("Command was already executed")
        self._colors.update(colors)
        return self

    def set_led(self, index: int, color: ColorLike) -> Command:
        """Set one LED by its absolute index.

        Raises:
            CommandError: If the index is out of bounds
        """
        idx = resolve_led(self.data, index)
        return self._update({idx: Color.coerce(color)})

    def set_leds(self, colors: Iterable[ColorLike]) -> Command:
        """Replace the whole batch with colors for LEDs ``0..len(colors)-1``.

        Raises:
            CommandError: If more colors than LEDs are given
        """
        color_v = [Color.coerce(color) for color in colors]
        if len(color_v) > self.data.num_leds:
            raise CommandError(
                f"{len(color_v)} colors given for controller {self.data.name} "
                f"with {self.data.num_leds} LEDs"
            )
        if self._executed:
            raise CommandError("Command was already executed")
        self._colors = dict(enumerate(color_v))
        return self

    def set_leds_from(self, colors: Iterable[tuple[int, ColorLike]]) -> Command:
        """Set several LEDs from ``(absolute index, color)`` pairs.

        Nothing is set if any of the pairs is rejected.

        Raises:
            CommandError: If an index is out of bounds
        """
        resolved = {}
        for index, color in colors:
            resolved[resolve_led(self.data, index)] = Color.coerce(color)
        return self._update(resolved)

    def set_zone_led(self, zone_id: int, index: int, color: ColorLike) -> Command:
        """Set one LED by its index within a zone.

        Raises:
            CommandError: If the zone does not exist or the index is out of bounds
        """
        idx = resolve_zone_led(self.data, zone_id, index)
        return self._update({idx: Color.coerce(color)})

    def set_zone_leds(self, zone_id: int, colors: Iterable[ColorLike]) -> Command:
        """Set the first ``len(colors)`` LEDs of a zone.

        Raises:
            CommandError: If the zone does not exist or more colors than LEDs are given
        """
        zone = get_zone(self.data, zone_id)
        color_v = [Color.coerce(color) for color in colors]
        if len(color_v) > zone.leds_count:
            raise CommandError(
                f"{len(color_v)} colors given for zone {zone.name} with {zone.leds_count} LEDs"
            )
        offset = zone_offset(self.data, zone_id)
        return self._update({offset + idx: color for idx, color in enumerate(color_v)})

    def set_segment_led(
        self, zone_id: int, segment_id: int, index: int, color: ColorLike
    ) -> Command:
        """Set one LED by its index within a segment.

        Raises:
            CapabilityError: If segments are not supported at the negotiated protocol version
            CommandError: If the zone or segment does not exist or the index is out of bounds
        """
        idx = resolve_segment_led(self.data, zone_id, segment_id, index)
        return self._update({idx: Color.coerce(color)})

    def set_segment_leds(
        self, zone_id: int, segment_id: int, colors: Iterable[ColorLike]
    ) -> Command:
        """Set the first ``len(colors)`` LEDs of a segment.

        Raises:
            CapabilityError: If segments are not supported at the negotiated protocol version
            CommandError: If the zone or segment does not exist or more colors than LEDs are given
        """
        segment = get_segment(self.data, zone_id, segment_id)
        color_v = [Color.coerce(color) for color in colors]
        if len(color_v) > segment.led_count:
            raise CommandError(
                f"{len(color_v)} colors given for segment {segment.name} "
                f"with {segment.led_count} LEDs"
            )
        offset = segment_offset(self.data, zone_id, segment_id)
        return self._update({offset + idx: color for idx, color in enumerate(color_v)})

    def colors(self) -> list[Color]:
        """Materialize the full color array, black where nothing was set."""
        color_v = [BLACK] * self.data.num_leds
        for idx, color in self._colors.items():
            color_v[idx] = color
        return color_v

    async def execute(self) -> None:
        """Send the batch as one full-width LED update.

        Raises:
            CommandError: If the command was already executed
            TransportError: If sending fails
        """
        if self._executed:
            raise CommandError("Command was already executed")
        packet = build_update_leds(self.data.id, self.colors())
        _LOGGER.debug(
            "Controller %d: sending %d of %d LED colors",
            self.data.id,
            len(self._colors),
            self.data.num_leds,
        )
        await self._controller.transport.send(packet)
        self._executed = True
