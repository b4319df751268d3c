"""Controller modes and validated mode changes.

:class:`ControllerModeBuilder` works on a private copy of a mode. Every setter
checks the mode's capability flags and the bounds reported by the device
before changing anything, so a rejected call leaves the copy untouched.
Nothing is sent until :meth:`ControllerModeBuilder.execute`, and the
controller snapshot is not refreshed by it.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from pyopenrgb.data import Color, ColorLike, ColorMode, Direction, ModeData, ModeFlag
from pyopenrgb.errors import CapabilityError, CommandError, RangeError

if TYPE_CHECKING:
    from pyopenrgb.controller import Controller

_LOGGER = logging.getLogger(__name__)


class ModeKind(Enum):
    """Kinds of modes. ``DIRECT`` is usually the mode you want for per-LED control."""

    DIRECT = "direct"
    STATIC = "static"
    CUSTOM = "custom"

    @classmethod
    def from_name(cls, name: str) -> ModeKind:
        lowered = name.lower()
        if lowered == "direct":
            return cls.DIRECT
        if lowered == "static":
            return cls.STATIC
        return cls.CUSTOM


class ControllerMode:
    """A mode of a controller, as found in the controller snapshot."""

    def __init__(self, data: ModeData, is_active: bool) -> None:
        self._data = data
        self._is_active = is_active

    def __repr__(self) -> str:
        return f"<ControllerMode {self.index}: {self.name!r}{' (active)' if self.is_active else ''}>"

    @property
    def data(self) -> ModeData:
        return self._data

    @property
    def kind(self) -> ModeKind:
        return ModeKind.from_name(self._data.name)

    @property
    def is_active(self) -> bool:
        """Whether this mode was active when the snapshot was taken."""
        return self._is_active

    @property
    def name(self) -> str:
        return self._data.name

    @property
    def index(self) -> int:
        return self._data.index

    @property
    def flags(self) -> int:
        return self._data.flags

    @property
    def speed(self) -> int | None:
        return self._data.speed

    @property
    def speed_min(self) -> int | None:
        return self._data.speed_min

    @property
    def speed_max(self) -> int | None:
        return self._data.speed_max

    @property
    def brightness(self) -> int | None:
        return self._data.brightness

    @property
    def brightness_min(self) -> int | None:
        return self._data.brightness_min

    @property
    def brightness_max(self) -> int | None:
        return self._data.brightness_max

    @property
    def direction(self) -> Direction | int | None:
        return self._data.direction

    @property
    def color_mode(self) -> ColorMode | int:
        return self._data.color_mode

    @property
    def colors(self) -> tuple[Color, ...]:
        return self._data.colors

    def builder(self) -> ControllerModeBuilder:
        """Create a builder to configure this mode and apply it to the controller."""
        return ControllerModeBuilder(self._data)


class BuilderState(Enum):
    BUILT = "built"
    EXECUTED = "executed"


class ControllerModeBuilder:
    """Configure a mode, then call :meth:`execute` to apply the changes.

    Setters return the builder so calls can be chained::

        builder = mode.builder().set_max_speed().set_direction(Direction.LEFT)
        await builder.execute(controller)
    """

    def __init__(self, data: ModeData) -> None:
        self._data = data
        self.state = BuilderState.BUILT

    @property
    def data(self) -> ModeData:
        """The mode record as it will be sent."""
        return self._data

    def _check_built(self) -> None:
        if self.state is BuilderState.EXECUTED:
            raise CommandError("Mode was already executed")

    def _check_ranged(
        self,
        name: str,
        flag: ModeFlag,
        minimum: int | None,
        maximum: int | None,
        value: int,
    ) -> None:
        self._check_built()
        if not self._data.has_flag(flag) or minimum is None or maximum is None:
            raise CapabilityError(f"Mode does not support {name.lower()}")
        # Some devices report inverted ranges (min > max), e.g. for speed
        low, high = sorted((minimum, maximum))
        if not low <= value <= high:
            raise RangeError(name, low, high, value)

    def set_speed(self, speed: int) -> ControllerModeBuilder:
        """Set the speed of this mode.

        Raises:
            CapabilityError: If this mode does not support speed
            RangeError: If the speed is outside the device's bounds
        """
        self._check_ranged(
            "Speed", ModeFlag.HAS_SPEED, self._data.speed_min, self._data.speed_max, speed
        )
        self._data = replace(self._data, speed=speed)
        return self

    def set_min_speed(self) -> ControllerModeBuilder:
        """Set the speed of this mode to its minimum speed."""
        if self._data.speed_min is None:
            raise CapabilityError("Mode does not support speed")
        return self.set_speed(self._data.speed_min)

    def set_max_speed(self) -> ControllerModeBuilder:
        """Set the speed of this mode to its maximum speed."""
        if self._data.speed_max is None:
            raise CapabilityError("Mode does not support speed")
        return self.set_speed(self._data.speed_max)

    def set_brightness(self, brightness: int) -> ControllerModeBuilder:
        """Set the brightness of this mode.

        Raises:
            CapabilityError: If this mode does not support brightness
            RangeError: If the brightness is outside the device's bounds
        """
        self._check_ranged(
            "Brightness",
            ModeFlag.HAS_BRIGHTNESS,
            self._data.brightness_min,
            self._data.brightness_max,
            brightness,
        )
        self._data = replace(self._data, brightness=brightness)
        return self

    def set_min_brightness(self) -> ControllerModeBuilder:
        """Set the brightness of this mode to its minimum brightness."""
        if self._data.brightness_min is None:
            raise CapabilityError("Mode does not support brightness")
        return self.set_brightness(self._data.brightness_min)

    def set_max_brightness(self) -> ControllerModeBuilder:
        """Set the brightness of this mode to its maximum brightness."""
        if self._data.brightness_max is None:
            raise CapabilityError("Mode does not support brightness")
        return self.set_brightness(self._data.brightness_max)

    def set_direction(self, direction: Direction) -> ControllerModeBuilder:
        """Set the direction of this mode.

        Raises:
            CapabilityError: If this mode does not support a direction
        """
        self._check_built()
        if not self._data.has_direction:
            raise CapabilityError("Mode does not support direction")
        self._data = replace(self._data, direction=direction)
        return self

    def set_colors(self, colors: Iterable[ColorLike]) -> ControllerModeBuilder:
        """Set the mode-specific colors of this mode.

        Raises:
            CapabilityError: If this mode does not take mode-specific colors
            RangeError: If the number of colors is outside the device's bounds
        """
        self._check_built()
        if not self._data.has_mode_specific_color:
            raise CapabilityError("Mode does not support mode specific colors")
        color_v = tuple(Color.coerce(color) for color in colors)
        if not self._data.colors_min <= len(color_v) <= self._data.colors_max:
            raise RangeError(
                "Number of colors", self._data.colors_min, self._data.colors_max, len(color_v)
            )
        self._data = replace(self._data, colors=color_v, color_mode=ColorMode.MODE_SPECIFIC)
        return self

    async def execute(self, controller: Controller) -> None:
        """Apply this mode to the controller, making it the active mode.

        Call :meth:`Controller.sync_controller_data` afterwards to see the change.

        Raises:
            CommandError: If the builder was already executed or the mode does
                not belong to the controller
            TransportError: If sending fails
        """
        self._check_built()
        await controller.set_mode(self._data)
        self.state = BuilderState.EXECUTED

    async def save(self, controller: Controller) -> None:
        """Apply this mode and persist it in the device's memory.

        Raises:
            CapabilityError: If this mode cannot be saved on request
            TransportError: If sending fails
        """
        self._check_built()
        if not self._data.manual_save:
            raise CapabilityError("Mode does not support manual saving")
        _LOGGER.debug("Saving mode %s", self._data.name)
        await controller.save_mode(self._data)
        self.state = BuilderState.EXECUTED
