"""Shared fixtures for the pyopenrgb tests."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import defaultdict
from unittest.mock import MagicMock, patch

import pytest
import pytest_asyncio

from pyopenrgb.codec import UNSUPPORTED
from pyopenrgb.controller import Controller
from pyopenrgb.data import (
    Color,
    ColorMode,
    ControllerData,
    DeviceType,
    LedData,
    MatrixMap,
    ModeData,
    ModeFlag,
    SegmentData,
    ZoneData,
    ZoneType,
)
from pyopenrgb.protocol import parse_header, split_packets

logging.getLogger("pyopenrgb").setLevel(logging.DEBUG)

# "controller data" response of a Thermaltake Riing at protocol version 3:
# u32 size (760, counting itself) followed by the record body
RIING_V3 = (760).to_bytes(4, "little") + bytes.fromhex(
    "030000001200546865726d616c74616b65205269696e67000c00546865726d61"
    "6c74616b65001900546865726d616c74616b65205269696e6720446576696365"
    "0001000001000013004849443a202f6465762f68696472617731300008000000"
    "0000070044697265637400180000002000000000000000000000000000000000"
    "0000000000000000000000000000000000000000000000010000000000070053"
    "7461746963001900000040000000000000000000000000000000000000000100"
    "000001000000000000000000000000000000020000000100000000000500466c"
    "6f77000000000001000000030000000000000000000000000000000000000000"
    "0000000200000000000000000000000000000000000900537065637472756d00"
    "0400000001000000030000000000000000000000000000000000000000000000"
    "0200000000000000000000000000000000000700526970706c65000800000021"
    "0000000300000000000000000000000000000000000000000000000200000000"
    "000000000000000100000000000600426c696e6b000c00000021000000030000"
    "0000000000000000000000000000000000000000000200000000000000000000"
    "00010000000000060050756c7365001000000021000000030000000000000000"
    "0000000000000000000000000000000200000000000000000000000100000000"
    "0005005761766500140000002100000003000000000000000000000000000000"
    "0000000000000000020000000000000000000000010000000000050010005269"
    "696e67204368616e6e656c203100010000000000000014000000000000000000"
    "10005269696e67204368616e6e656c2032000100000000000000140000000000"
    "0000000010005269696e67204368616e6e656c20330001000000000000001400"
    "000000000000000010005269696e67204368616e6e656c203400010000000000"
    "00001400000000000000000010005269696e67204368616e6e656c2035000100"
    "0000000000001400000000000000000000000000")

RIING_MODE_NAMES = ["Direct", "Static", "Flow", "Spectrum", "Ripple", "Blink", "Pulse", "Wave"]


class FakeTransport:
    """Records sent packets and replays canned responses by packet id."""

    def __init__(self, protocol_version: int = 5) -> None:
        self.protocol_version = protocol_version
        self.sent: list[bytes] = []
        self._responses: dict[int, list[bytes]] = defaultdict(list)
        self.closed = False

    def queue_response(self, packet_id: int, payload: bytes) -> None:
        self._responses[packet_id].append(payload)

    async def send(self, packet: bytes) -> None:
        self.sent.append(packet)

    async def request(self, packet: bytes) -> bytes:
        self.sent.append(packet)
        return self._responses[parse_header(packet).packet_id].pop(0)

    def close(self) -> None:
        self.closed = True

    def sent_packets(self):
        """Sent packets as containers with device_id, packet_id and payload."""
        packets, remainder = split_packets(b"".join(self.sent))
        assert remainder == b""
        return packets


def make_controller_data(protocol_version: int = 5, **kwargs) -> ControllerData:
    """A keyboard-like controller: an 8 LED strip and a resizable 4 LED zone.

    The second zone holds two segments of two LEDs each from protocol version 4.
    """
    segments = UNSUPPORTED
    if protocol_version >= 4:
        segments = (
            SegmentData("Left", ZoneType.LINEAR, offset=0, led_count=2, id=0),
            SegmentData("Right", ZoneType.LINEAR, offset=2, led_count=2, id=1),
        )
    zones = (
        ZoneData(
            "Strip",
            ZoneType.MATRIX,
            leds_min=8,
            leds_max=8,
            leds_count=8,
            matrix=MatrixMap(2, 4, (0, 1, 2, 3, 4, 5, 6, 7)),
            segments=() if protocol_version >= 4 else UNSUPPORTED,
            id=0,
        ),
        ZoneData(
            "Fan",
            ZoneType.LINEAR,
            leds_min=0,
            leds_max=10,
            leds_count=4,
            segments=segments,
            id=1,
        ),
    )
    has_brightness = protocol_version >= 3
    modes = (
        ModeData(
            "Direct",
            value=0,
            flags=ModeFlag.HAS_PER_LED_COLOR,
            color_mode=ColorMode.PER_LED,
            index=0,
        ),
        ModeData(
            "Breathing",
            value=1,
            flags=ModeFlag.HAS_SPEED
            | ModeFlag.HAS_DIRECTION_LR
            | ModeFlag.HAS_MODE_SPECIFIC_COLOR
            | ModeFlag.MANUAL_SAVE
            | (ModeFlag.HAS_BRIGHTNESS if has_brightness else 0),
            speed_min=1,
            speed_max=10,
            brightness_min=0 if has_brightness else None,
            brightness_max=100 if has_brightness else None,
            colors_min=1,
            colors_max=2,
            speed=5,
            brightness=50 if has_brightness else None,
            direction=0,
            color_mode=ColorMode.MODE_SPECIFIC,
            colors=(Color(255, 0, 0),),
            index=1,
        ),
    )
    defaults = {
        "device_type": DeviceType.KEYBOARD,
        "name": "Test Keyboard",
        "vendor": "ACME" if protocol_version >= 1 else UNSUPPORTED,
        "description": "A keyboard for tests",
        "version": "1.0",
        "serial": "0001",
        "location": "HID: /dev/hidraw0",
        "active_mode_index": 0,
        "modes": modes,
        "zones": zones,
        "leds": tuple(LedData(f"Key {idx}", idx) for idx in range(12)),
        "colors": tuple(Color(idx, idx, idx) for idx in range(12)),
        "led_alt_names": ("",) * 12 if protocol_version >= 5 else UNSUPPORTED,
        "flags": 1 if protocol_version >= 5 else UNSUPPORTED,
        "id": 2,
    }
    defaults.update(kwargs)
    return ControllerData(**defaults)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def controller(transport: FakeTransport) -> Controller:
    return Controller(make_controller_data(transport.protocol_version), transport)


@pytest_asyncio.fixture
async def mock_aio_protocol():
    """Fixture to mock an asyncio connection."""
    loop = asyncio.get_running_loop()
    future = asyncio.Future()

    async def _wait_for_connection():
        transport, protocol = await future
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return transport, protocol

    async def _mock_create_connection(func, host, port):
        protocol = func()
        transport = MagicMock()
        protocol.connection_made(transport)
        with contextlib.suppress(asyncio.InvalidStateError):
            future.set_result((transport, protocol))
        return transport, protocol

    with patch.object(loop, "create_connection", _mock_create_connection):
        yield _wait_for_connection
