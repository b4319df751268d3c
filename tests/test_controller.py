"""Tests for the controller, zone, segment and LED views."""

import logging
from dataclasses import replace

import pytest

from pyopenrgb.controller import Controller
from pyopenrgb.data import BLACK, Color
from pyopenrgb.errors import CapabilityError, CommandError, RangeError
from pyopenrgb.protocol import PacketId
from pyopenrgb.semantic import (
    AddSegmentPayload,
    ClearSegmentsPayload,
    ResizeZonePayload,
    UpdateSingleLedPayload,
    UpdateZoneLedsPayload,
    build_controller_data,
)

from .conftest import FakeTransport, make_controller_data

RED = Color(255, 0, 0)
GREEN = Color(0, 255, 0)


def zone_update(transport: FakeTransport):
    (packet,) = transport.sent_packets()
    assert packet.packet_id == PacketId.UPDATE_ZONE_LEDS
    return UpdateZoneLedsPayload.parse(packet.payload)


class TestController:
    def test_properties(self, controller: Controller) -> None:
        assert controller.id == 2
        assert controller.name == "Test Keyboard"
        assert controller.vendor == "ACME"
        assert controller.num_leds == 12
        assert controller.num_zones == 2
        assert controller.protocol_version == 5

    @pytest.mark.asyncio
    async def test_fetch(self) -> None:
        transport = FakeTransport(4)
        transport.queue_response(
            PacketId.REQUEST_CONTROLLER_DATA, build_controller_data(make_controller_data(4), 4)
        )
        controller = await Controller.fetch(transport, 2)
        assert controller.data == make_controller_data(4)

        (packet,) = transport.sent_packets()
        assert packet.device_id == 2
        assert packet.payload == b"\x04\x00\x00\x00"

    @pytest.mark.asyncio
    async def test_sync_returns_new_snapshot(
        self, controller: Controller, transport: FakeTransport
    ) -> None:
        updated = make_controller_data(5, active_mode_index=1)
        transport.queue_response(
            PacketId.REQUEST_CONTROLLER_DATA, build_controller_data(updated, 5)
        )
        synced = await controller.sync_controller_data()
        assert synced.active_mode().name == "Breathing"
        assert controller.active_mode().name == "Direct"

    def test_leds(self, controller: Controller) -> None:
        leds = list(controller.led_iter())
        assert [led.id for led in leds] == list(range(12))
        led = controller.get_led(9)
        assert led.name == "Key 9"
        assert led.alt_name == ""
        assert led.color == Color(9, 9, 9)
        with pytest.raises(CommandError):
            controller.get_led(12)

    def test_led_name_missing(self, transport: FakeTransport) -> None:
        data = make_controller_data(5, leds=())
        assert Controller(data, transport).get_led(0).name is None

    def test_led_colors_is_lazy(self, controller: Controller) -> None:
        seen = []

        def color(led):
            seen.append(led.id)
            return RED

        pairs = controller.led_colors(color)
        assert seen == []
        assert next(pairs) == (0, RED)
        assert seen == [0]

    def test_cmd_with_leds(self, controller: Controller) -> None:
        cmd = controller.cmd_with_leds(lambda led: RED if led.id % 2 else GREEN)
        assert cmd.colors() == [GREEN, RED] * 6

    @pytest.mark.asyncio
    async def test_set_led(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.set_led(3, RED)
        (packet,) = transport.sent_packets()
        assert packet.packet_id == PacketId.UPDATE_SINGLE_LED
        payload = UpdateSingleLedPayload.parse(packet.payload)
        assert (payload.led_id, payload.color) == (3, RED)

        with pytest.raises(CommandError):
            await controller.set_led(12, RED)

    @pytest.mark.asyncio
    async def test_set_leds(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.set_leds([RED, RED])
        assert len(transport.sent) == 1
        with pytest.raises(CommandError):
            await controller.set_leds([RED] * 13)
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_set_custom_mode(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.set_custom_mode()
        (packet,) = transport.sent_packets()
        assert (packet.packet_id, packet.device_id, packet.payload) == (1100, 2, b"")

    @pytest.mark.asyncio
    async def test_clear_segments(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.clear_segments()
        packets = transport.sent_packets()
        assert [packet.packet_id for packet in packets] == [PacketId.CLEAR_SEGMENTS] * 2
        assert [ClearSegmentsPayload.parse(p.payload).zone_id for p in packets] == [0, 1]


class TestZone:
    def test_properties(self, controller: Controller) -> None:
        zone = controller.get_zone(1)
        assert zone.name == "Fan"
        assert zone.offset == 8
        assert zone.num_leds == 4
        assert zone.is_resizable
        assert [led.id for led in zone.led_iter()] == [8, 9, 10, 11]
        assert controller.get_zone(0).matrix.get(0, 3) == 3
        assert list(controller.zone_iter()) == [controller.get_zone(0), zone]

    def test_unknown_zone(self, controller: Controller) -> None:
        with pytest.raises(CommandError):
            controller.get_zone(2)

    @pytest.mark.asyncio
    async def test_set_led(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.get_zone(1).set_led(1, RED)
        (packet,) = transport.sent_packets()
        assert UpdateSingleLedPayload.parse(packet.payload).led_id == 9
        with pytest.raises(CommandError):
            await controller.get_zone(1).set_led(4, RED)

    @pytest.mark.asyncio
    async def test_set_leds_black_fill(
        self, controller: Controller, transport: FakeTransport
    ) -> None:
        await controller.get_zone(1).set_leds([RED])
        payload = zone_update(transport)
        assert payload.zone_id == 1
        assert list(payload.colors) == [RED, BLACK, BLACK, BLACK]

    @pytest.mark.asyncio
    async def test_set_leds_truncates(
        self, controller: Controller, transport: FakeTransport, caplog
    ) -> None:
        with caplog.at_level(logging.WARNING):
            await controller.get_zone(1).set_leds([RED] * 6)
        assert "was given 6 colors, while its length is 4" in caplog.text
        assert list(zone_update(transport).colors) == [RED] * 4

    @pytest.mark.asyncio
    async def test_set_all_leds(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.get_zone(1).set_all_leds("lime")
        assert list(zone_update(transport).colors) == [GREEN] * 4

    def test_cmd_with_set_leds(self, controller: Controller) -> None:
        cmd = controller.get_zone(1).cmd_with_set_leds([RED, RED])
        assert cmd.pending() == {8: RED, 9: RED}

    def test_cmd_with_leds(self, controller: Controller) -> None:
        cmd = controller.get_zone(1).cmd_with_leds(lambda led: RED)
        assert cmd.pending() == {8: RED, 9: RED, 10: RED, 11: RED}

    @pytest.mark.asyncio
    async def test_add_segment(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.get_zone(1).add_segment("Middle", 1, 2)
        (packet,) = transport.sent_packets()
        assert packet.packet_id == PacketId.ADD_SEGMENT
        payload = AddSegmentPayload.parse(packet.payload, protocol_version=5)
        assert payload.zone_id == 1
        assert (payload.segment.name, payload.segment.offset, payload.segment.led_count) == (
            "Middle",
            1,
            2,
        )

    @pytest.mark.asyncio
    async def test_add_segment_too_long(
        self, controller: Controller, transport: FakeTransport
    ) -> None:
        with pytest.raises(CommandError, match="exceeds zone LED count 4"):
            await controller.get_zone(1).add_segment("Middle", 3, 2)
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_segments_need_version_4(self) -> None:
        transport = FakeTransport(3)
        zone = Controller(make_controller_data(3), transport).get_zone(1)
        with pytest.raises(CapabilityError):
            await zone.add_segment("Middle", 0, 1)
        with pytest.raises(CapabilityError):
            await zone.clear_segments()
        with pytest.raises(CapabilityError):
            zone.get_segment(0)
        assert list(zone.segment_iter()) == []
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_resize(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.get_zone(1).resize(10)
        (packet,) = transport.sent_packets()
        payload = ResizeZonePayload.parse(packet.payload)
        assert (payload.zone_id, payload.new_size) == (1, 10)

    @pytest.mark.asyncio
    async def test_resize_out_of_bounds(
        self, controller: Controller, transport: FakeTransport
    ) -> None:
        with pytest.raises(RangeError):
            await controller.get_zone(1).resize(11)
        with pytest.raises(CapabilityError):
            await controller.get_zone(0).resize(8)
        assert transport.sent == []


class TestSegment:
    def test_properties(self, controller: Controller) -> None:
        segment = controller.get_zone(1).get_segment(1)
        assert segment.name == "Right"
        assert segment.offset == 2
        assert segment.absolute_offset == 10
        assert [led.id for led in segment.led_iter()] == [10, 11]
        assert [s.name for s in controller.get_zone(1).segment_iter()] == ["Left", "Right"]

    @pytest.mark.asyncio
    async def test_set_leds(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.get_zone(1).get_segment(1).set_leds([RED])
        payload = zone_update(transport)
        assert payload.zone_id == 1
        assert list(payload.colors) == [BLACK, BLACK, RED, BLACK]

    @pytest.mark.asyncio
    async def test_set_all_leds(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.get_zone(1).get_segment(0).set_all_leds(RED)
        assert list(zone_update(transport).colors) == [RED, RED, BLACK, BLACK]

    @pytest.mark.asyncio
    async def test_set_leds_too_many(
        self, controller: Controller, transport: FakeTransport
    ) -> None:
        with pytest.raises(CommandError):
            await controller.get_zone(1).get_segment(0).set_leds([RED] * 3)
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_set_led(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.get_zone(1).get_segment(1).set_led(1, RED)
        (packet,) = transport.sent_packets()
        assert UpdateSingleLedPayload.parse(packet.payload).led_id == 11

    def test_cmd_with_set_leds(self, controller: Controller) -> None:
        cmd = controller.get_zone(1).get_segment(1).cmd_with_set_leds([RED])
        assert cmd.pending() == {10: RED}


class TestLed:
    def test_cmd_with_color(self, controller: Controller) -> None:
        assert controller.get_led(4).cmd_with_color("red").pending() == {4: RED}

    @pytest.mark.asyncio
    async def test_set_led(self, controller: Controller, transport: FakeTransport) -> None:
        await controller.get_led(4).set_led(GREEN)
        (packet,) = transport.sent_packets()
        payload = UpdateSingleLedPayload.parse(packet.payload)
        assert (payload.led_id, payload.color) == (4, GREEN)

    def test_short_color_list(self, transport: FakeTransport) -> None:
        controller = Controller(replace(make_controller_data(5), colors=(RED,)), transport)
        leds = list(controller.led_iter())
        assert leds[0].color == RED
        assert leds[4].color is None
        assert leds[4].name == "Key 4"
