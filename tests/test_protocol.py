"""Tests for packet framing and request builders."""

from dataclasses import replace

import pytest

from pyopenrgb.builders import (
    build_add_segment,
    build_clear_segments,
    build_plugin_specific,
    build_request_controller_count,
    build_request_controller_data,
    build_request_protocol_version,
    build_resize_zone,
    build_set_client_name,
    build_set_custom_mode,
    build_update_leds,
    build_update_mode,
    build_update_segment_leds,
    build_update_single_led,
    build_update_zone_leds,
)
from pyopenrgb.data import BLACK, Color, ModeData, ModeFlag, SegmentData, ZoneData, ZoneType
from pyopenrgb.errors import MalformedMessageError
from pyopenrgb.protocol import (
    HEADER_SIZE,
    PacketId,
    build_packet,
    parse_header,
    split_packets,
)
from pyopenrgb.semantic import parse_mode_data

RED = Color(255, 0, 0)


def header(device_id: int, packet_id: int, size: int) -> bytes:
    return (
        b"ORGB"
        + device_id.to_bytes(4, "little")
        + packet_id.to_bytes(4, "little")
        + size.to_bytes(4, "little")
    )


class TestFraming:
    def test_build_packet(self) -> None:
        assert build_packet(PacketId.UPDATE_SINGLE_LED, b"\x01\x02", 3) == (
            header(3, 1052, 2) + b"\x01\x02"
        )

    def test_parse_header(self) -> None:
        parsed = parse_header(header(1, 40, 4))
        assert parsed.device_id == 1
        assert parsed.packet_id == PacketId.REQUEST_PROTOCOL_VERSION
        assert parsed.size == 4

    def test_parse_header_bad_magic(self) -> None:
        with pytest.raises(MalformedMessageError):
            parse_header(b"ORGX" + bytes(12))

    def test_parse_header_short(self) -> None:
        with pytest.raises(MalformedMessageError):
            parse_header(b"ORGB")

    def test_split_packets_reassembles(self) -> None:
        first = build_packet(PacketId.REQUEST_CONTROLLER_COUNT, b"\x02\x00\x00\x00")
        second = build_packet(PacketId.DEVICE_LIST_UPDATED)
        stream = first + second + first[:HEADER_SIZE + 1]

        packets, remainder = split_packets(stream)
        assert [packet.packet_id for packet in packets] == [0, 100]
        assert packets[0].payload == b"\x02\x00\x00\x00"
        assert packets[1].payload == b""
        assert remainder == first[:HEADER_SIZE + 1]

        packets, remainder = split_packets(remainder + first[HEADER_SIZE + 1 :])
        assert len(packets) == 1
        assert remainder == b""

    def test_split_packets_partial_header(self) -> None:
        assert split_packets(b"ORGB\x00") == ([], b"ORGB\x00")


class TestBuilders:
    def test_request_controller_count(self) -> None:
        assert build_request_controller_count() == header(0, 0, 0)

    def test_request_controller_data(self) -> None:
        assert build_request_controller_data(2, 3) == header(2, 1, 4) + b"\x03\x00\x00\x00"

    def test_request_controller_data_version_0(self) -> None:
        assert build_request_controller_data(2, 0) == header(2, 1, 0)

    def test_request_protocol_version(self) -> None:
        assert build_request_protocol_version(5) == header(0, 40, 4) + b"\x05\x00\x00\x00"

    def test_set_client_name(self) -> None:
        assert build_set_client_name("test") == header(0, 50, 5) + b"test\x00"

    def test_update_leds(self) -> None:
        payload = b"\x0e\x00\x00\x00" + b"\x02\x00" + b"\xff\x00\x00\x00" + b"\x00\x00\x00\x00"
        assert build_update_leds(1, [RED, BLACK]) == header(1, 1050, 14) + payload

    def test_update_zone_leds(self) -> None:
        payload = b"\x0e\x00\x00\x00" + b"\x03\x00\x00\x00" + b"\x01\x00" + b"\xff\x00\x00\x00"
        assert build_update_zone_leds(0, 3, [RED]) == header(0, 1051, 14) + payload

    def test_update_segment_leds_fills_zone_with_black(self) -> None:
        zone = ZoneData("Fan", ZoneType.LINEAR, 0, 10, 5, segments=(), id=1)
        segment = SegmentData("Top", ZoneType.LINEAR, offset=1, led_count=3)
        packet = build_update_segment_leds(0, zone, segment, [RED, RED])
        assert packet == build_update_zone_leds(0, 1, [BLACK, RED, RED, BLACK, BLACK])

    def test_update_single_led(self) -> None:
        payload = b"\x07\x00\x00\x00" + b"\xff\x00\x00\x00"
        assert build_update_single_led(4, 7, RED) == header(4, 1052, 8) + payload

    def test_resize_zone(self) -> None:
        payload = b"\x01\x00\x00\x00" + b"\x14\x00\x00\x00"
        assert build_resize_zone(0, 1, 20) == header(0, 1000, 8) + payload

    def test_clear_segments(self) -> None:
        assert build_clear_segments(0, 2) == header(0, 1001, 4) + b"\x02\x00\x00\x00"

    def test_add_segment(self) -> None:
        segment = SegmentData("Top", ZoneType.LINEAR, offset=1, led_count=3)
        packet = build_add_segment(0, 2, segment, 4)
        body = (
            b"\x02\x00\x00\x00"  # zone
            + b"\x04\x00Top\x00"
            + b"\x01\x00\x00\x00"  # zone type
            + b"\x01\x00\x00\x00"
            + b"\x03\x00\x00\x00"
        )
        size = (4 + len(body)).to_bytes(4, "little")
        assert packet == header(0, 1002, 4 + len(body)) + size + body

    def test_set_custom_mode(self) -> None:
        assert build_set_custom_mode(3) == header(3, 1100, 0)

    def test_update_mode(self) -> None:
        mode = ModeData(
            "Breathing",
            value=4,
            flags=ModeFlag.HAS_SPEED,
            speed_min=1,
            speed_max=10,
            speed=5,
            index=2,
        )
        packet = build_update_mode(1, mode, 3)
        parsed = parse_header(packet)
        assert parsed.packet_id == PacketId.UPDATE_MODE
        assert parsed.device_id == 1
        payload = packet[HEADER_SIZE:]
        assert int.from_bytes(payload[:4], "little") == len(payload)
        assert int.from_bytes(payload[4:8], "little") == 2
        assert parse_mode_data(payload[8:], 3) == replace(mode, index=0)

    def test_plugin_specific(self) -> None:
        packet = build_plugin_specific(1, 20, b"\x01\x00\x00")
        assert packet == header(1, 201, 7) + b"\x14\x00\x00\x00\x01\x00\x00"
