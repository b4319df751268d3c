"""Packet framing for the OpenRGB SDK protocol using construct.

Every packet starts with a 16-byte header: the ``ORGB`` magic, the index of
the controller (or plugin) the packet is about, the packet id and the size of
the payload that follows.
"""

from __future__ import annotations

from enum import IntEnum
from typing import cast

from construct import (
    Bytes,
    Const,
    Construct,
    Container,
    ConstructError,
    Int32ul,
    Rebuild,
    Struct,
    len_,
    this,
)

from pyopenrgb.errors import MalformedMessageError

HEADER_MAGIC = b"ORGB"
HEADER_SIZE = 16  # magic(4) + device_id(4) + packet_id(4) + size(4)


class PacketId(IntEnum):
    """Packet ids of the OpenRGB SDK protocol."""

    REQUEST_CONTROLLER_COUNT = 0
    REQUEST_CONTROLLER_DATA = 1
    REQUEST_PROTOCOL_VERSION = 40
    SET_CLIENT_NAME = 50
    DEVICE_LIST_UPDATED = 100
    REQUEST_PLUGIN_LIST = 200
    PLUGIN_SPECIFIC = 201
    RESIZE_ZONE = 1000
    CLEAR_SEGMENTS = 1001
    ADD_SEGMENT = 1002
    UPDATE_LEDS = 1050
    UPDATE_ZONE_LEDS = 1051
    UPDATE_SINGLE_LED = 1052
    SET_CUSTOM_MODE = 1100
    UPDATE_MODE = 1101
    SAVE_MODE = 1102


PacketHeader: Construct = Struct(
    "magic" / Const(HEADER_MAGIC),
    "device_id" / Int32ul,
    "packet_id" / Int32ul,
    "size" / Int32ul,  # Length of payload only
)


Packet: Construct = Struct(
    "magic" / Const(HEADER_MAGIC),
    "device_id" / Int32ul,
    "packet_id" / Int32ul,
    "size" / Rebuild(Int32ul, len_(this.payload)),
    "payload" / Bytes(this.size),
)


def build_packet(packet_id: int, payload: bytes = b"", device_id: int = 0) -> bytes:
    """Frame a payload into a complete packet.

    Args:
        packet_id: Packet id (see :class:`PacketId`)
        payload: Packet payload bytes
        device_id: Controller index, or plugin index for plugin packets

    Returns:
        Complete serialized packet ready to send
    """
    msg = Container(device_id=device_id, packet_id=packet_id, payload=payload)
    return cast(bytes, Packet.build(msg))


def parse_header(data: bytes) -> Container:
    """Parse a packet header.

    Args:
        data: At least :data:`HEADER_SIZE` bytes starting at a packet boundary

    Returns:
        construct Container with ``device_id``, ``packet_id`` and ``size``

    Raises:
        MalformedMessageError: If the data is too short or the magic is wrong
    """
    if len(data) < HEADER_SIZE:
        raise MalformedMessageError(f"Header too short: {len(data)} bytes")
    try:
        return PacketHeader.parse(data[:HEADER_SIZE])
    except ConstructError as err:
        raise MalformedMessageError(f"Invalid magic: {data[0:4].hex()}") from err


def split_packets(buffer: bytes) -> tuple[list[Container], bytes]:
    """Split a receive buffer into complete packets.

    Args:
        buffer: Bytes received so far, starting at a packet boundary

    Returns:
        Tuple of (packets, remainder) where each packet is a Container with
        ``device_id``, ``packet_id`` and ``payload``, and remainder holds the
        bytes of an incomplete trailing packet

    Raises:
        MalformedMessageError: If a header has an invalid magic
    """
    packets: list[Container] = []
    offset = 0

    while len(buffer) - offset >= HEADER_SIZE:
        header = parse_header(buffer[offset : offset + HEADER_SIZE])
        end = offset + HEADER_SIZE + header.size
        if end > len(buffer):
            # need more bytes
            break
        packets.append(
            Container(
                device_id=header.device_id,
                packet_id=header.packet_id,
                payload=buffer[offset + HEADER_SIZE : end],
            )
        )
        offset = end

    return packets, buffer[offset:]
