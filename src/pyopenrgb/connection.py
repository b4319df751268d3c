"""asyncio transport for the OpenRGB SDK protocol.

The core of the library only needs two things from a transport: sending a
packet (optionally awaiting the matching response) and knowing the negotiated
protocol version. :class:`Transport` describes that interface and
:class:`OpenRGBConnection` implements it over TCP.

Exactly one request is outstanding at a time; concurrent callers are
serialized. Nothing is retried: failures surface as :class:`TransportError`.
"""

from __future__ import annotations

import asyncio
import logging
from asyncio.transports import BaseTransport, WriteTransport
from typing import Any, Callable, Optional, Protocol, cast

from construct import Container

from pyopenrgb.builders import build_request_protocol_version, build_set_client_name
from pyopenrgb.const import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    PROTOCOL_VERSION,
)
from pyopenrgb.errors import MalformedMessageError, OpenRGBError, TransportError
from pyopenrgb.protocol import PacketId, parse_header, split_packets
from pyopenrgb.semantic import parse_u32

_LOGGER = logging.getLogger(__name__)


class Transport(Protocol):
    """What the core needs from a connection."""

    @property
    def protocol_version(self) -> int:
        """Protocol version negotiated for this session."""

    async def send(self, packet: bytes) -> None:
        """Send a packet that has no response."""

    async def request(self, packet: bytes) -> bytes:
        """Send a packet and return the payload of the matching response."""


class OpenRGBProtocol(asyncio.Protocol):
    """Socket callbacks for one SDK connection.

    Bytes are handed to ``on_data`` unparsed; framing is done by
    :class:`OpenRGBConnection`.
    """

    def __init__(
        self,
        on_data: Callable[[bytes], Any],
        on_lost: Callable[[Optional[Exception]], Any],
    ) -> None:
        self._on_data = on_data
        self._on_lost = on_lost
        self.transport: Optional[WriteTransport] = None
        self.peer: Any = None

    def connection_made(self, transport: BaseTransport) -> None:
        """Remember the socket and its peer for logging."""
        self.transport = cast(WriteTransport, transport)
        self.peer = transport.get_extra_info("peername")

    def data_received(self, data: bytes) -> None:
        """Forward raw bytes, possibly a partial packet."""
        _LOGGER.debug("%s <= %s (%d)", self.peer, data.hex(" "), len(data))
        self._on_data(data)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        """Report the closed socket to the owning connection."""
        _LOGGER.debug("%s: Socket closed: %s", self.peer, exc)
        self._on_lost(exc)

    def write(self, packet: bytes) -> None:
        """Write a complete packet to the socket."""
        assert self.transport is not None
        _LOGGER.debug("%s => %s (%d)", self.peer, packet.hex(" "), len(packet))
        self.transport.write(packet)

    def close(self) -> None:
        assert self.transport is not None
        self.transport.close()


class OpenRGBConnection:
    """A TCP connection to an OpenRGB SDK server."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
        client_name: str = DEFAULT_CLIENT_NAME,
        max_protocol_version: int = PROTOCOL_VERSION,
    ) -> None:
        """Initialize the connection without connecting.

        Args:
            host: Server host name or address
            port: Server port
            timeout: Seconds to wait for connecting and for each response
            client_name: Name announced to the server
            max_protocol_version: Highest protocol version to negotiate
        """
        self.host = host
        self.port = port
        self.timeout = timeout
        self.client_name = client_name
        self.max_protocol_version = max_protocol_version
        self.server_protocol_version: int | None = None
        self.device_list_updates = 0
        self._protocol_version = 0
        self._aio_protocol: OpenRGBProtocol | None = None
        self._buffer = b""
        self._request_lock = asyncio.Lock()
        self._pending: asyncio.Future[bytes] | None = None
        self._pending_key: tuple[int, int] | None = None

    @property
    def protocol_version(self) -> int:
        """Protocol version negotiated for this session."""
        return self._protocol_version

    @property
    def connected(self) -> bool:
        return self._aio_protocol is not None

    @property
    def device_list_updated(self) -> bool:
        """Whether the server announced a device list change on this connection."""
        return self.device_list_updates > 0

    async def connect(self) -> None:
        """Connect, negotiate the protocol version and announce the client name.

        Raises:
            TransportError: If the server cannot be reached
        """
        loop = asyncio.get_running_loop()
        try:
            _, self._aio_protocol = await asyncio.wait_for(
                loop.create_connection(
                    lambda: OpenRGBProtocol(self._data_received, self._connection_lost),
                    self.host,
                    self.port,
                ),
                timeout=self.timeout,
            )
        except (OSError, asyncio.TimeoutError) as err:
            raise TransportError(f"Could not connect to {self.host}:{self.port}: {err}") from err

        await self._negotiate_protocol_version()
        await self.send(build_set_client_name(self.client_name))

    async def _negotiate_protocol_version(self) -> None:
        packet = build_request_protocol_version(self.max_protocol_version)
        async with self._request_lock:
            try:
                response = await self._exchange(packet)
            except asyncio.TimeoutError:
                # Servers predating version negotiation never answer
                _LOGGER.debug("%s: No protocol version response, assuming 0", self.host)
                self.server_protocol_version = 0
                self._protocol_version = 0
                return
        self.server_protocol_version = parse_u32(response)
        self._protocol_version = min(self.max_protocol_version, self.server_protocol_version)
        _LOGGER.debug(
            "%s: Server protocol version %d, using %d",
            self.host,
            self.server_protocol_version,
            self._protocol_version,
        )

    async def send(self, packet: bytes) -> None:
        """Send a packet that has no response.

        Raises:
            TransportError: If not connected
        """
        async with self._request_lock:
            self._write(packet)

    async def request(self, packet: bytes) -> bytes:
        """Send a packet and wait for the response with the same packet and device id.

        The connection is closed when no response arrives in time.

        Args:
            packet: Complete request packet

        Returns:
            Payload of the response packet

        Raises:
            TransportError: If not connected, the connection is lost, or no
                response arrives within the timeout
            MalformedMessageError: If the server sends a broken packet
        """
        async with self._request_lock:
            try:
                return await self._exchange(packet)
            except asyncio.TimeoutError as err:
                # A late reply would be taken for the answer to the next request
                self.close()
                raise TransportError(
                    f"Timed out waiting for response to packet {parse_header(packet).packet_id}"
                ) from err

    async def _exchange(self, packet: bytes) -> bytes:
        header = parse_header(packet)
        self._pending = asyncio.get_running_loop().create_future()
        self._pending_key = (header.device_id, header.packet_id)
        try:
            self._write(packet)
            return await asyncio.wait_for(self._pending, timeout=self.timeout)
        finally:
            self._pending = None
            self._pending_key = None

    def _write(self, packet: bytes) -> None:
        if self._aio_protocol is None:
            raise TransportError(f"Not connected to {self.host}:{self.port}")
        self._aio_protocol.write(packet)

    def _data_received(self, data: bytes) -> None:
        """New data on the socket."""
        self._buffer += data
        try:
            packets, self._buffer = split_packets(self._buffer)
        except MalformedMessageError as err:
            # Framing is lost, nothing after this point can be trusted
            _LOGGER.debug("%s: Dropping connection: %s", self.host, err)
            self._buffer = b""
            self._fail_pending(err)
            self.close()
            return
        for packet in packets:
            self._process_packet(packet)

    def _process_packet(self, packet: Container) -> None:
        """Process a full packet (maybe reassembled)."""
        if packet.packet_id == PacketId.DEVICE_LIST_UPDATED:
            _LOGGER.debug("%s: Device list updated", self.host)
            self.device_list_updates += 1
            return
        future = self._pending
        key = (packet.device_id, packet.packet_id)
        if future is None or future.done() or key != self._pending_key:
            _LOGGER.debug(
                "%s: Ignoring unexpected packet %d for device %d (%d bytes)",
                self.host,
                packet.packet_id,
                packet.device_id,
                len(packet.payload),
            )
            return
        future.set_result(packet.payload)

    def _connection_lost(self, exc: Optional[Exception]) -> None:
        """Called when the connection is lost."""
        self._aio_protocol = None
        self._buffer = b""
        self._fail_pending(TransportError(f"Connection to {self.host}:{self.port} lost: {exc}"))

    def _fail_pending(self, exc: OpenRGBError) -> None:
        future = self._pending
        if future is not None and not future.done():
            future.set_exception(exc)

    def close(self) -> None:
        """Close the connection."""
        if self._aio_protocol is not None:
            self._aio_protocol.close()
            self._aio_protocol = None
