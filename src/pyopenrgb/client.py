"""High-level client composing the connection and the controller views."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING

from pyopenrgb.builders import build_request_controller_count, build_request_plugin_list
from pyopenrgb.const import DEFAULT_CLIENT_NAME, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TIMEOUT
from pyopenrgb.connection import OpenRGBConnection
from pyopenrgb.controller import Controller
from pyopenrgb.plugins import EffectsPlugin, OpenRGBPlugin, PluginData, parse_plugin_list
from pyopenrgb.semantic import parse_u32

if TYPE_CHECKING:
    from pyopenrgb.connection import Transport

_LOGGER = logging.getLogger(__name__)


class OpenRGBClient:
    """Client for an OpenRGB SDK server.

    Example:
        >>> async with await OpenRGBClient.connect() as client:
        ...     for controller in await client.get_all_controllers():
        ...         await controller.set_all_leds("red")
    """

    def __init__(self, transport: Transport) -> None:
        """Wrap an already connected transport.

        Args:
            transport: Transport whose protocol version is already negotiated
        """
        self._transport = transport

    @classmethod
    async def connect(
        cls,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        client_name: str = DEFAULT_CLIENT_NAME,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> OpenRGBClient:
        """Connect to a server and negotiate the protocol version.

        Args:
            host: Server host name or address
            port: Server port
            client_name: Name shown in the server's client list
            timeout: Seconds to wait for connecting and for each response

        Returns:
            A connected client

        Raises:
            TransportError: If the server cannot be reached
        """
        connection = OpenRGBConnection(host, port, timeout=timeout, client_name=client_name)
        await connection.connect()
        _LOGGER.debug(
            "Connected to %s:%d with protocol version %d", host, port, connection.protocol_version
        )
        return cls(connection)

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def protocol_version(self) -> int:
        """Protocol version negotiated for this session."""
        return self._transport.protocol_version

    async def controller_count(self) -> int:
        """Request the number of controllers on the server."""
        return parse_u32(await self._transport.request(build_request_controller_count()))

    async def get_controller(self, controller_id: int) -> Controller:
        """Fetch one controller by index."""
        return await Controller.fetch(self._transport, controller_id)

    async def get_all_controllers(self) -> list[Controller]:
        """Fetch every controller on the server, in index order."""
        count = await self.controller_count()
        return [await self.get_controller(controller_id) for controller_id in range(count)]

    async def get_plugins(self) -> list[PluginData]:
        """Request the list of plugins loaded by the server."""
        return parse_plugin_list(await self._transport.request(build_request_plugin_list()))

    async def get_effects_plugin(self) -> EffectsPlugin | None:
        """Return the effects plugin, or ``None`` if the server does not run it."""
        for plugin in await self.get_plugins():
            if plugin.kind.kind is OpenRGBPlugin.EFFECTS:
                return EffectsPlugin(self._transport, plugin)
        return None

    def close(self) -> None:
        """Close the underlying connection, if the transport has one."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    async def __aenter__(self) -> OpenRGBClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
