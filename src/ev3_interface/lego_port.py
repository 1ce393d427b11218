"""
Lego Port Resolver
===================
Maps a port name to its lego-port directory and the device node the
driver attached below it.
"""

from __future__ import annotations

import os
from typing import Optional

from loguru import logger

from .attribute_store import AttributeStore
from .errors import PortResolutionError
from .settings import SysfsLayout


class LegoPort:
    """Handle to one directory under the lego-port class root."""

    def __init__(self, name: str, layout: SysfsLayout):
        self.name = name
        self.path = os.path.join(layout.lego_port_root, name)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"LegoPort({self.name!r})"


class LegoPortResolver:
    """
    Resolves port names against the lego-port class directory.

    Usage:
        resolver = LegoPortResolver(store, layout)
        port = resolver.port_for("port0")
        device = resolver.connected_to(port)
    """

    def __init__(self, store: AttributeStore, layout: SysfsLayout):
        self.store = store
        self.layout = layout

    def port_for(self, port: str) -> Optional[LegoPort]:
        """
        Look up the lego port with the given name.

        Args:
            port: Port name; empty means no specific port

        Returns:
            The port, or None when port is empty

        Raises:
            PortResolutionError: If no such port exists
        """
        if not port:
            return None

        try:
            ports = self.store.list_dir(self.layout.lego_port_root)
        except OSError as e:
            raise PortResolutionError(port, f"could not list lego ports: {e}") from e

        if port not in ports:
            raise PortResolutionError(port, "no such lego port")
        return LegoPort(port, self.layout)

    def connected_to(self, port: LegoPort) -> str:
        """
        Name of the device node attached to a port.

        Device nodes are named <port>:<suffix>; sysfs helper directories
        such as power/ that sit beside them are skipped.

        Raises:
            PortResolutionError: If nothing is connected or the port cannot be read
        """
        try:
            entries = self.store.list_dir(port.path)
        except OSError as e:
            raise PortResolutionError(port.name, f"could not read port: {e}") from e

        prefix = f"{port.name}:"
        for entry in entries:
            if entry.startswith(prefix) and self.store.is_dir(os.path.join(port.path, entry)):
                logger.debug(f"Port {port} connected to {entry}")
                return entry
        raise PortResolutionError(port.name, "no device connected")
