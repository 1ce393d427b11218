"""
Tacho Motor Locator
====================
Finds the tacho-motor attached to a port.

The host exposes a two-level namespace below each lego port:

    <lego-port-root>/<port>/<device>/<port>:<driver>/tacho-motor/motor<id>

The first level is resolved by LegoPortResolver, the second by matching
the mapping entry whose name before the first colon equals the port. The
tacho-motor directory must then hold exactly one motor entry.
"""

from __future__ import annotations

import os
from typing import List, Optional

from loguru import logger

from .attribute_store import AttributeStore, SysfsAttributeStore
from .errors import (
    DeviceIOError,
    DriverMismatch,
    DriverQueryError,
    EV3Error,
    IdentifierParseError,
    ResolutionNotFound,
    StructuralMismatch,
)
from .lego_port import LegoPortResolver
from .settings import SysfsLayout
from .tacho_motor import TachoMotor


class TachoMotorLocator:
    """
    Resolves (port, driver) pairs to TachoMotor handles.

    Usage:
        locator = TachoMotorLocator()
        motor = locator.find("port0", "lego-ev3-l-motor")

    When the motor's driver differs from the requested one, find() raises
    DriverMismatch with the resolved handle on its ``motor`` attribute.
    """

    def __init__(self, store: Optional[AttributeStore] = None, layout: Optional[SysfsLayout] = None):
        self.store = store or SysfsAttributeStore()
        self.layout = layout or SysfsLayout()
        self.ports = LegoPortResolver(self.store, self.layout)

    def find(self, port: str, driver: str) -> TachoMotor:
        """
        Resolve the tacho-motor on a port and check its driver.

        Args:
            port: Port name; empty scans the first max_ports candidate ports
            driver: Expected driver name, e.g. "lego-ev3-l-motor"

        Returns:
            Handle to the motor

        Raises:
            ResolutionNotFound: If port is empty and no candidate matched
            PortResolutionError: If the port cannot be resolved
            DeviceIOError: If a directory in the port namespace cannot be read
            StructuralMismatch: If the tacho-motor directory is malformed
            IdentifierParseError: If the motor entry has no numeric id
            DriverQueryError: If the driver name cannot be read
            DriverMismatch: If the driver differs; the handle is on .motor
        """
        if not port:
            return self._scan(driver)

        lego_port = self.ports.port_for(port)
        device = self.ports.connected_to(lego_port)

        path = os.path.join(lego_port.path, device)
        entries = self._list(path)

        # An unmatched port leaves mapping empty; the next listing then fails
        mapping = next((n for n in entries if n.split(":", 1)[0] == port), "")
        path = os.path.join(path, mapping, self.layout.tacho_motor_dir)
        entries = self._list(path)

        motor = TachoMotor(self._motor_id(path, entries), self.store, self.layout)

        try:
            have = motor.driver()
        except EV3Error as e:
            raise DriverQueryError(f"could not get driver name: {e}") from e

        if have != driver:
            logger.warning(f"{motor} on {port}: wanted driver {driver}, found {have}")
            raise DriverMismatch(want=driver, have=have, motor=motor)

        logger.info(f"Resolved {motor} on {port} ({driver})")
        return motor

    def _scan(self, driver: str) -> TachoMotor:
        for index in range(self.layout.max_ports):
            candidate = self.layout.port_name(index)
            try:
                return self.find(candidate, driver)
            except EV3Error as e:
                logger.debug(f"No {driver} on {candidate}: {e}")
        raise ResolutionNotFound(driver)

    def _list(self, path: str) -> List[str]:
        try:
            return self.store.list_dir(path)
        except OSError as e:
            raise DeviceIOError(f"could not list {path}: {e}", path=path) from e

    def _motor_id(self, path: str, entries: List[str]) -> int:
        if len(entries) != 1:
            raise StructuralMismatch(path, entries, "expected exactly one device")

        device = entries[0]
        prefix = self.layout.motor_prefix
        if not device.startswith(prefix):
            raise StructuralMismatch(path, entries, "device not a motor")

        suffix = device[len(prefix):]
        if not (suffix.isascii() and suffix.isdigit()):
            raise IdentifierParseError(device)
        return int(suffix)


def tacho_motor_for(
    port: str,
    driver: str,
    store: Optional[AttributeStore] = None,
    layout: Optional[SysfsLayout] = None,
) -> TachoMotor:
    """Resolve a tacho-motor; see TachoMotorLocator.find."""
    return TachoMotorLocator(store, layout).find(port, driver)
