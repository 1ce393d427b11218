"""
EV3 Interface - Errors
=======================
Exception hierarchy for motor resolution and attribute access.

None of these are retried internally; every failure surfaces to the caller
with enough context (path, attribute, motor, offending value) to act on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .models import Attribute
    from .tacho_motor import TachoMotor


class EV3Error(Exception):
    """Base class for all ev3_interface errors."""


class ResolutionNotFound(EV3Error):
    """No candidate port holds a motor with the requested driver."""

    def __init__(self, driver: str):
        self.driver = driver
        super().__init__(f"could not find device for driver {driver!r}")


class PortResolutionError(EV3Error):
    """The port resolver could not map a port name to a connected device."""

    def __init__(self, port: str, reason: str):
        self.port = port
        super().__init__(f"port {port!r}: {reason}")


class StructuralMismatch(EV3Error):
    """The motor subtree does not hold exactly one correctly named entry."""

    def __init__(self, path: str, entries: Sequence[str], reason: str):
        self.path = path
        self.entries = list(entries)
        super().__init__(f"{reason} in path {path}: {self.entries!r}")


class IdentifierParseError(EV3Error):
    """The device entry name has a non-numeric id suffix."""

    def __init__(self, device: str):
        self.device = device
        super().__init__(f"could not parse id from device name {device!r}")


class DriverQueryError(EV3Error):
    """Reading the driver name failed while resolving a motor."""


class DriverMismatch(EV3Error):
    """
    The resolved motor reports a different driver than requested.

    This is a soft failure: the handle was built and is available on
    ``motor``.
    """

    def __init__(self, want: str, have: str, motor: Optional[TachoMotor] = None):
        self.want = want
        self.have = have
        self.motor = motor
        super().__init__(f"driver mismatch: want {want!r}, have {have!r}")


class DeviceIOError(EV3Error):
    """A host-level I/O operation against the attribute store failed."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class AttributeIOError(DeviceIOError):
    """Reading or writing a single motor attribute failed."""

    def __init__(self, message: str, attribute: Attribute, motor: str, path: Optional[str] = None):
        self.attribute = attribute
        self.motor = motor
        super().__init__(message, path=path)


class AttributeParseError(EV3Error):
    """An attribute was read but its value is not of the expected type."""

    def __init__(self, attribute: Attribute, motor: str, value: str):
        self.attribute = attribute
        self.motor = motor
        self.value = value
        super().__init__(f"failed to parse {attribute.label} for {motor}: {value!r}")


class AttributeValidationError(EV3Error, ValueError):
    """A candidate value was rejected before any write was attempted."""

    def __init__(self, message: str, attribute: Attribute, motor: str, value: object):
        self.attribute = attribute
        self.motor = motor
        self.value = value
        super().__init__(message)
