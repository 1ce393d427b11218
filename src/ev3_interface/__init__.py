"""
EV3 Interface Package
======================
Access layer for ev3dev tacho-motors exported through sysfs:
- Resolving a port and driver name to a motor handle
- Typed, validated access to every motor attribute
- Sysfs layout configuration and logging setup

The package is a pure client of the host's attribute files; it keeps no
state of its own beyond each handle's write lock.
"""

__version__ = "1.0.0"

from .models import (
    Attribute,
    ATTRIBUTE_LABELS,
    Polarity,
    MotorState,
    STATE_TABLE,
    MotorSnapshot,
)
from .errors import (
    EV3Error,
    ResolutionNotFound,
    PortResolutionError,
    StructuralMismatch,
    IdentifierParseError,
    DriverQueryError,
    DriverMismatch,
    DeviceIOError,
    AttributeIOError,
    AttributeParseError,
    AttributeValidationError,
)
from .settings import SysfsLayout, load_layout, setup_logging
from .attribute_store import AttributeStore, SysfsAttributeStore
from .lego_port import LegoPort, LegoPortResolver
from .tacho_motor import TachoMotor
from .locator import TachoMotorLocator, tacho_motor_for

__all__ = [
    "Attribute",
    "ATTRIBUTE_LABELS",
    "Polarity",
    "MotorState",
    "STATE_TABLE",
    "MotorSnapshot",
    "EV3Error",
    "ResolutionNotFound",
    "PortResolutionError",
    "StructuralMismatch",
    "IdentifierParseError",
    "DriverQueryError",
    "DriverMismatch",
    "DeviceIOError",
    "AttributeIOError",
    "AttributeParseError",
    "AttributeValidationError",
    "SysfsLayout",
    "load_layout",
    "setup_logging",
    "AttributeStore",
    "SysfsAttributeStore",
    "LegoPort",
    "LegoPortResolver",
    "TachoMotor",
    "TachoMotorLocator",
    "tacho_motor_for",
]
