"""
Simulation Package
===================
In-memory ev3dev sysfs tree for running motor code without a brick.
"""

from .virtual_sysfs import (
    DEFAULT_COMMANDS,
    DEFAULT_STOP_COMMANDS,
    WriteRecord,
    VirtualSysfs,
)

__all__ = [
    "DEFAULT_COMMANDS",
    "DEFAULT_STOP_COMMANDS",
    "WriteRecord",
    "VirtualSysfs",
]
