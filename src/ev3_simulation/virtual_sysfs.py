"""
Virtual Sysfs
==============
In-memory stand-in for the ev3dev sysfs tree.

VirtualSysfs implements the AttributeStore interface over a dictionary of
paths, so motor code can run off-brick. It mirrors the host's behaviour
where it matters to callers:
- reading or writing an entry that does not exist raises FileNotFoundError
- listing a file raises NotADirectoryError
- failures can be injected per path to emulate a driver rejecting an attribute

Every write is recorded in order, and overlapping writes are counted so
tests can check that writers were serialized.
"""

from __future__ import annotations

import errno
import posixpath
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set

from loguru import logger

from ev3_interface.attribute_store import AttributeStore, PathLike
from ev3_interface.settings import SysfsLayout

DEFAULT_COMMANDS = "run-forever run-to-abs-pos run-to-rel-pos run-timed run-direct stop reset"
DEFAULT_STOP_COMMANDS = "coast brake hold"


@dataclass
class WriteRecord:
    """One completed write against the virtual tree."""
    path: str
    data: str
    timestamp: datetime = field(default_factory=datetime.now)


def _norm(path: PathLike) -> str:
    return posixpath.normpath(str(path))


class VirtualSysfs(AttributeStore):
    """
    In-memory attribute store.

    Usage:
        sysfs = VirtualSysfs()
        sysfs.add_tacho_motor("port0", "lego-ev3-l-motor", motor_id=0)
        motor = tacho_motor_for("port0", "lego-ev3-l-motor", store=sysfs, layout=sysfs.layout)
    """

    def __init__(self, layout: Optional[SysfsLayout] = None, write_delay: float = 0.0):
        """
        Args:
            layout: Sysfs layout to build trees for
            write_delay: Seconds each write takes, to widen race windows in tests
        """
        self.layout = layout or SysfsLayout()
        self.write_delay = write_delay

        self._files: Dict[str, str] = {}
        self._dirs: Set[str] = set()
        self._failures: Dict[str, OSError] = {}

        self._writes: List[WriteRecord] = []
        self._active_writes = 0
        self._max_concurrent_writes = 0
        self._lock = threading.Lock()

        self.add_dir(self.layout.lego_port_root)
        self.add_dir(self.layout.tacho_motor_root)

    # ------------------------------------------------------------------
    # Tree construction
    # ------------------------------------------------------------------

    def add_dir(self, path: PathLike) -> str:
        """Create a directory and its parents."""
        path = _norm(path)
        with self._lock:
            while path not in self._dirs and path != "/":
                self._dirs.add(path)
                path = posixpath.dirname(path)
        return path

    def set(self, path: PathLike, value: str) -> None:
        """Create or replace an entry without recording a write."""
        path = _norm(path)
        self.add_dir(posixpath.dirname(path))
        with self._lock:
            self._files[path] = value

    def get(self, path: PathLike) -> str:
        """Current value of an entry."""
        return self._files[_norm(path)]

    def remove(self, path: PathLike) -> None:
        """Delete an entry or a whole subtree."""
        path = _norm(path)
        with self._lock:
            self._files = {p: v for p, v in self._files.items() if p != path and not p.startswith(path + "/")}
            self._dirs = {d for d in self._dirs if d != path and not d.startswith(path + "/")}

    def fail(self, path: PathLike, error: Optional[OSError] = None) -> None:
        """Make every read and write of path raise error."""
        error = error or OSError(errno.EIO, "Input/output error", str(path))
        with self._lock:
            self._failures[_norm(path)] = error

    def add_tacho_motor(
        self,
        port: str,
        driver: str,
        motor_id: int,
        device: str = "tacho-device",
        rotational: bool = True,
        commands: str = DEFAULT_COMMANDS,
        stop_commands: str = DEFAULT_STOP_COMMANDS,
    ) -> str:
        """
        Build the port namespace and attribute directory for one motor.

        Args:
            port: Lego port name, e.g. "port0"
            driver: Driver name reported by the motor
            motor_id: Numeric id of the motor device entry
            device: Suffix of the device node below the port, which is
                named <port>:<device>
            rotational: Rotational motors expose count_per_rot, linear ones
                count_per_meter and full_travel_count
            commands: Space separated command listing
            stop_commands: Space separated stop command listing

        Returns:
            Path of the motor's attribute directory
        """
        name = self.layout.motor_name(motor_id)
        port_path = posixpath.join(str(self.layout.lego_port_root), port)
        self.set(posixpath.join(port_path, "address"), f"{port}\n")
        self.add_dir(posixpath.join(
            port_path, f"{port}:{device}", f"{port}:{driver}", self.layout.tacho_motor_dir, name,
        ))

        motor_path = posixpath.join(str(self.layout.tacho_motor_root), name)
        attributes = {
            "address": port,
            "driver_name": driver,
            "commands": commands,
            "command": "",
            "stop_commands": stop_commands,
            "stop_command": stop_commands.split()[0] if stop_commands else "",
            "state": "",
            "duty_cycle": "0",
            "duty_cycle_sp": "0",
            "polarity": "normal",
            "position": "0",
            "position_sp": "0",
            "speed": "0",
            "speed_sp": "0",
            "hold_pid/Kp": "80000",
            "hold_pid/Ki": "0",
            "hold_pid/Kd": "0",
            "speed_pid/Kp": "1000",
            "speed_pid/Ki": "60",
            "speed_pid/Kd": "0",
            "ramp_up_sp": "0",
            "ramp_down_sp": "0",
            "time_sp": "0",
        }
        if rotational:
            attributes["count_per_rot"] = "360"
        else:
            attributes["count_per_meter"] = "2000"
            attributes["full_travel_count"] = "100"

        for attribute, value in attributes.items():
            self.set(posixpath.join(motor_path, attribute), f"{value}\n")

        logger.debug(f"Virtual {name} ({driver}) added on {port}")
        return motor_path

    # ------------------------------------------------------------------
    # Write log
    # ------------------------------------------------------------------

    @property
    def writes(self) -> List[WriteRecord]:
        """Completed writes, oldest first."""
        with self._lock:
            return list(self._writes)

    @property
    def max_concurrent_writes(self) -> int:
        """Largest number of writes observed in progress at once."""
        with self._lock:
            return self._max_concurrent_writes

    def clear_writes(self) -> None:
        with self._lock:
            self._writes.clear()
            self._max_concurrent_writes = 0

    # ------------------------------------------------------------------
    # AttributeStore
    # ------------------------------------------------------------------

    def read(self, path: PathLike) -> str:
        path = _norm(path)
        self._check_failure(path)
        with self._lock:
            if path in self._dirs:
                raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
            if path not in self._files:
                raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
            return self._files[path]

    def write(self, path: PathLike, data: str) -> None:
        path = _norm(path)
        self._check_failure(path)
        with self._lock:
            if path not in self._files:
                raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
            self._active_writes += 1
            self._max_concurrent_writes = max(self._max_concurrent_writes, self._active_writes)
        try:
            if self.write_delay:
                time.sleep(self.write_delay)
            with self._lock:
                self._files[path] = data
                self._writes.append(WriteRecord(path, data))
        finally:
            with self._lock:
                self._active_writes -= 1

    def list_dir(self, path: PathLike) -> List[str]:
        path = _norm(path)
        self._check_failure(path)
        with self._lock:
            if path in self._files:
                raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
            if path not in self._dirs:
                raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
            children = {
                p[len(path) + 1:].split("/", 1)[0]
                for p in list(self._files) + list(self._dirs)
                if p.startswith(path + "/")
            }
        return sorted(children)

    def is_dir(self, path: PathLike) -> bool:
        return _norm(path) in self._dirs

    def _check_failure(self, path: str) -> None:
        with self._lock:
            error = self._failures.get(path)
        if error is not None:
            raise error
