"""
Tacho Motor Handle
===================
Typed accessors for the attributes of one ev3dev tacho-motor.

Every accessor is one independent transaction against the attribute store:
- Getters read the whole value, strip the trailing newline and parse it.
  I/O failures raise AttributeIOError, unparseable values AttributeParseError.
- Setters validate first and raise AttributeValidationError without touching
  the store when the value is out of domain. Valid values are written under
  the handle's lock.

Writes are serialized per handle; reads are not synchronized against writes.
A read racing a write may see the old or the new value.
"""

from __future__ import annotations

import os
import re
import threading
from datetime import timedelta
from typing import List, Union

from loguru import logger

from .attribute_store import AttributeStore
from .errors import AttributeIOError, AttributeParseError, AttributeValidationError
from .models import Attribute, MotorSnapshot, MotorState, Polarity
from .settings import SysfsLayout

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1

_MILLISECOND = timedelta(milliseconds=1)
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _chomp(value: str) -> str:
    return value[:-1] if value.endswith("\n") else value


class TachoMotor:
    """
    Handle to a tacho-motor, identified by its integer device id.

    Handles are normally obtained from TachoMotorLocator. The id never
    changes and there is nothing to close: the handle is valid for as long
    as the device exists.
    """

    def __init__(self, motor_id: int, store: AttributeStore, layout: SysfsLayout):
        if motor_id < 0:
            raise ValueError(f"motor id must be non-negative, got {motor_id}")
        self._id = motor_id
        self._store = store
        self._layout = layout
        self._lock = threading.Lock()

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        """Device name, e.g. motor0."""
        return self._layout.motor_name(self._id)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"TachoMotor(id={self._id})"

    def path(self, attribute: Attribute) -> str:
        """Store path of an attribute of this motor."""
        return os.path.join(self._layout.tacho_motor_root, self.name, attribute.value)

    # ------------------------------------------------------------------
    # Read/write primitives
    # ------------------------------------------------------------------

    def _read(self, attribute: Attribute) -> str:
        path = self.path(attribute)
        try:
            value = self._store.read(path)
        except OSError as e:
            raise AttributeIOError(
                f"failed to read {attribute.label} for {self}: {e}",
                attribute, self.name, path,
            ) from e
        except UnicodeDecodeError as e:
            raw = e.object.decode("utf-8", errors="replace")
            raise AttributeParseError(attribute, self.name, raw) from e
        return _chomp(value)

    def _read_int(self, attribute: Attribute) -> int:
        value = self._read(attribute)
        if not _INTEGER.fullmatch(value):
            raise AttributeParseError(attribute, self.name, value)
        try:
            return int(value)
        except ValueError:
            # digit strings beyond the interpreter's conversion limit
            raise AttributeParseError(attribute, self.name, value) from None

    def _read_duration(self, attribute: Attribute) -> timedelta:
        return self._read_int(attribute) * _MILLISECOND

    def _read_tokens(self, attribute: Attribute) -> List[str]:
        return self._read(attribute).split()

    def _write(self, attribute: Attribute, data: str) -> None:
        path = self.path(attribute)
        try:
            with self._lock:
                self._store.write(path, data)
        except OSError as e:
            raise AttributeIOError(
                f"failed to set {attribute.label} for {self}: {e}",
                attribute, self.name, path,
            ) from e
        logger.trace(f"{self}: {attribute.value} <- {data!r}")

    def _reject(self, attribute: Attribute, value: object, reason: str) -> AttributeValidationError:
        logger.debug(f"{self}: rejected {attribute.value}={value!r} ({reason})")
        return AttributeValidationError(
            f"invalid {attribute.label} for {self}: {value!r} ({reason})",
            attribute, self.name, value,
        )

    def _check_int(self, attribute: Attribute, value: object) -> int:
        # bool is an int subclass but never a meaningful attribute value
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._reject(attribute, value, "must be an integer")
        return value

    def _check_int32(self, attribute: Attribute, value: object) -> int:
        value = self._check_int(attribute, value)
        if not INT32_MIN <= value <= INT32_MAX:
            raise self._reject(attribute, value, "valid in int32")
        return value

    def _check_duration(self, attribute: Attribute, value: object) -> timedelta:
        if not isinstance(value, timedelta):
            raise self._reject(attribute, value, "must be a timedelta")
        return value

    def _write_int(self, attribute: Attribute, value: int) -> None:
        self._write(attribute, f"{value}\n")

    def _write_duration(self, attribute: Attribute, value: timedelta) -> None:
        # truncate toward zero to whole milliseconds
        self._write_int(attribute, int(value / _MILLISECOND))

    def _check_member(self, attribute: Attribute, value: object, available: List[str], kind: str) -> str:
        if value not in available:
            logger.debug(f"{self}: {kind} {value!r} not in {available}")
            raise AttributeValidationError(
                f"{kind} {value!r} not available for {self} (available: {available!r})",
                attribute, self.name, value,
            )
        return value

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def address(self) -> str:
        """Port name the motor is attached to."""
        return self._read(Attribute.ADDRESS)

    def driver(self) -> str:
        """Name of the driver bound to the motor."""
        return self._read(Attribute.DRIVER_NAME)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def commands(self) -> List[str]:
        """Commands currently accepted by the motor."""
        return self._read_tokens(Attribute.COMMANDS)

    def command(self, comm: str) -> None:
        """
        Issue a command to the motor.

        The available commands are re-read on every call so the check always
        reflects the live device.

        Raises:
            AttributeValidationError: If comm is not in commands()
        """
        self._check_member(Attribute.COMMAND, comm, self.commands(), "command")
        self._write(Attribute.COMMAND, comm)

    def stop_commands(self) -> List[str]:
        """Stop actions supported by the motor."""
        return self._read_tokens(Attribute.STOP_COMMANDS)

    def stop_command(self) -> str:
        """Stop action used when a stop command is issued."""
        return self._read(Attribute.STOP_COMMAND)

    def set_stop_command(self, comm: str) -> None:
        """
        Set the stop action used when a stop command is issued.

        Raises:
            AttributeValidationError: If comm is not in stop_commands()
        """
        self._check_member(Attribute.STOP_COMMAND, comm, self.stop_commands(), "stop command")
        self._write(Attribute.STOP_COMMAND, comm)

    def state(self) -> MotorState:
        """Decoded state flags; unknown state tokens are ignored."""
        return MotorState.decode(self._read(Attribute.STATE))

    # ------------------------------------------------------------------
    # Geometry (rotational or linear motors only; the host rejects the other kind)
    # ------------------------------------------------------------------

    def count_per_rot(self) -> int:
        """Tacho counts in one rotation. Fails for linear motors."""
        return self._read_int(Attribute.COUNT_PER_ROT)

    def count_per_meter(self) -> int:
        """Tacho counts in one meter of travel. Fails for rotational motors."""
        return self._read_int(Attribute.COUNT_PER_METER)

    def full_travel_count(self) -> int:
        """Tacho counts in the full travel. Fails for rotational motors."""
        return self._read_int(Attribute.FULL_TRAVEL_COUNT)

    # ------------------------------------------------------------------
    # Duty cycle
    # ------------------------------------------------------------------

    def duty_cycle(self) -> int:
        return self._read_int(Attribute.DUTY_CYCLE)

    def duty_cycle_set_point(self) -> int:
        return self._read_int(Attribute.DUTY_CYCLE_SP)

    def set_duty_cycle_set_point(self, sp: int) -> None:
        """Set the duty cycle set point, a percentage in [-100, 100]."""
        sp = self._check_int(Attribute.DUTY_CYCLE_SP, sp)
        if not -100 <= sp <= 100:
            raise self._reject(Attribute.DUTY_CYCLE_SP, sp, "valid -100 - 100")
        self._write_int(Attribute.DUTY_CYCLE_SP, sp)

    # ------------------------------------------------------------------
    # Polarity
    # ------------------------------------------------------------------

    def polarity(self) -> Polarity:
        value = self._read(Attribute.POLARITY)
        try:
            return Polarity(value)
        except ValueError:
            raise AttributeParseError(Attribute.POLARITY, self.name, value) from None

    def set_polarity(self, p: Union[Polarity, str]) -> None:
        """Set the polarity, "normal" or "inversed"."""
        try:
            p = Polarity(p)
        except ValueError:
            raise self._reject(Attribute.POLARITY, p, 'valid "normal" or "inversed"') from None
        self._write(Attribute.POLARITY, p.value)

    # ------------------------------------------------------------------
    # Position
    # ------------------------------------------------------------------

    def position(self) -> int:
        return self._read_int(Attribute.POSITION)

    def set_position(self, pos: int) -> None:
        pos = self._check_int32(Attribute.POSITION, pos)
        self._write_int(Attribute.POSITION, pos)

    def position_set_point(self) -> int:
        return self._read_int(Attribute.POSITION_SP)

    def set_position_set_point(self, pos: int) -> None:
        pos = self._check_int32(Attribute.POSITION_SP, pos)
        self._write_int(Attribute.POSITION_SP, pos)

    # ------------------------------------------------------------------
    # Position (hold) PID
    # ------------------------------------------------------------------

    def hold_pid_kd(self) -> int:
        """Derivative constant of the position PID."""
        return self._read_int(Attribute.HOLD_PID_KD)

    def set_hold_pid_kd(self, k: int) -> None:
        self._write_int(Attribute.HOLD_PID_KD, self._check_int(Attribute.HOLD_PID_KD, k))

    def hold_pid_ki(self) -> int:
        """Integral constant of the position PID."""
        return self._read_int(Attribute.HOLD_PID_KI)

    def set_hold_pid_ki(self, k: int) -> None:
        self._write_int(Attribute.HOLD_PID_KI, self._check_int(Attribute.HOLD_PID_KI, k))

    def hold_pid_kp(self) -> int:
        """Proportional constant of the position PID."""
        return self._read_int(Attribute.HOLD_PID_KP)

    def set_hold_pid_kp(self, k: int) -> None:
        self._write_int(Attribute.HOLD_PID_KP, self._check_int(Attribute.HOLD_PID_KP, k))

    # ------------------------------------------------------------------
    # Speed
    # ------------------------------------------------------------------

    def speed(self) -> int:
        return self._read_int(Attribute.SPEED)

    def speed_set_point(self) -> int:
        return self._read_int(Attribute.SPEED_SP)

    def set_speed_set_point(self, sp: int) -> None:
        self._write_int(Attribute.SPEED_SP, self._check_int(Attribute.SPEED_SP, sp))

    def speed_pid_kd(self) -> int:
        """Derivative constant of the speed regulation PID."""
        return self._read_int(Attribute.SPEED_PID_KD)

    def set_speed_pid_kd(self, k: int) -> None:
        self._write_int(Attribute.SPEED_PID_KD, self._check_int(Attribute.SPEED_PID_KD, k))

    def speed_pid_ki(self) -> int:
        """Integral constant of the speed regulation PID."""
        return self._read_int(Attribute.SPEED_PID_KI)

    def set_speed_pid_ki(self, k: int) -> None:
        self._write_int(Attribute.SPEED_PID_KI, self._check_int(Attribute.SPEED_PID_KI, k))

    def speed_pid_kp(self) -> int:
        """Proportional constant of the speed regulation PID."""
        return self._read_int(Attribute.SPEED_PID_KP)

    def set_speed_pid_kp(self, k: int) -> None:
        self._write_int(Attribute.SPEED_PID_KP, self._check_int(Attribute.SPEED_PID_KP, k))

    # ------------------------------------------------------------------
    # Timing (stored as integer milliseconds)
    # ------------------------------------------------------------------

    def ramp_up_set_point(self) -> timedelta:
        return self._read_duration(Attribute.RAMP_UP_SP)

    def set_ramp_up_set_point(self, d: timedelta) -> None:
        d = self._check_duration(Attribute.RAMP_UP_SP, d)
        if d < timedelta(0):
            raise self._reject(Attribute.RAMP_UP_SP, d, "must be positive")
        self._write_duration(Attribute.RAMP_UP_SP, d)

    def ramp_down_set_point(self) -> timedelta:
        return self._read_duration(Attribute.RAMP_DOWN_SP)

    def set_ramp_down_set_point(self, d: timedelta) -> None:
        d = self._check_duration(Attribute.RAMP_DOWN_SP, d)
        if d < timedelta(0):
            raise self._reject(Attribute.RAMP_DOWN_SP, d, "must be positive")
        self._write_duration(Attribute.RAMP_DOWN_SP, d)

    def time_set_point(self) -> timedelta:
        return self._read_duration(Attribute.TIME_SP)

    def set_time_set_point(self, d: timedelta) -> None:
        self._write_duration(Attribute.TIME_SP, self._check_duration(Attribute.TIME_SP, d))

    # ------------------------------------------------------------------
    # Aggregate
    # ------------------------------------------------------------------

    def snapshot(self) -> MotorSnapshot:
        """
        Read the attributes common to every tacho-motor in one pass.

        Each field is a separate read, so a concurrent writer may be observed
        part way through.
        """
        return MotorSnapshot(
            motor=self.name,
            address=self.address(),
            driver=self.driver(),
            duty_cycle=self.duty_cycle(),
            speed=self.speed(),
            position=self.position(),
            polarity=self.polarity(),
            stop_command=self.stop_command() or None,
            state=self.state(),
        )
