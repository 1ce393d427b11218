"""
EV3 Interface - Data Models
============================
Attribute table, motor state flags and pydantic models for tacho-motor data.

The attribute table is the single source of the path fragments used to
address a motor's sysfs entries. It is an Enum, so it is fixed at import
time and cannot be mutated afterwards.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntFlag
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field


class Attribute(str, Enum):
    """Tacho-motor attributes, valued by their path fragment."""
    ADDRESS = "address"
    COMMAND = "command"
    COMMANDS = "commands"
    COUNT_PER_ROT = "count_per_rot"
    COUNT_PER_METER = "count_per_meter"
    FULL_TRAVEL_COUNT = "full_travel_count"
    DRIVER_NAME = "driver_name"
    DUTY_CYCLE = "duty_cycle"
    DUTY_CYCLE_SP = "duty_cycle_sp"
    POLARITY = "polarity"
    POSITION = "position"
    POSITION_SP = "position_sp"
    HOLD_PID_KD = "hold_pid/Kd"
    HOLD_PID_KI = "hold_pid/Ki"
    HOLD_PID_KP = "hold_pid/Kp"
    SPEED = "speed"
    SPEED_SP = "speed_sp"
    SPEED_PID_KD = "speed_pid/Kd"
    SPEED_PID_KI = "speed_pid/Ki"
    SPEED_PID_KP = "speed_pid/Kp"
    RAMP_UP_SP = "ramp_up_sp"
    RAMP_DOWN_SP = "ramp_down_sp"
    STATE = "state"
    STOP_COMMAND = "stop_command"
    STOP_COMMANDS = "stop_commands"
    TIME_SP = "time_sp"

    @property
    def label(self) -> str:
        """Human readable name used in error messages."""
        return ATTRIBUTE_LABELS[self]


ATTRIBUTE_LABELS: Mapping[Attribute, str] = MappingProxyType({
    Attribute.ADDRESS: "port address",
    Attribute.COMMAND: "tacho-motor command",
    Attribute.COMMANDS: "tacho-motor commands",
    Attribute.COUNT_PER_ROT: "count per rotation",
    Attribute.COUNT_PER_METER: "count per meter",
    Attribute.FULL_TRAVEL_COUNT: "full travel count",
    Attribute.DRIVER_NAME: "driver name",
    Attribute.DUTY_CYCLE: "duty cycle",
    Attribute.DUTY_CYCLE_SP: "duty cycle set point",
    Attribute.POLARITY: "polarity",
    Attribute.POSITION: "position",
    Attribute.POSITION_SP: "position set point",
    Attribute.HOLD_PID_KD: "hold PID Kd",
    Attribute.HOLD_PID_KI: "hold PID Ki",
    Attribute.HOLD_PID_KP: "hold PID Kp",
    Attribute.SPEED: "speed",
    Attribute.SPEED_SP: "speed set point",
    Attribute.SPEED_PID_KD: "speed PID Kd",
    Attribute.SPEED_PID_KI: "speed PID Ki",
    Attribute.SPEED_PID_KP: "speed PID Kp",
    Attribute.RAMP_UP_SP: "ramp up set point",
    Attribute.RAMP_DOWN_SP: "ramp down set point",
    Attribute.STATE: "tacho-motor state",
    Attribute.STOP_COMMAND: "stop command",
    Attribute.STOP_COMMANDS: "tacho-motor stop commands",
    Attribute.TIME_SP: "time set point",
})


class Polarity(str, Enum):
    """Motor polarity tokens accepted by the driver."""
    NORMAL = "normal"
    INVERSED = "inversed"


class MotorState(IntFlag):
    """
    Bitmask of the motor's reported state.

    The driver lists its state as whitespace separated tokens; each known
    token maps to one bit via STATE_TABLE.
    """
    RUNNING = 1 << 0
    RAMPING = 1 << 1
    HOLDING = 1 << 2
    OVERLOADED = 1 << 3
    STALLED = 1 << 4

    @classmethod
    def decode(cls, listing: str) -> MotorState:
        """OR together the bits of every known token; unknown tokens are ignored."""
        state = cls(0)
        for token in listing.split():
            state |= STATE_TABLE.get(token, cls(0))
        return state

    def names(self) -> List[str]:
        """Names of the set flags, in table order."""
        return [name for name, flag in STATE_TABLE.items() if flag & self]


STATE_TABLE: Mapping[str, MotorState] = MappingProxyType({
    "running": MotorState.RUNNING,
    "ramping": MotorState.RAMPING,
    "holding": MotorState.HOLDING,
    "overloaded": MotorState.OVERLOADED,
    "stalled": MotorState.STALLED,
})


class MotorSnapshot(BaseModel):
    """
    Point-in-time reading of a tacho-motor.

    Each field comes from its own attribute read, so the snapshot is not
    atomic with respect to concurrent writers.
    """
    timestamp: datetime = Field(default_factory=datetime.now)
    motor: str = Field(..., description="Motor device name, e.g. motor0")
    address: str
    driver: str

    duty_cycle: int
    speed: int
    position: int

    polarity: Polarity
    stop_command: Optional[str] = None
    state: MotorState = MotorState(0)

    @property
    def is_running(self) -> bool:
        """Whether the running bit is set."""
        return bool(self.state & MotorState.RUNNING)

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary for serialization."""
        data = self.model_dump()
        data["state"] = self.state.names()
        return data
