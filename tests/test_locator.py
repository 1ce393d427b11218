"""
Test Suite for Tacho Motor Resolution
======================================
Port lookup, the two-level directory scan and driver identity checks.
"""

import pytest

# Import modules to test
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ev3_interface import (
    AttributeIOError,
    DeviceIOError,
    DriverMismatch,
    DriverQueryError,
    IdentifierParseError,
    LegoPortResolver,
    PortResolutionError,
    ResolutionNotFound,
    StructuralMismatch,
    SysfsLayout,
    TachoMotorLocator,
    tacho_motor_for,
)
from ev3_simulation import VirtualSysfs

L_MOTOR = "lego-ev3-l-motor"
M_MOTOR = "lego-ev3-m-motor"


def motor_dir(sysfs: VirtualSysfs, port: str, driver: str) -> Path:
    """Tacho-motor directory in the port namespace built by add_tacho_motor."""
    return sysfs.layout.lego_port_root / port / f"{port}:tacho-device" / f"{port}:{driver}" / "tacho-motor"


class TestResolution:
    """Tests for resolving an explicit port."""

    def setup_method(self):
        """Setup test fixtures."""
        self.sysfs = VirtualSysfs()
        self.locator = TachoMotorLocator(self.sysfs, self.sysfs.layout)

    def test_resolves_motor_id(self):
        """The id comes from the single motor entry."""
        self.sysfs.add_tacho_motor("port2", L_MOTOR, motor_id=3)

        motor = self.locator.find("port2", L_MOTOR)

        assert motor.id == 3
        assert motor.driver() == L_MOTOR

    def test_resolution_is_deterministic(self):
        """Repeated resolution yields the same id."""
        self.sysfs.add_tacho_motor("port0", L_MOTOR, motor_id=0)
        self.sysfs.add_tacho_motor("port1", M_MOTOR, motor_id=1)

        ids = {self.locator.find("port1", M_MOTOR).id for _ in range(5)}

        assert ids == {1}

    def test_module_level_helper(self):
        """tacho_motor_for builds a locator for one call."""
        self.sysfs.add_tacho_motor("port0", L_MOTOR, motor_id=4)

        motor = tacho_motor_for("port0", L_MOTOR, store=self.sysfs, layout=self.sysfs.layout)

        assert motor.id == 4

    def test_resolution_writes_nothing(self):
        """Resolution is read-only."""
        self.sysfs.add_tacho_motor("port0", L_MOTOR, motor_id=0)

        self.locator.find("port0", L_MOTOR)

        assert self.sysfs.writes == []


class TestDriverMismatch:
    """Tests for the soft driver mismatch signal."""

    def test_mismatch_carries_handle(self):
        """Mismatch returns the handle alongside want and have."""
        sysfs = VirtualSysfs()
        sysfs.add_tacho_motor("port0", M_MOTOR, motor_id=5)
        locator = TachoMotorLocator(sysfs, sysfs.layout)

        with pytest.raises(DriverMismatch) as exc_info:
            locator.find("port0", L_MOTOR)

        error = exc_info.value
        assert error.want == L_MOTOR
        assert error.have == M_MOTOR
        assert error.motor is not None
        assert error.motor.id == 5
        assert error.motor.speed() == 0

    def test_driver_query_failure_is_fatal(self):
        """An unreadable driver name aborts resolution."""
        sysfs = VirtualSysfs()
        path = sysfs.add_tacho_motor("port0", L_MOTOR, motor_id=0)
        sysfs.fail(f"{path}/driver_name")
        locator = TachoMotorLocator(sysfs, sysfs.layout)

        with pytest.raises(DriverQueryError, match="could not get driver name") as exc_info:
            locator.find("port0", L_MOTOR)

        assert isinstance(exc_info.value.__cause__, AttributeIOError)


class TestPortScan:
    """Tests for resolution with an empty port."""

    def test_finds_first_matching_port(self):
        """The scan returns the first port whose motor has the driver."""
        sysfs = VirtualSysfs()
        sysfs.add_tacho_motor("port0", M_MOTOR, motor_id=0)
        sysfs.add_tacho_motor("port3", L_MOTOR, motor_id=1)
        sysfs.add_tacho_motor("port6", L_MOTOR, motor_id=2)

        motor = TachoMotorLocator(sysfs, sysfs.layout).find("", L_MOTOR)

        assert motor.id == 1

    def test_scan_bound(self):
        """Only ports 0..7 are scanned."""
        sysfs = VirtualSysfs()
        sysfs.add_tacho_motor("port8", L_MOTOR, motor_id=0)
        locator = TachoMotorLocator(sysfs, sysfs.layout)

        with pytest.raises(ResolutionNotFound) as exc_info:
            locator.find("", L_MOTOR)

        assert exc_info.value.driver == L_MOTOR
        assert locator.find("port8", L_MOTOR).id == 0

    def test_last_port_in_bound(self):
        """port7 is still inside the scan."""
        sysfs = VirtualSysfs()
        sysfs.add_tacho_motor("port7", L_MOTOR, motor_id=9)

        assert TachoMotorLocator(sysfs, sysfs.layout).find("", L_MOTOR).id == 9

    def test_configured_bound(self):
        """max_ports narrows the scan."""
        sysfs = VirtualSysfs(layout=SysfsLayout(max_ports=2))
        sysfs.add_tacho_motor("port2", L_MOTOR, motor_id=0)

        with pytest.raises(ResolutionNotFound):
            TachoMotorLocator(sysfs, sysfs.layout).find("", L_MOTOR)

    def test_no_ports(self):
        """An empty lego-port class yields ResolutionNotFound."""
        sysfs = VirtualSysfs()

        with pytest.raises(ResolutionNotFound, match=L_MOTOR):
            TachoMotorLocator(sysfs, sysfs.layout).find("", L_MOTOR)


class TestStructure:
    """Tests for malformed port namespaces."""

    def setup_method(self):
        """Setup test fixtures."""
        self.sysfs = VirtualSysfs()
        self.sysfs.add_tacho_motor("port0", L_MOTOR, motor_id=0)
        self.locator = TachoMotorLocator(self.sysfs, self.sysfs.layout)
        self.motors = motor_dir(self.sysfs, "port0", L_MOTOR)

    def test_two_entries(self):
        """Two motor entries are an error, never a silent pick."""
        self.sysfs.add_dir(self.motors / "motor1")

        with pytest.raises(StructuralMismatch) as exc_info:
            self.locator.find("port0", L_MOTOR)

        assert exc_info.value.entries == ["motor0", "motor1"]
        assert exc_info.value.path == str(self.motors)

    def test_zero_entries(self):
        """An empty tacho-motor directory is an error."""
        self.sysfs.remove(self.motors / "motor0")

        with pytest.raises(StructuralMismatch) as exc_info:
            self.locator.find("port0", L_MOTOR)

        assert exc_info.value.entries == []

    def test_not_a_motor(self):
        """The single entry must carry the motor prefix."""
        self.sysfs.remove(self.motors / "motor0")
        self.sysfs.add_dir(self.motors / "sensor0")

        with pytest.raises(StructuralMismatch, match="not a motor"):
            self.locator.find("port0", L_MOTOR)

    def test_non_numeric_id(self):
        """A non-numeric suffix fails to parse."""
        self.sysfs.remove(self.motors / "motor0")
        self.sysfs.add_dir(self.motors / "motorX")

        with pytest.raises(IdentifierParseError) as exc_info:
            self.locator.find("port0", L_MOTOR)

        assert exc_info.value.device == "motorX"

    def test_unmatched_mapping(self):
        """A mapping entry for another port surfaces as an I/O failure."""
        self.sysfs.set(self.sysfs.layout.lego_port_root / "port1" / "address", "port1\n")
        self.sysfs.add_dir(motor_dir(self.sysfs, "port1", L_MOTOR).parent.parent / "outB:x" / "tacho-motor" / "motor1")

        with pytest.raises(DeviceIOError):
            self.locator.find("port1", L_MOTOR)


class TestPortResolver:
    """Tests for the lego-port resolver."""

    def setup_method(self):
        """Setup test fixtures."""
        self.sysfs = VirtualSysfs()
        self.resolver = LegoPortResolver(self.sysfs, self.sysfs.layout)

    def test_empty_port(self):
        """An empty port name resolves to no port."""
        assert self.resolver.port_for("") is None

    def test_unknown_port(self):
        """Unknown ports fail with PortResolutionError from find as well."""
        with pytest.raises(PortResolutionError) as exc_info:
            TachoMotorLocator(self.sysfs, self.sysfs.layout).find("port3", L_MOTOR)

        assert exc_info.value.port == "port3"

    def test_nothing_connected(self):
        """A port without a device node has nothing connected."""
        self.sysfs.set(self.sysfs.layout.lego_port_root / "port4" / "address", "port4\n")

        with pytest.raises(PortResolutionError, match="no device connected"):
            TachoMotorLocator(self.sysfs, self.sysfs.layout).find("port4", L_MOTOR)

    def test_connected_device(self):
        """The device node is the port-prefixed subdirectory."""
        self.sysfs.add_tacho_motor("port1", L_MOTOR, motor_id=0, device="ev3-dev")

        port = self.resolver.port_for("port1")

        assert str(port) == "port1"
        assert self.resolver.connected_to(port) == "port1:ev3-dev"

    def test_helper_directories_skipped(self):
        """power/ and subsystem beside the device node are not devices."""
        port_path = self.sysfs.layout.lego_port_root / "port1"
        self.sysfs.add_dir(port_path / "power")
        self.sysfs.add_dir(port_path / "subsystem")
        self.sysfs.add_tacho_motor("port1", L_MOTOR, motor_id=0, device="ev3-dev")

        assert self.resolver.connected_to(self.resolver.port_for("port1")) == "port1:ev3-dev"
        assert TachoMotorLocator(self.sysfs, self.sysfs.layout).find("port1", L_MOTOR).id == 0

    def test_only_helper_directories(self):
        """A port holding only helper directories has nothing connected."""
        port_path = self.sysfs.layout.lego_port_root / "port4"
        self.sysfs.set(port_path / "address", "port4\n")
        self.sysfs.add_dir(port_path / "power")
        self.sysfs.add_dir(port_path / "outA:device")

        with pytest.raises(PortResolutionError, match="no device connected"):
            self.resolver.connected_to(self.resolver.port_for("port4"))


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
