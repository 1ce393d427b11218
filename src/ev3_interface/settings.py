"""
EV3 Interface - Settings
=========================
Sysfs layout configuration and logging setup.

The layout is loaded once (usually at startup) and is immutable afterwards.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent.parent

DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "sysfs.yaml"


class SysfsLayout(BaseModel):
    """Where the ev3dev drivers export lego ports and tacho-motors."""
    model_config = ConfigDict(frozen=True)

    lego_port_root: Path = Path("/sys/class/lego-port")
    tacho_motor_root: Path = Path("/sys/class/tacho-motor")

    # Device entry names are <motor_prefix><id>, candidate ports <port_prefix><n>
    motor_prefix: str = Field("motor", min_length=1)
    port_prefix: str = Field("port", min_length=1)
    tacho_motor_dir: str = Field("tacho-motor", min_length=1)

    max_ports: int = Field(8, ge=1, description="Number of ports scanned when none is given")

    def motor_name(self, motor_id: int) -> str:
        """Path segment naming the motor with the given id."""
        return f"{self.motor_prefix}{motor_id}"

    def port_name(self, index: int) -> str:
        """Candidate port name for a scan index."""
        return f"{self.port_prefix}{index}"


def load_layout(config_path: Optional[Path] = None) -> SysfsLayout:
    """
    Load the sysfs layout from a YAML file.

    The file holds a top-level ``sysfs`` mapping whose keys are SysfsLayout
    fields. A missing file yields the default layout.

    Args:
        config_path: Path to the YAML file, defaults to config/sysfs.yaml

    Returns:
        Validated layout

    Raises:
        pydantic.ValidationError: If a value in the file is invalid
    """
    config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        logger.warning(f"Config file not found: {config_path}, using default sysfs layout")
        return SysfsLayout()

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}
    logger.info(f"Configuration loaded from {config_path}")

    return SysfsLayout(**config.get("sysfs", {}))


def setup_logging(verbose: bool = False, log_dir: Optional[Path] = None) -> None:
    """Configure loguru sinks for console and, optionally, a log directory."""
    logger.remove()  # Remove default handler

    level = "DEBUG" if verbose else "INFO"

    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True
    )

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "ev3_tacho_{time}.log",
            rotation="10 MB",
            retention="7 days",
            level="DEBUG"
        )
