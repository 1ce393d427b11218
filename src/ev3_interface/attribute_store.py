"""
Attribute Store
================
Whole-value access to the text attribute files exported by the ev3dev
kernel drivers.

Every entry is read or written in a single operation. Failures are raised
as the OSError the host produced; callers decide how to classify them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

PathLike = Union[str, Path]


class AttributeStore(ABC):
    """Abstract hierarchical key-value file space keyed by path."""

    @abstractmethod
    def read(self, path: PathLike) -> str:
        """Return the whole text value stored at path.

        Raises:
            OSError: If the entry cannot be read.
            UnicodeDecodeError: If the value is not valid UTF-8.
        """

    @abstractmethod
    def write(self, path: PathLike, data: str) -> None:
        """Replace the value stored at path with data.

        Raises:
            OSError: If the host rejects the write.
        """

    @abstractmethod
    def list_dir(self, path: PathLike) -> List[str]:
        """List entry names directly below path, sorted.

        Raises:
            OSError: If path is not an enumerable directory.
        """

    @abstractmethod
    def is_dir(self, path: PathLike) -> bool:
        """Whether path names a directory."""


class SysfsAttributeStore(AttributeStore):
    """
    Attribute store backed by the real filesystem.

    Usage:
        store = SysfsAttributeStore()
        store.read("/sys/class/tacho-motor/motor0/driver_name")
    """

    def read(self, path: PathLike) -> str:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def write(self, path: PathLike, data: str) -> None:
        # sysfs attributes take the whole value in one write call
        with open(path, "w", encoding="utf-8") as f:
            f.write(data)

    def list_dir(self, path: PathLike) -> List[str]:
        return sorted(entry.name for entry in Path(path).iterdir())

    def is_dir(self, path: PathLike) -> bool:
        return Path(path).is_dir()
