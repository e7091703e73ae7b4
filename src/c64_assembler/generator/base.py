"""
Generator base class and hexdump formatting.
"""

from abc import ABC, abstractmethod
from typing import Any

from c64_assembler.program import Application


class Generator(ABC):
    """Produces one kind of output for an application."""

    @abstractmethod
    def generate(self, application: Application, *args: Any) -> Any:
        """Generate the output for the given application."""


def format_hexdump(data: bytes, start: int = 0) -> str:
    """
    Render bytes as a hexdump, 16 bytes per line in groups of 4.

        0000:  00 08 00 0C  08 0A 00 9E  20 32 30 36  32 00 00 00
        0010:  A9 00 8D 20  D0 60

    Args:
        data: Bytes to render
        start: Offset shown for the first byte
    """
    lines = []
    for offset in range(0, len(data), 16):
        row = data[offset:offset + 16]
        groups = [
            " ".join(f"{byte:02X}" for byte in row[index:index + 4])
            for index in range(0, len(row), 4)
        ]
        lines.append(f"{start + offset:04X}:  " + "  ".join(groups))
    return "\n".join(lines)
