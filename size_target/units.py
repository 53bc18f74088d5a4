"""
units.py - Human-readable byte sizes ("500KB", "1.5 MB", "2MiB") to integers.

K/M/G are decimal (1000-based); KiB/MiB/GiB are binary (1024-based).
"""

import re
from decimal import Decimal

_UNITS = {
    "": 1,
    "b": 1,
    "k": 1000,
    "kb": 1000,
    "m": 1000 ** 2,
    "mb": 1000 ** 2,
    "g": 1000 ** 3,
    "gb": 1000 ** 3,
    "ki": 1024,
    "kib": 1024,
    "mi": 1024 ** 2,
    "mib": 1024 ** 2,
    "gi": 1024 ** 3,
    "gib": 1024 ** 3,
}

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*([a-zA-Z]*)\s*$")


def parse_size(text: str) -> int:
    """
    Parse a size string into a positive number of bytes.

    Fractions are allowed and rounded down to whole bytes.

    Raises:
        ValueError: unparseable, unknown unit, or not at least 1 byte
    """
    match = _SIZE_RE.match(text)
    if not match:
        raise ValueError(f"Invalid size: {text!r}")

    number, unit = match.groups()
    multiplier = _UNITS.get(unit.lower())
    if multiplier is None:
        raise ValueError(f"Unknown size unit {unit!r} in {text!r}")

    size = int(Decimal(number) * multiplier)
    if size <= 0:
        raise ValueError(f"Size must be at least 1 byte: {text!r}")
    return size
