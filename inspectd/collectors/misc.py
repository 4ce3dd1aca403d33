import math

from inspectd.metrics.kinds import UINT64_MASK

def parse_uint(s: str) -> int:
    """Decimal uint64, 0 when s is not one."""
    s = s.strip()
    if not (s.isascii() and s.isdigit()):
        return 0
    value = int(s)
    if value > UINT64_MASK:
        return 0
    return value

def parse_float(s: str) -> float:
    try:
        return float(s)
    except ValueError:
        return math.nan

def read_uint_from_file(path: str) -> int:
    try:
        with open(path) as f:
            return parse_uint(f.readline())
    except OSError:
        return 0

_BYTE_UNITS = ("KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")
_BIT_UNITS = ("Kb", "Mb", "Gb", "Tb", "Pb", "Eb", "Zb", "Yb")

def _human(value: float, units, base_unit: str) -> str:
    for power in range(len(units), 0, -1):
        scale = float(1 << (10 * power))
        if value >= scale:
            return f"{value / scale:.2f}{units[power - 1]}"
    return f"{value:.2f}{base_unit}"

class ByteSize(float):
    """Byte count that prints in binary units, e.g. 1.50MB."""

    def __str__(self) -> str:
        return _human(float(self), _BYTE_UNITS, "B")

class BitSize(float):
    def __str__(self) -> str:
        return _human(float(self), _BIT_UNITS, "b")
