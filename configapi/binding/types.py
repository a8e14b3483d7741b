"""Domain scalar types used by plugin configuration fields.

``Duration`` and ``Size`` are integers internally (nanoseconds and bytes) but
travel through the API as text, e.g. ``"1h30m"`` or ``"64MiB"``. ``Number``
is a free-form numeric value that is always stored as a float.
"""

import math
import re
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Tuple

_MAX_INT64 = (1 << 63) - 1

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

_DURATION_UNITS: Dict[str, int] = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,  # U+00B5 micro sign
    "μs": MICROSECOND,  # U+03BC greek mu
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

_IEC_UNITS: Dict[str, int] = {
    "B": 1,
    "KiB": 1024,
    "MiB": 1024 ** 2,
    "GiB": 1024 ** 3,
    "TiB": 1024 ** 4,
    "PiB": 1024 ** 5,
    "EiB": 1024 ** 6,
}

_SI_UNITS: Dict[str, int] = {
    "B": 1,
    "KB": 1000,
    "MB": 1000 ** 2,
    "GB": 1000 ** 3,
    "TB": 1000 ** 4,
    "PB": 1000 ** 5,
    "EB": 1000 ** 6,
}

_IEC_PREFIXES = ["", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei"]

# A magnitude followed by a unit, e.g. "1.5h" or "512KiB".
_TERM = re.compile(r"(\d+\.?\d*|\.\d+)([^\d.]+)")


def _split_terms(text: str) -> List[Tuple[Decimal, str]]:
    """Split ``text`` into (magnitude, unit) pairs, rejecting leftovers."""
    terms = []
    pos = 0
    while pos < len(text):
        match = _TERM.match(text, pos)
        if match is None:
            raise ValueError(f"invalid term at position {pos}")
        try:
            magnitude = Decimal(match.group(1))
        except InvalidOperation as e:
            raise ValueError(f"invalid number {match.group(1)!r}") from e
        terms.append((magnitude, match.group(2)))
        pos = match.end()
    return terms


def _format_fraction(whole: int, frac: int, digits: int) -> str:
    """Render ``whole.frac`` with ``frac`` zero-padded to ``digits`` and trimmed."""
    if frac == 0:
        return str(whole)
    return f"{whole}.{str(frac).rjust(digits, '0').rstrip('0')}"


class Duration(int):
    """A signed span of time stored as nanoseconds."""

    @classmethod
    def parse(cls, text: str) -> "Duration":
        """Parse duration text such as ``"30s"``, ``"1h30m"`` or ``"-1.5ms"``.

        Raises:
            ValueError: If the text does not follow the duration grammar.
        """
        if not isinstance(text, str):
            raise ValueError(f"invalid duration {text!r}")
        body = text
        negative = False
        if body[:1] in ("-", "+"):
            negative = body[0] == "-"
            body = body[1:]
        if body == "0":
            return cls(0)
        if not body:
            raise ValueError(f"invalid duration {text!r}")

        try:
            terms = _split_terms(body)
        except ValueError as e:
            raise ValueError(f"invalid duration {text!r}: {e}") from e

        total = Decimal(0)
        for magnitude, unit in terms:
            if unit not in _DURATION_UNITS:
                raise ValueError(f"unknown unit {unit!r} in duration {text!r}")
            total += magnitude * _DURATION_UNITS[unit]

        nanos = int(total)
        if nanos > _MAX_INT64:
            raise ValueError(f"invalid duration {text!r}: out of range")
        return cls(-nanos if negative else nanos)

    @classmethod
    def from_seconds(cls, seconds: float) -> "Duration":
        """Convert a number of seconds, rejecting non-finite or out-of-range values.

        Raises:
            ValueError: If the result does not fit a signed 64-bit nanosecond count.
        """
        if isinstance(seconds, float) and not math.isfinite(seconds):
            raise ValueError(f"invalid duration {seconds!r} seconds")
        return cls._checked(int(Decimal(str(seconds)) * SECOND), f"{seconds!r} seconds")

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> "Duration":
        micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
        return cls._checked(micros * MICROSECOND, repr(delta))

    @classmethod
    def _checked(cls, nanos: int, source: str) -> "Duration":
        if abs(nanos) > _MAX_INT64:
            raise ValueError(f"invalid duration {source}: out of range")
        return cls(nanos)

    def total_seconds(self) -> float:
        return int(self) / SECOND

    def to_timedelta(self) -> timedelta:
        return timedelta(microseconds=int(self) // MICROSECOND)

    def __str__(self) -> str:
        nanos = int(self)
        if nanos == 0:
            return "0s"
        sign = "-" if nanos < 0 else ""
        u = abs(nanos)

        if u < SECOND:
            if u < MICROSECOND:
                return f"{sign}{u}ns"
            if u < MILLISECOND:
                return f"{sign}{_format_fraction(u // MICROSECOND, u % MICROSECOND, 3)}µs"
            return f"{sign}{_format_fraction(u // MILLISECOND, u % MILLISECOND, 6)}ms"

        seconds, frac = divmod(u, SECOND)
        minutes, seconds = divmod(seconds, 60)
        out = f"{_format_fraction(seconds, frac, 9)}s"
        if minutes:
            hours, minutes = divmod(minutes, 60)
            out = f"{minutes}m{out}"
            if hours:
                out = f"{hours}h{out}"
        return sign + out

    def __repr__(self) -> str:
        return f"Duration({str(self)!r})"


class Size(int):
    """A byte count with SI/IEC text parsing."""

    @classmethod
    def parse(cls, text: str) -> "Size":
        """Parse byte-size text such as ``"64MB"``, ``"1GiB"`` or ``"1024"``.

        All units in one literal must come from the same system: IEC units
        (powers of 1024) are tried first, then SI units (powers of 1000).

        Raises:
            ValueError: If the text is not a valid byte size.
        """
        if not isinstance(text, str):
            raise ValueError(f"invalid size {text!r}")
        body = text.strip()
        if body.isdigit():
            return cls(int(body))
        if not body:
            raise ValueError(f"invalid size {text!r}")

        try:
            terms = _split_terms(body)
        except ValueError as e:
            raise ValueError(f"invalid size {text!r}: {e}") from e

        for units in (_IEC_UNITS, _SI_UNITS):
            if all(unit in units for _, unit in terms):
                total = sum(magnitude * units[unit] for magnitude, unit in terms)
                return cls(int(total))
        raise ValueError(f"invalid size {text!r}: unknown or mixed units")

    def __str__(self) -> str:
        n = int(self)
        parts = []
        last = len(_IEC_PREFIXES) - 1
        for i, prefix in enumerate(_IEC_PREFIXES):
            remainder = n if i == last else n % 1024
            if remainder or (i == 0 and n == 0):
                parts.insert(0, f"{remainder}{prefix}B")
            n //= 1024
            if n == 0:
                break
        return "".join(parts)

    def __repr__(self) -> str:
        return f"Size({str(self)!r})"


class Number(float):
    """Free-form numeric value, always held as a float."""

    def __repr__(self) -> str:
        return f"Number({float(self)!r})"
