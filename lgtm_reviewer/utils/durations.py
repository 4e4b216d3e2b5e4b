"""Parsing for duration strings such as ``"1m30s"`` or ``"500ms"``."""

import re

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION = re.compile(r"^(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|ms|s|m|h))+$")


def parse_duration(value: str) -> float:
    """Convert a duration string to seconds.

    Accepts a sequence of decimal numbers each followed by a unit
    (``ns``, ``us``, ``ms``, ``s``, ``m``, ``h``), e.g. ``"15s"``,
    ``"1.5s"`` or ``"2h45m"``. A bare ``"0"`` is also accepted.

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value.strip()
    if text == "0":
        return 0.0
    if not _DURATION.match(text):
        raise ValueError(f"invalid duration: {value!r}")

    return sum(
        float(amount) * _UNIT_SECONDS[unit] for amount, unit in _COMPONENT.findall(text)
    )
