"""Parsers and formatters for microvm command-line arguments."""

from __future__ import annotations

import re
from datetime import timedelta

from smolvm.agent.types import PortMapping

_NANOS_PER_SECOND = 1_000_000_000

_UNITS: dict[str, int] = {}
for _names, _nanos in (
    (("nsec", "ns"), 1),
    (("usec", "us"), 1_000),
    (("msec", "ms"), 1_000_000),
    (("seconds", "second", "sec", "s"), _NANOS_PER_SECOND),
    (("minutes", "minute", "min", "m"), 60 * _NANOS_PER_SECOND),
    (("hours", "hour", "hr", "h"), 3_600 * _NANOS_PER_SECOND),
    (("days", "day", "d"), 86_400 * _NANOS_PER_SECOND),
    (("weeks", "week", "w"), 604_800 * _NANOS_PER_SECOND),
    (("months", "month", "M"), 2_630_016 * _NANOS_PER_SECOND),
    (("years", "year", "y"), 31_557_600 * _NANOS_PER_SECOND),
):
    for _name in _names:
        _UNITS[_name] = _nanos

_DURATION_PART = re.compile(r"\s*([0-9]+)\s*([A-Za-z]*)")
_PORT = re.compile(r"\+?[0-9]+")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``30s``, ``5m``, ``1h 30m`` or ``2days``."""
    if not text.strip():
        raise ValueError("value was empty")
    total_nanos = 0
    position = 0
    length = len(text.rstrip())
    while position < length:
        match = _DURATION_PART.match(text, position)
        if match is None:
            raise ValueError(f"expected number at {position}")
        number, unit = match.groups()
        if not unit:
            raise ValueError(f"time unit needed, for example {number}sec or {number}ms")
        if unit not in _UNITS:
            raise ValueError(f"unknown time unit {unit!r}")
        total_nanos += int(number) * _UNITS[unit]
        position = match.end()
    return timedelta(microseconds=total_nanos // 1_000)


def _port_number(text: str, message: str) -> int:
    if not _PORT.fullmatch(text):
        raise ValueError(message)
    value = int(text)
    if value > 0xFFFF:
        raise ValueError(message)
    return value


def parse_port(spec: str) -> PortMapping:
    """Parse ``HOST:GUEST`` or a single ``PORT`` into a port mapping."""
    host, sep, guest = spec.partition(":")
    if sep:
        return PortMapping(
            _port_number(host, f"invalid host port: {host}"),
            _port_number(guest, f"invalid guest port: {guest}"),
        )
    return PortMapping.same(_port_number(spec, f"invalid port: {spec}"))


def parse_env_spec(spec: str) -> tuple[str, str] | None:
    """Parse ``KEY=VALUE``; return ``None`` without ``=`` or with an empty key."""
    key, sep, value = spec.partition("=")
    if not sep or not key:
        return None
    return key, value


def microvm_label(name: str | None) -> str:
    """Return the display label of a microvm: its name, or ``default``."""
    return "default" if name is None else name


def truncate(text: str, limit: int) -> str:
    """Shorten ``text`` to ``limit`` characters, ending in ``...`` when cut."""
    if len(text) <= limit:
        return text
    if limit < 3:
        raise ValueError(f"limit too small to truncate: {limit}")
    return f"{text[: limit - 3]}..."