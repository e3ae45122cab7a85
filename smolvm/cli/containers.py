"""Helpers behind the container management commands."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

from smolvm.errors import MountError
from smolvm.protocol.models import ContainerInfo

_ROW = "{:<16} {:<20} {:<12} {:<30}"


def parse_env(specs: Iterable[str]) -> list[tuple[str, str]]:
    """Parse ``KEY=VALUE`` specs, dropping those without ``=`` or with an empty key."""
    env = []
    for spec in specs:
        key, sep, value = spec.partition("=")
        if sep and key:
            env.append((key, value))
    return env


def parse_mounts_to_bindings(specs: Sequence[str]) -> list[tuple[str, str, bool]]:
    """Turn ``host:container[:ro]`` specs into ``(tag, container_path, read_only)``."""
    bindings = []
    for index, spec in enumerate(specs):
        parts = spec.split(":")
        if len(parts) < 2:
            raise MountError(
                f"invalid volume specification '{spec}': expected host:container[:ro]"
            )
        host_path = Path(parts[0])
        read_only = len(parts) > 2 and parts[2] == "ro"
        if not host_path.exists():
            raise MountError(f"host path does not exist: {host_path}")
        bindings.append((f"smolvm{index}", parts[1], read_only))
    return bindings


def default_container_command(command: Sequence[str]) -> list[str]:
    """Return the command, or ``sleep infinity`` when it is empty."""
    return list(command) if command else ["sleep", "infinity"]


def _visible(containers: Iterable[ContainerInfo], show_all: bool) -> Iterable[ContainerInfo]:
    return (c for c in containers if show_all or c.state == "running")


def _shorten(text: str, limit: int, keep: int) -> str:
    return f"{text[:keep]}..." if len(text) > limit else text


def format_container_table(containers: Sequence[ContainerInfo], show_all: bool = False) -> str:
    """Render containers as a table; stopped ones only when ``show_all``."""
    if not containers:
        return "No containers"
    lines = [_ROW.format("CONTAINER ID", "IMAGE", "STATE", "COMMAND")]
    for container in _visible(containers, show_all):
        lines.append(
            _ROW.format(
                container.id[:12],
                _shorten(container.image, 18, 15),
                container.state,
                _shorten(" ".join(container.command), 28, 25),
            )
        )
    return "\n".join(lines)


def container_ids(containers: Iterable[ContainerInfo], show_all: bool = False) -> list[str]:
    """Return container IDs; stopped ones only when ``show_all``."""
    return [c.id for c in _visible(containers, show_all)]