"""Volume mount parsing and start-up messages for the microvm commands."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from smolvm.agent.types import HostMount, PortMapping
from smolvm.errors import MountError


def _split_spec(spec: str) -> tuple[str, str, bool]:
    parts = spec.split(":")
    if len(parts) < 2:
        raise MountError(
            f"invalid volume specification '{spec}': expected host:container[:ro]"
        )
    read_only = len(parts) > 2 and parts[2] == "ro"
    return parts[0], parts[1], read_only


def _resolve_host_dir(raw: str, not_dir_message: str) -> Path:
    host_path = Path(raw)
    if not host_path.exists():
        raise MountError(f"host path does not exist: {host_path}")
    if not host_path.is_dir():
        raise MountError(f"{not_dir_message}: {host_path}")
    try:
        return host_path.resolve(strict=True)
    except OSError as exc:
        raise MountError(f"failed to resolve host path '{raw}': {exc}") from exc


def parse_mounts(specs: Sequence[str]) -> list[HostMount]:
    """Parse ``host:guest[:ro]`` specs into mounts of existing host directories."""
    mounts = []
    for spec in specs:
        host, guest, read_only = _split_spec(spec)
        source = _resolve_host_dir(
            host, "host path must be a directory (virtiofs limitation)"
        )
        mounts.append(HostMount(source=source, target=Path(guest), read_only=read_only))
    return mounts


def parse_mounts_as_tuples(specs: Sequence[str]) -> list[tuple[str, str, bool]]:
    """Parse ``host:guest[:ro]`` specs into ``(host, guest, read_only)`` for storage."""
    mounts = []
    for spec in specs:
        host, guest, read_only = _split_spec(spec)
        source = _resolve_host_dir(host, "host path must be a directory")
        mounts.append((str(source), guest, read_only))
    return mounts


def mount_bindings(mounts: Sequence[HostMount]) -> list[tuple[str, str, bool]]:
    """Turn mounts into ``(virtiofs_tag, guest_path, read_only)`` for the agent."""
    return [
        (f"smolvm{index}", str(mount.target), mount.read_only)
        for index, mount in enumerate(mounts)
    ]


def describe_startup(mounts: Sequence[HostMount], ports: Sequence[PortMapping]) -> str:
    """Return the message shown while an ephemeral microvm starts."""
    mount_info = f" with {len(mounts)} mount(s)" if mounts else ""
    port_info = f" and {len(ports)} port mapping(s)" if ports else ""
    return f"Starting microvm{mount_info}{port_info}..."