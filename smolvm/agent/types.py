"""Configuration values for the agent VM."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_MEMORY_MIB = 256
"""Default agent VM memory in MiB."""

DEFAULT_CPUS = 1
"""Default agent VM vCPU count."""

AGENT_VM_NAME = "smolvm-agent"


def _check_range(name: str, value: int, bits: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {value!r}")
    if not 0 <= value < (1 << bits):
        raise ValueError(f"{name} out of range: {value}")


@dataclass(frozen=True)
class PortMapping:
    """A TCP port forwarded from the host to the guest."""

    host: int
    guest: int

    def __post_init__(self) -> None:
        _check_range("host port", self.host, 16)
        _check_range("guest port", self.guest, 16)

    @classmethod
    def same(cls, port: int) -> PortMapping:
        """Map a port to the same number inside the guest."""
        return cls(port, port)


@dataclass(frozen=True)
class VmResources:
    """vCPU count and memory of the agent VM."""

    cpus: int = DEFAULT_CPUS
    mem: int = DEFAULT_MEMORY_MIB

    def __post_init__(self) -> None:
        _check_range("cpus", self.cpus, 8)
        _check_range("mem", self.mem, 32)


@dataclass(frozen=True)
class HostMount:
    """A host directory shared into the guest."""

    source: Path
    target: Path
    read_only: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", Path(self.source))
        object.__setattr__(self, "target", Path(self.target))