"""Requests the host sends to the guest agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from smolvm.protocol.wire import (
    _ENV,
    _MOUNTS,
    _STRINGS,
    _Tagged,
    _byte_string,
    _expect_bool,
    _expect_str,
    _optional,
    _unsigned,
)

_u16 = _unsigned(16)
_u64 = _unsigned(64)


class AgentRequest(_Tagged):
    """Base of every agent request; serialized with a ``method`` tag."""

    TAG_KEY: ClassVar[str] = "method"
    _VARIANTS: ClassVar[dict] = {}

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object for this request, tagged by ``method``."""
        return super().to_dict()


@dataclass(frozen=True)
class Ping(AgentRequest):
    """Check that the agent is alive."""

    TAG = "ping"


@dataclass(frozen=True)
class Pull(AgentRequest):
    """Pull an OCI image and extract its layers."""

    TAG = "pull"
    _SCHEMA = {"image": _expect_str, "platform": _optional(_expect_str)}

    image: str
    platform: str | None = None


@dataclass(frozen=True)
class Query(AgentRequest):
    """Ask whether an image exists locally."""

    TAG = "query"
    _SCHEMA = {"image": _expect_str}

    image: str


@dataclass(frozen=True)
class ListImages(AgentRequest):
    """List all cached images."""

    TAG = "list_images"


@dataclass(frozen=True)
class GarbageCollect(AgentRequest):
    """Collect unused layers."""

    TAG = "garbage_collect"
    _SCHEMA = {"dry_run": _expect_bool}

    dry_run: bool


@dataclass(frozen=True)
class PrepareOverlay(AgentRequest):
    """Prepare an overlay rootfs for a workload."""

    TAG = "prepare_overlay"
    _SCHEMA = {"image": _expect_str, "workload_id": _expect_str}

    image: str
    workload_id: str


@dataclass(frozen=True)
class CleanupOverlay(AgentRequest):
    """Remove a workload's overlay rootfs."""

    TAG = "cleanup_overlay"
    _SCHEMA = {"workload_id": _expect_str}

    workload_id: str


@dataclass(frozen=True)
class FormatStorage(AgentRequest):
    """Format the storage disk."""

    TAG = "format_storage"


@dataclass(frozen=True)
class StorageStatus(AgentRequest):
    """Ask for the storage disk status."""

    TAG = "storage_status"


@dataclass(frozen=True)
class NetworkTest(AgentRequest):
    """Test network connectivity from the agent itself."""

    TAG = "network_test"
    _SCHEMA = {"url": _expect_str}

    url: str


@dataclass(frozen=True)
class Shutdown(AgentRequest):
    """Shut the agent down."""

    TAG = "shutdown"


@dataclass(frozen=True)
class VmExec(AgentRequest):
    """Run a command directly in the VM, outside any container."""

    TAG = "vm_exec"
    _SCHEMA = {
        "command": _STRINGS,
        "env": _ENV,
        "workdir": _optional(_expect_str),
        "timeout_ms": _optional(_u64),
        "interactive": _expect_bool,
        "tty": _expect_bool,
    }

    command: list[str]
    env: list[tuple[str, str]] = field(default_factory=list)
    workdir: str | None = None
    timeout_ms: int | None = None
    interactive: bool = False
    tty: bool = False


@dataclass(frozen=True)
class Run(AgentRequest):
    """Run a command in an image's rootfs."""

    TAG = "run"
    _SCHEMA = {
        "image": _expect_str,
        "command": _STRINGS,
        "env": _ENV,
        "workdir": _optional(_expect_str),
        "mounts": _MOUNTS,
        "timeout_ms": _optional(_u64),
        "interactive": _expect_bool,
        "tty": _expect_bool,
    }

    image: str
    command: list[str]
    env: list[tuple[str, str]] = field(default_factory=list)
    workdir: str | None = None
    mounts: list[tuple[str, str, bool]] = field(default_factory=list)
    timeout_ms: int | None = None
    interactive: bool = False
    tty: bool = False


@dataclass(frozen=True)
class Stdin(AgentRequest):
    """Input for a running interactive command."""

    TAG = "stdin"
    _SCHEMA = {"data": _byte_string}

    data: bytes


@dataclass(frozen=True)
class Resize(AgentRequest):
    """Resize the PTY window."""

    TAG = "resize"
    _SCHEMA = {"cols": _u16, "rows": _u16}

    cols: int
    rows: int


@dataclass(frozen=True)
class CreateContainer(AgentRequest):
    """Create a long-running container from an image."""

    TAG = "create_container"
    _SCHEMA = {
        "image": _expect_str,
        "command": _STRINGS,
        "env": _ENV,
        "workdir": _optional(_expect_str),
        "mounts": _MOUNTS,
    }

    image: str
    command: list[str]
    env: list[tuple[str, str]] = field(default_factory=list)
    workdir: str | None = None
    mounts: list[tuple[str, str, bool]] = field(default_factory=list)


@dataclass(frozen=True)
class StartContainer(AgentRequest):
    """Start a created container."""

    TAG = "start_container"
    _SCHEMA = {"container_id": _expect_str}

    container_id: str


@dataclass(frozen=True)
class StopContainer(AgentRequest):
    """Stop a running container."""

    TAG = "stop_container"
    _SCHEMA = {"container_id": _expect_str, "timeout_secs": _optional(_u64)}

    container_id: str
    timeout_secs: int | None = None


@dataclass(frozen=True)
class DeleteContainer(AgentRequest):
    """Delete a container."""

    TAG = "delete_container"
    _SCHEMA = {"container_id": _expect_str, "force": _expect_bool}

    container_id: str
    force: bool = False


@dataclass(frozen=True)
class ListContainers(AgentRequest):
    """List all containers."""

    TAG = "list_containers"


@dataclass(frozen=True)
class Exec(AgentRequest):
    """Run a command in an existing container."""

    TAG = "exec"
    _SCHEMA = {
        "container_id": _expect_str,
        "command": _STRINGS,
        "env": _ENV,
        "workdir": _optional(_expect_str),
        "timeout_ms": _optional(_u64),
    }

    container_id: str
    command: list[str]
    env: list[tuple[str, str]] = field(default_factory=list)
    workdir: str | None = None
    timeout_ms: int | None = None


def parse_request(data: Any) -> AgentRequest:
    """Build an agent request from its decoded JSON object."""
    return AgentRequest.from_dict(data)