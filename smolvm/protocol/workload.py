"""Messages exchanged between the host and a workload VM."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from smolvm.protocol.wire import (
    _ENV,
    _STRINGS,
    _Tagged,
    _byte_string,
    _expect_bool,
    _expect_str,
    _optional,
    _signed,
    _unsigned,
)

_u32 = _unsigned(32)
_u64 = _unsigned(64)
_i32 = _signed(32)


class HostMessage(_Tagged):
    """Base of messages from host to workload VM; tagged by ``type``."""

    TAG_KEY: ClassVar[str] = "type"
    _VARIANTS: ClassVar[dict] = {}

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object for this message, tagged by ``type``."""
        return super().to_dict()


@dataclass(frozen=True)
class Auth(HostMessage):
    """Authenticate with the workload VM."""

    TAG = "auth"
    _SCHEMA = {"token": _expect_str, "protocol_version": _u32}

    token: str
    protocol_version: int


@dataclass(frozen=True)
class Run(HostMessage):
    """Run a command."""

    TAG = "run"
    _SCHEMA = {
        "request_id": _u64,
        "command": _STRINGS,
        "env": _ENV,
        "workdir": _optional(_expect_str),
    }

    request_id: int
    command: list[str]
    env: list[tuple[str, str]]
    workdir: str | None = None


@dataclass(frozen=True)
class Exec(HostMessage):
    """Execute a command in the running VM."""

    TAG = "exec"
    _SCHEMA = {"request_id": _u64, "command": _STRINGS, "tty": _expect_bool}

    request_id: int
    command: list[str]
    tty: bool


@dataclass(frozen=True)
class Signal(HostMessage):
    """Send a signal to a running command."""

    TAG = "signal"
    _SCHEMA = {"request_id": _u64, "signal": _i32}

    request_id: int
    signal: int


@dataclass(frozen=True)
class Stop(HostMessage):
    """Ask for graceful shutdown."""

    TAG = "stop"
    _SCHEMA = {"timeout_ms": _u64}

    timeout_ms: int


class GuestMessage(_Tagged):
    """Base of messages from workload VM to host; tagged by ``type``."""

    TAG_KEY: ClassVar[str] = "type"
    _VARIANTS: ClassVar[dict] = {}

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object for this message, tagged by ``type``."""
        return super().to_dict()


@dataclass(frozen=True)
class AuthOk(GuestMessage):
    """Authentication succeeded."""

    TAG = "auth_ok"


@dataclass(frozen=True)
class AuthFailed(GuestMessage):
    """Authentication failed."""

    TAG = "auth_failed"


@dataclass(frozen=True)
class Ready(GuestMessage):
    """The VM accepts commands."""

    TAG = "ready"


@dataclass(frozen=True)
class Started(GuestMessage):
    """A command started."""

    TAG = "started"
    _SCHEMA = {"request_id": _u64}

    request_id: int


@dataclass(frozen=True)
class Stdout(GuestMessage):
    """Standard output of a command."""

    TAG = "stdout"
    _SCHEMA = {"request_id": _u64, "data": _byte_string, "truncated": _expect_bool}

    request_id: int
    data: bytes
    truncated: bool


@dataclass(frozen=True)
class Stderr(GuestMessage):
    """Standard error of a command."""

    TAG = "stderr"
    _SCHEMA = {"request_id": _u64, "data": _byte_string, "truncated": _expect_bool}

    request_id: int
    data: bytes
    truncated: bool


@dataclass(frozen=True)
class Exit(GuestMessage):
    """A command exited."""

    TAG = "exit"
    _SCHEMA = {"request_id": _u64, "code": _i32, "reason": _expect_str}

    request_id: int
    code: int
    reason: str


@dataclass(frozen=True)
class Error(GuestMessage):
    """An error occurred, possibly tied to a request."""

    TAG = "error"
    _SCHEMA = {"request_id": _optional(_u64), "message": _expect_str}

    message: str
    request_id: int | None = None


def parse_host_message(data: Any) -> HostMessage:
    """Build a host message from its decoded JSON object."""
    return HostMessage.from_dict(data)


def parse_guest_message(data: Any) -> GuestMessage:
    """Build a guest message from its decoded JSON object."""
    return GuestMessage.from_dict(data)