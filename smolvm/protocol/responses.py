"""Responses the guest agent sends back to the host."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from smolvm.protocol.wire import (
    _Tagged,
    _byte_string,
    _expect_str,
    _json_value,
    _optional,
    _signed,
    _unsigned,
)

_i32 = _signed(32)


class AgentResponse(_Tagged):
    """Base of every agent response; serialized with a ``status`` tag."""

    TAG_KEY: ClassVar[str] = "status"
    _VARIANTS: ClassVar[dict] = {}

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object for this response, tagged by ``status``."""
        return super().to_dict()


@dataclass(frozen=True)
class Ok(AgentResponse):
    """The operation succeeded, with optional data."""

    TAG = "ok"
    _SCHEMA = {"data": _optional(_json_value)}
    _SKIP_NONE = frozenset({"data"})

    data: Any = None


@dataclass(frozen=True)
class Pong(AgentResponse):
    """Answer to a ping."""

    TAG = "pong"
    _SCHEMA = {"version": _unsigned(32)}

    version: int


@dataclass(frozen=True)
class Progress(AgentResponse):
    """Progress of a long operation."""

    TAG = "progress"
    _SCHEMA = {
        "message": _expect_str,
        "percent": _optional(_unsigned(8)),
        "layer": _optional(_expect_str),
    }
    _SKIP_NONE = frozenset({"percent", "layer"})

    message: str
    percent: int | None = None
    layer: str | None = None


@dataclass(frozen=True)
class Error(AgentResponse):
    """The operation failed."""

    TAG = "error"
    _SCHEMA = {"message": _expect_str, "code": _optional(_expect_str)}
    _SKIP_NONE = frozenset({"code"})

    message: str
    code: str | None = None


@dataclass(frozen=True)
class Completed(AgentResponse):
    """A non-interactive command finished."""

    TAG = "completed"
    _SCHEMA = {"exit_code": _i32, "stdout": _expect_str, "stderr": _expect_str}

    exit_code: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class Started(AgentResponse):
    """An interactive command is running."""

    TAG = "started"


@dataclass(frozen=True)
class Stdout(AgentResponse):
    """Standard output of an interactive command."""

    TAG = "stdout"
    _SCHEMA = {"data": _byte_string}

    data: bytes


@dataclass(frozen=True)
class Stderr(AgentResponse):
    """Standard error of an interactive command."""

    TAG = "stderr"
    _SCHEMA = {"data": _byte_string}

    data: bytes


@dataclass(frozen=True)
class Exited(AgentResponse):
    """An interactive command exited."""

    TAG = "exited"
    _SCHEMA = {"exit_code": _i32}

    exit_code: int


def parse_response(data: Any) -> AgentResponse:
    """Build an agent response from its decoded JSON object."""
    return AgentResponse.from_dict(data)