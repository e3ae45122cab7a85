"""Client for the request/response protocol spoken by the guest agent."""

from __future__ import annotations

import logging
import os
import socket
import sys
from contextlib import contextmanager
from datetime import timedelta
from types import TracebackType
from typing import Any, BinaryIO, Callable, Iterator, NamedTuple, NoReturn, Sequence, TypeVar

from smolvm.agent.transport import DEFAULT_TIMEOUT, Transport
from smolvm.errors import AgentError
from smolvm.protocol import requests
from smolvm.protocol.models import ContainerInfo, ImageInfo, OverlayInfo, StorageStatus
from smolvm.protocol.responses import (
    AgentResponse,
    Completed,
    Error,
    Exited,
    Ok,
    Pong,
    Started,
    Stderr,
    Stdout,
)

_log = logging.getLogger(__name__)

T = TypeVar("T")

RESPONSE_GRACE = 5.0
"""Seconds added to a command timeout while waiting for its response."""

LONG_TIMEOUT = 3600.0
"""Socket timeout used for commands without a timeout and interactive sessions."""

Timeout = "float | timedelta | None"


class CommandOutput(NamedTuple):
    """Result of a non-interactive command."""

    exit_code: int
    stdout: str
    stderr: str


def _seconds(timeout: float | timedelta | None) -> float | None:
    if timeout is None:
        return None
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)


def _millis(seconds: float | None) -> int | None:
    return None if seconds is None else int(seconds * 1000)


def _fail(response: AgentResponse) -> NoReturn:
    if isinstance(response, Error):
        raise AgentError(response.message)
    raise AgentError("unexpected response")


def _convert(factory: Callable[[Any], T], data: Any) -> T:
    try:
        return factory(data)
    except (ValueError, TypeError) as exc:
        raise AgentError(str(exc)) from exc


def _list_of(factory: Callable[[Any], T]) -> Callable[[Any], list[T]]:
    def convert(data: Any) -> list[T]:
        if not isinstance(data, list):
            raise ValueError(f"invalid type: expected a sequence, got {data!r}")
        return [factory(item) for item in data]

    return convert


def _ok_data(response: AgentResponse) -> Any:
    if isinstance(response, Ok) and response.data is not None:
        return response.data
    _fail(response)


def _expect_ok(response: AgentResponse) -> None:
    if not isinstance(response, Ok):
        _fail(response)


def _expect_completed(response: AgentResponse) -> CommandOutput:
    if isinstance(response, Completed):
        return CommandOutput(response.exit_code, response.stdout, response.stderr)
    _fail(response)


class AgentClient:
    """Sends requests to the guest agent and interprets its answers."""

    def __init__(
        self,
        transport: Transport,
        *,
        stdout: BinaryIO | None = None,
        stderr: BinaryIO | None = None,
    ) -> None:
        self._transport = transport
        self._stdout = stdout
        self._stderr = stderr

    @classmethod
    def connect(cls, socket_path: str | os.PathLike) -> AgentClient:
        """Connect to the agent through its Unix socket."""
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(DEFAULT_TIMEOUT)
            sock.connect(os.fspath(socket_path))
        except OSError as exc:
            sock.close()
            raise AgentError(f"failed to connect to agent: {exc}") from exc
        return cls(Transport(sock))

    def __enter__(self) -> AgentClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection."""
        self._transport.close()

    # -- simple requests ---------------------------------------------------

    def ping(self) -> int:
        """Ping the agent and return its protocol version."""
        response = self._transport.request(requests.Ping())
        if isinstance(response, Pong):
            return response.version
        _fail(response)

    def pull(self, image: str, platform: str | None = None) -> ImageInfo:
        """Pull an OCI image, optionally for a given platform."""
        response = self._transport.request(requests.Pull(image, platform))
        return _convert(ImageInfo.from_dict, _ok_data(response))

    def query(self, image: str) -> ImageInfo | None:
        """Return the image if it is cached locally, else ``None``."""
        response = self._transport.request(requests.Query(image))
        if isinstance(response, Error) and response.code == "NOT_FOUND":
            return None
        return _convert(ImageInfo.from_dict, _ok_data(response))

    def list_images(self) -> list[ImageInfo]:
        """List all cached images."""
        response = self._transport.request(requests.ListImages())
        return _convert(_list_of(ImageInfo.from_dict), _ok_data(response))

    def garbage_collect(self, dry_run: bool = False) -> int:
        """Collect unused layers and return the number of bytes freed."""
        data = _ok_data(self._transport.request(requests.GarbageCollect(dry_run)))
        freed = data.get("freed_bytes") if isinstance(data, dict) else None
        if isinstance(freed, bool) or not isinstance(freed, int) or not 0 <= freed < 1 << 64:
            return 0
        return freed

    def prepare_overlay(self, image: str, workload_id: str) -> OverlayInfo:
        """Prepare an overlay filesystem for a workload."""
        response = self._transport.request(requests.PrepareOverlay(image, workload_id))
        return _convert(OverlayInfo.from_dict, _ok_data(response))

    def cleanup_overlay(self, workload_id: str) -> None:
        """Remove a workload's overlay filesystem."""
        _expect_ok(self._transport.request(requests.CleanupOverlay(workload_id)))

    def format_storage(self) -> None:
        """Format the storage disk."""
        _expect_ok(self._transport.request(requests.FormatStorage()))

    def storage_status(self) -> StorageStatus:
        """Return the state of the storage disk."""
        response = self._transport.request(requests.StorageStatus())
        return _convert(StorageStatus.from_dict, _ok_data(response))

    def network_test(self, url: str) -> Any:
        """Test network connectivity from the agent and return its report."""
        return _ok_data(self._transport.request(requests.NetworkTest(url)))

    def shutdown(self) -> None:
        """Ask the agent to shut down."""
        _expect_ok(self._transport.request(requests.Shutdown()))

    # -- command execution -------------------------------------------------

    @contextmanager
    def _command_timeout(self, seconds: float | None) -> Iterator[None]:
        limit = LONG_TIMEOUT if seconds is None else seconds + RESPONSE_GRACE
        self._transport.set_timeout(limit)
        try:
            yield
        finally:
            self._transport.set_timeout(DEFAULT_TIMEOUT)

    def _timed_request(self, request: requests.AgentRequest, seconds: float | None) -> CommandOutput:
        with self._command_timeout(seconds):
            response = self._transport.request(request)
        return _expect_completed(response)

    def vm_exec(
        self,
        command: Sequence[str],
        env: Sequence[tuple[str, str]] = (),
        workdir: str | None = None,
        timeout: float | timedelta | None = None,
    ) -> CommandOutput:
        """Run a command directly in the VM and return its output."""
        seconds = _seconds(timeout)
        request = requests.VmExec(
            command=list(command),
            env=[tuple(pair) for pair in env],
            workdir=workdir,
            timeout_ms=_millis(seconds),
        )
        return self._timed_request(request, seconds)

    def vm_exec_interactive(
        self,
        command: Sequence[str],
        env: Sequence[tuple[str, str]] = (),
        workdir: str | None = None,
        timeout: float | timedelta | None = None,
        tty: bool = False,
    ) -> int:
        """Run a command directly in the VM, streaming its output; return the exit code."""
        request = requests.VmExec(
            command=list(command),
            env=[tuple(pair) for pair in env],
            workdir=workdir,
            timeout_ms=_millis(_seconds(timeout)),
            interactive=True,
            tty=tty,
        )
        return self._stream(request)

    def run(
        self,
        image: str,
        command: Sequence[str],
        env: Sequence[tuple[str, str]] = (),
        workdir: str | None = None,
        mounts: Sequence[tuple[str, str, bool]] = (),
        timeout: float | timedelta | None = None,
    ) -> CommandOutput:
        """Run a command in an image's rootfs and return its output.

        A command that exceeds ``timeout`` is killed and exits with 124.
        """
        seconds = _seconds(timeout)
        request = requests.Run(
            image=image,
            command=list(command),
            env=[tuple(pair) for pair in env],
            workdir=workdir,
            mounts=[tuple(mount) for mount in mounts],
            timeout_ms=_millis(seconds),
        )
        return self._timed_request(request, seconds)

    def run_interactive(
        self,
        image: str,
        command: Sequence[str],
        env: Sequence[tuple[str, str]] = (),
        workdir: str | None = None,
        mounts: Sequence[tuple[str, str, bool]] = (),
        timeout: float | timedelta | None = None,
        tty: bool = False,
    ) -> int:
        """Run a command in an image's rootfs, streaming its output; return the exit code."""
        request = requests.Run(
            image=image,
            command=list(command),
            env=[tuple(pair) for pair in env],
            workdir=workdir,
            mounts=[tuple(mount) for mount in mounts],
            timeout_ms=_millis(_seconds(timeout)),
            interactive=True,
            tty=tty,
        )
        return self._stream(request)

    def _stream(self, request: requests.AgentRequest) -> int:
        self._transport.set_timeout(LONG_TIMEOUT)
        self._transport.send(request)
        started = self._transport.receive()
        if isinstance(started, Error):
            raise AgentError(started.message)
        if not isinstance(started, Started):
            raise AgentError("expected Started response")
        while True:
            response = self._transport.receive()
            if isinstance(response, Stdout):
                self._emit(self._stdout or sys.stdout.buffer, response.data)
            elif isinstance(response, Stderr):
                self._emit(self._stderr or sys.stderr.buffer, response.data)
            elif isinstance(response, Exited):
                return response.exit_code
            elif isinstance(response, Error):
                raise AgentError(response.message)
            else:
                _log.warning("unexpected response during interactive session")

    @staticmethod
    def _emit(stream: BinaryIO, data: bytes) -> None:
        stream.write(data)
        stream.flush()

    def send_stdin(self, data: bytes) -> None:
        """Send input to a running interactive command."""
        self._transport.send(requests.Stdin(bytes(data)))

    def send_resize(self, cols: int, rows: int) -> None:
        """Send a window resize to a running interactive command."""
        self._transport.send(requests.Resize(cols, rows))

    # -- containers ----------------------------------------------------------

    def create_container(
        self,
        image: str,
        command: Sequence[str],
        env: Sequence[tuple[str, str]] = (),
        workdir: str | None = None,
        mounts: Sequence[tuple[str, str, bool]] = (),
    ) -> ContainerInfo:
        """Create and start a long-running container from an image."""
        request = requests.CreateContainer(
            image=image,
            command=list(command),
            env=[tuple(pair) for pair in env],
            workdir=workdir,
            mounts=[tuple(mount) for mount in mounts],
        )
        response = self._transport.request(request)
        return _convert(ContainerInfo.from_dict, _ok_data(response))

    def start_container(self, container_id: str) -> None:
        """Start a created container."""
        _expect_ok(self._transport.request(requests.StartContainer(container_id)))

    def stop_container(self, container_id: str, timeout_secs: int | None = None) -> None:
        """Stop a running container, force-killing it after ``timeout_secs``."""
        _expect_ok(self._transport.request(requests.StopContainer(container_id, timeout_secs)))

    def delete_container(self, container_id: str, force: bool = False) -> None:
        """Delete a container, even a running one when ``force`` is set."""
        _expect_ok(self._transport.request(requests.DeleteContainer(container_id, force)))

    def list_containers(self) -> list[ContainerInfo]:
        """List all containers."""
        response = self._transport.request(requests.ListContainers())
        if isinstance(response, Ok) and response.data is None:
            return []
        return _convert(_list_of(ContainerInfo.from_dict), _ok_data(response))

    def exec(
        self,
        container_id: str,
        command: Sequence[str],
        env: Sequence[tuple[str, str]] = (),
        workdir: str | None = None,
        timeout: float | timedelta | None = None,
    ) -> CommandOutput:
        """Run a command in an existing container and return its output."""
        seconds = _seconds(timeout)
        request = requests.Exec(
            container_id=container_id,
            command=list(command),
            env=[tuple(pair) for pair in env],
            workdir=workdir,
            timeout_ms=_millis(seconds),
        )
        return self._timed_request(request, seconds)