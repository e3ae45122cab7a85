# smolvm

The host side of a microVM runtime that runs OCI images. The package holds:

- the wire protocol spoken with the guest agent: length-prefixed JSON frames,
  the request and response messages, the messages exchanged with workload VMs,
  and the data records the agent returns;
- `AgentClient`, which talks to a running agent over its Unix socket;
- helpers for a command-line layer: parsing ports, durations, environment
  variables and volume specifications, and formatting container listings.

It has no dependencies outside the standard library.

## Wire format

Every message is a JSON document preceded by a 4-byte big-endian length.
Frames announcing more than 16 MiB (`MAX_FRAME_SIZE`) are rejected.

```python
from smolvm.protocol.wire import encode_message, decode_message, TooShortError
from smolvm.protocol.requests import Pull, parse_request

frame = encode_message(Pull(image="alpine:latest", platform="linux/arm64"))
request = decode_message(frame, parse_request)
assert request == Pull(image="alpine:latest", platform="linux/arm64")

try:
    decode_message(b"\x00\x00", parse_request)
except TooShortError as exc:
    print(exc)  # data too short for length header
```

Without a factory, `decode_message` returns the parsed JSON value. Decoding
failures raise subclasses of `DecodeError` (itself a `ValueError`):
`TooShortError`, `TooLargeError`, `IncompleteError` and `JsonDecodeError`.

`smolvm.protocol.wire` also defines the protocol constants:
`PROTOCOL_VERSION`, the vsock ports `WORKLOAD_CONTROL_PORT`,
`WORKLOAD_LOGS_PORT` and `AGENT_CONTROL_PORT`, and the CIDs `CID_HOST`,
`CID_GUEST` and `CID_ANY`.

### Messages

Every message is a frozen dataclass with `to_dict()`; each family has a
parser that picks the variant from the tag field and validates every field
(wrong types, out-of-range integers and missing fields raise `ValueError`).

- `smolvm.protocol.requests`: `AgentRequest` variants tagged by `method`
  (`Ping`, `Pull`, `Query`, `ListImages`, `GarbageCollect`, `PrepareOverlay`,
  `CleanupOverlay`, `FormatStorage`, `StorageStatus`, `NetworkTest`,
  `Shutdown`, `VmExec`, `Run`, `Stdin`, `Resize`, `CreateContainer`,
  `StartContainer`, `StopContainer`, `DeleteContainer`, `ListContainers`,
  `Exec`), parsed with `parse_request`.
- `smolvm.protocol.responses`: `AgentResponse` variants tagged by `status`
  (`Ok`, `Pong`, `Progress`, `Error`, `Completed`, `Started`, `Stdout`,
  `Stderr`, `Exited`), parsed with `parse_response`.
- `smolvm.protocol.workload`: `HostMessage` and `GuestMessage` variants tagged
  by `type`, parsed with `parse_host_message` and `parse_guest_message`.
- `smolvm.protocol.models`: `ImageInfo`, `OverlayInfo`, `StorageStatus` and
  `ContainerInfo`, each with `from_dict` and `to_dict`.

Byte payloads (`Stdin`, `Stdout`, `Stderr`) are `bytes` in Python and JSON
arrays of integers on the wire.

```python
from smolvm.protocol.responses import Pong, parse_response

assert parse_response({"status": "pong", "version": 1}) == Pong(version=1)
```

## Talking to an agent

```python
from smolvm.agent.client import AgentClient
from smolvm.errors import AgentError

try:
    with AgentClient.connect("/run/user/1000/smolvm/agent.sock") as client:
        print("protocol version", client.ping())
        client.pull("alpine:latest", None)
        exit_code, out, err = client.vm_exec(["uname", "-a"])
        print(exit_code, out)
except AgentError as exc:
    print("agent failed:", exc)
```

Non-interactive commands (`vm_exec`, `run`, `exec`) return a `CommandOutput`
named tuple of `exit_code`, `stdout` and `stderr`. A `timeout` may be given in
seconds or as a `timedelta`; the socket then waits that long plus five seconds
for the answer (one hour when no timeout is given).

`vm_exec_interactive` and `run_interactive` stream the command's output to
standard output and standard error (or to the binary streams passed to the
`AgentClient` constructor) and return the exit code. `send_stdin` and
`send_resize` send input and window sizes to such a command.

Containers that outlive a single command are handled with `create_container`,
`start_container`, `exec`, `stop_container`, `delete_container` and
`list_containers`. Image and storage management uses `query` (which returns
`None` for an image the agent reports as `NOT_FOUND`), `list_images`,
`garbage_collect`, `prepare_overlay`, `cleanup_overlay`, `format_storage` and
`storage_status`; `network_test` and `shutdown` round it off.

Any failure reported by the agent, a broken connection, or an unexpected reply
raises `smolvm.errors.AgentError`. The framing itself lives in
`smolvm.agent.transport.Transport`, which wraps any connected stream socket.

`smolvm.agent.types` holds `PortMapping` (with `PortMapping.same`),
`VmResources` (1 vCPU and 256 MiB by default) and `HostMount`.

## Command-line helpers

```python
from smolvm.cli.specs import parse_port, parse_duration, parse_env_spec, truncate
from smolvm.agent.types import PortMapping

assert parse_port("8080:80") == PortMapping(8080, 80)
assert parse_port("443") == PortMapping.same(443)
assert parse_env_spec("KEY=value") == ("KEY", "value")
print(parse_duration("1h 30m"))  # 1:30:00
print(truncate("a-very-long-image-name:latest", 18))  # a-very-long-ima...
```

- `smolvm.cli.specs`: `parse_duration`, `parse_port`, `parse_env_spec`,
  `microvm_label` and `truncate`; invalid input raises `ValueError`.
- `smolvm.cli.mounts`: `parse_mounts` and `parse_mounts_as_tuples` check that
  each `host:guest[:ro]` host path is an existing directory and resolve it;
  `mount_bindings` turns mounts into `(virtiofs_tag, guest_path, read_only)`
  tuples; `describe_startup` builds the start-up message.
- `smolvm.cli.containers`: `parse_env`, `parse_mounts_to_bindings`,
  `default_container_command` (`sleep infinity` when empty),
  `format_container_table` and `container_ids`.

Invalid volume specifications raise `smolvm.errors.MountError`.

## What this package does not do

It does not boot or stop microVMs, fork VM processes, create storage disks, or
keep a store of named VM configurations, and it installs no command-line
program. It expects an agent that is already listening on a Unix socket, and
its command-line helpers only parse and format; they do not dispatch commands.

## Running the tests

Install the `test` extra, then run `pytest` from the project root.