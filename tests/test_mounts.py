from pathlib import Path

import pytest

from smolvm.agent.types import HostMount, PortMapping
from smolvm.cli.mounts import (
    describe_startup,
    mount_bindings,
    parse_mounts,
    parse_mounts_as_tuples,
)
from smolvm.errors import MountError


def test_parse_mounts_resolves_host_directory(tmp_path):
    mounts = parse_mounts([f"{tmp_path}:/data"])
    assert mounts == [HostMount(tmp_path.resolve(), Path("/data"), False)]


def test_parse_mounts_read_only_flag(tmp_path):
    mounts = parse_mounts([f"{tmp_path}:/data:ro"])
    assert mounts[0].read_only is True


def test_parse_mounts_other_flag_is_read_write(tmp_path):
    mounts = parse_mounts([f"{tmp_path}:/data:rw"])
    assert mounts[0].read_only is False


def test_parse_mounts_keeps_order(tmp_path):
    first = tmp_path / "a"
    second = tmp_path / "b"
    first.mkdir()
    second.mkdir()
    mounts = parse_mounts([f"{first}:/one", f"{second}:/two"])
    assert [m.source for m in mounts] == [first.resolve(), second.resolve()]
    assert [m.target for m in mounts] == [Path("/one"), Path("/two")]


def test_parse_mounts_follows_symlink(tmp_path):
    real = tmp_path / "real"
    real.mkdir()
    link = tmp_path / "link"
    link.symlink_to(real)
    mounts = parse_mounts([f"{link}:/data"])
    assert mounts[0].source == real.resolve()


def test_parse_mounts_missing_colon():
    with pytest.raises(MountError, match=r"expected host:container\[:ro\]"):
        parse_mounts(["nocolon"])


def test_parse_mounts_missing_host(tmp_path):
    missing = tmp_path / "missing"
    with pytest.raises(MountError, match="host path does not exist"):
        parse_mounts([f"{missing}:/data"])


def test_parse_mounts_rejects_file(tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")
    with pytest.raises(MountError, match="virtiofs limitation"):
        parse_mounts([f"{target}:/data"])


def test_parse_mounts_empty():
    assert parse_mounts([]) == []


def test_parse_mounts_as_tuples(tmp_path):
    result = parse_mounts_as_tuples([f"{tmp_path}:/data:ro"])
    assert result == [(str(tmp_path.resolve()), "/data", True)]


def test_parse_mounts_as_tuples_rejects_file(tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")
    with pytest.raises(MountError, match="host path must be a directory") as info:
        parse_mounts_as_tuples([f"{target}:/data"])
    assert "virtiofs" not in str(info.value)


def test_parse_mounts_as_tuples_missing_colon():
    with pytest.raises(MountError):
        parse_mounts_as_tuples(["justone"])


def test_mount_bindings_tags_by_position(tmp_path):
    mounts = [
        HostMount(tmp_path, Path("/one"), False),
        HostMount(tmp_path, Path("/two"), True),
    ]
    assert mount_bindings(mounts) == [
        ("smolvm0", "/one", False),
        ("smolvm1", "/two", True),
    ]


def test_mount_bindings_round_trip_from_specs(tmp_path):
    bindings = mount_bindings(parse_mounts([f"{tmp_path}:/work:ro"]))
    assert bindings == [("smolvm0", "/work", True)]


def test_describe_startup_plain():
    assert describe_startup([], []) == "Starting microvm..."


def test_describe_startup_with_mounts_and_ports(tmp_path):
    mounts = [HostMount(tmp_path, Path("/a")), HostMount(tmp_path, Path("/b"))]
    ports = [PortMapping(8080, 80)]
    assert (
        describe_startup(mounts, ports)
        == "Starting microvm with 2 mount(s) and 1 port mapping(s)..."
    )


def test_describe_startup_ports_only():
    ports = [PortMapping.same(22), PortMapping(8080, 80)]
    assert describe_startup([], ports) == "Starting microvm and 2 port mapping(s)..."