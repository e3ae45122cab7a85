from pathlib import Path

import pytest

from smolvm.agent.types import (
    DEFAULT_CPUS,
    DEFAULT_MEMORY_MIB,
    HostMount,
    PortMapping,
    VmResources,
)


def test_same_port_mapping():
    mapping = PortMapping.same(8080)
    assert mapping.host == 8080
    assert mapping.guest == 8080
    assert mapping == PortMapping(8080, 8080)


def test_port_mapping_distinct_ports():
    mapping = PortMapping(8080, 80)
    assert (mapping.host, mapping.guest) == (8080, 80)
    assert mapping != PortMapping.same(80)


@pytest.mark.parametrize("host, guest", [(70000, 80), (80, -1)])
def test_port_mapping_out_of_range(host, guest):
    with pytest.raises(ValueError):
        PortMapping(host, guest)


def test_port_mapping_rejects_non_integer():
    with pytest.raises(TypeError):
        PortMapping("80", 80)


def test_default_resources():
    resources = VmResources()
    assert resources.cpus == DEFAULT_CPUS == 1
    assert resources.mem == DEFAULT_MEMORY_MIB == 256


def test_resources_equality():
    assert VmResources(cpus=2, mem=512) == VmResources(2, 512)
    assert VmResources(cpus=2, mem=512) != VmResources()


def test_resources_cpu_limit():
    with pytest.raises(ValueError):
        VmResources(cpus=256)


def test_host_mount_coerces_paths():
    mount = HostMount("/tmp/data", "/data", read_only=True)
    assert mount.source == Path("/tmp/data")
    assert mount.target == Path("/data")
    assert mount.read_only is True


def test_host_mount_equality():
    assert HostMount("/a", "/b") == HostMount(Path("/a"), Path("/b"), False)
    assert HostMount("/a", "/b") != HostMount("/a", "/b", read_only=True)