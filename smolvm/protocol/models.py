"""Data records carried in agent ``ok`` responses."""

from __future__ import annotations

from dataclasses import dataclass

from smolvm.protocol.wire import (
    _STRINGS,
    _Record,
    _expect_bool,
    _expect_str,
    _optional,
    _unsigned,
)

_u64 = _unsigned(64)


@dataclass(frozen=True)
class ImageInfo(_Record):
    """A cached OCI image."""

    _SCHEMA = {
        "reference": _expect_str,
        "digest": _expect_str,
        "size": _u64,
        "created": _optional(_expect_str),
        "architecture": _expect_str,
        "os": _expect_str,
        "layer_count": _u64,
        "layers": _STRINGS,
    }

    reference: str
    digest: str
    size: int
    created: str | None
    architecture: str
    os: str
    layer_count: int
    layers: list[str]

    @classmethod
    def from_dict(cls, data) -> ImageInfo:
        """Build from a JSON object."""
        return super().from_dict(data)

    def to_dict(self) -> dict:
        """Return the JSON object."""
        return super().to_dict()


@dataclass(frozen=True)
class OverlayInfo(_Record):
    """Paths of a prepared overlay rootfs."""

    _SCHEMA = {
        "rootfs_path": _expect_str,
        "upper_path": _expect_str,
        "work_path": _expect_str,
    }

    rootfs_path: str
    upper_path: str
    work_path: str

    @classmethod
    def from_dict(cls, data) -> OverlayInfo:
        """Build from a JSON object."""
        return super().from_dict(data)

    def to_dict(self) -> dict:
        """Return the JSON object."""
        return super().to_dict()


@dataclass(frozen=True)
class StorageStatus(_Record):
    """State of the storage disk."""

    _SCHEMA = {
        "ready": _expect_bool,
        "total_bytes": _u64,
        "used_bytes": _u64,
        "layer_count": _u64,
        "image_count": _u64,
    }

    ready: bool
    total_bytes: int
    used_bytes: int
    layer_count: int
    image_count: int

    @classmethod
    def from_dict(cls, data) -> StorageStatus:
        """Build from a JSON object."""
        return super().from_dict(data)

    def to_dict(self) -> dict:
        """Return the JSON object."""
        return super().to_dict()


@dataclass(frozen=True)
class ContainerInfo(_Record):
    """A container known to the agent."""

    _SCHEMA = {
        "id": _expect_str,
        "image": _expect_str,
        "state": _expect_str,
        "created_at": _u64,
        "command": _STRINGS,
    }

    id: str
    image: str
    state: str
    created_at: int
    command: list[str]

    @classmethod
    def from_dict(cls, data) -> ContainerInfo:
        """Build from a JSON object."""
        return super().from_dict(data)

    def to_dict(self) -> dict:
        """Return the JSON object."""
        return super().to_dict()