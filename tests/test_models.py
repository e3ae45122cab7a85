import json

import pytest

from smolvm.protocol.models import ContainerInfo, ImageInfo, OverlayInfo, StorageStatus


def _image(created="2024-01-01T00:00:00Z"):
    return ImageInfo(
        reference="alpine:latest",
        digest="sha256:abc123",
        size=3_000_000,
        created=created,
        architecture="arm64",
        os="linux",
        layer_count=1,
        layers=["sha256:abc123"],
    )


def test_image_roundtrip():
    image = _image()
    assert ImageInfo.from_dict(json.loads(json.dumps(image.to_dict()))) == image


def test_image_created_null_is_kept():
    image = _image(created=None)
    data = image.to_dict()
    assert "created" in data and data["created"] is None
    assert ImageInfo.from_dict(data) == image


def test_image_missing_digest():
    data = _image().to_dict()
    del data["digest"]
    with pytest.raises(ValueError, match="digest"):
        ImageInfo.from_dict(data)


def test_image_negative_size_rejected():
    data = _image().to_dict()
    data["size"] = -1
    with pytest.raises(ValueError):
        ImageInfo.from_dict(data)


def test_overlay_roundtrip():
    overlay = OverlayInfo(rootfs_path="/r", upper_path="/u", work_path="/w")
    assert OverlayInfo.from_dict(overlay.to_dict()) == overlay


def test_storage_status_roundtrip():
    status = StorageStatus(
        ready=True, total_bytes=100, used_bytes=10, layer_count=2, image_count=1
    )
    assert StorageStatus.from_dict(status.to_dict()) == status


def test_storage_status_ready_must_be_bool():
    data = StorageStatus(
        ready=True, total_bytes=1, used_bytes=0, layer_count=0, image_count=0
    ).to_dict()
    data["ready"] = 1
    with pytest.raises(ValueError):
        StorageStatus.from_dict(data)


def test_container_roundtrip_and_keys():
    container = ContainerInfo(
        id="c0ffee", image="alpine", state="running", created_at=1700000000,
        command=["sleep", "infinity"],
    )
    data = container.to_dict()
    assert set(data) == {"id", "image", "state", "created_at", "command"}
    assert ContainerInfo.from_dict(data) == container


def test_container_rejects_non_object():
    with pytest.raises(ValueError):
        ContainerInfo.from_dict("c0ffee")