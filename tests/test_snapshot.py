import pytest

from dosdev_tool.directory import DeviceDirectory
from dosdev_tool.backend.image import ImageHost
from dosdev_tool.errors import SnapshotError
from dosdev_tool.snapshot import SnapshotBuilder, build_image, load_snapshot


def test_unknown_keys_are_rejected():
    with pytest.raises(SnapshotError, match="unknown key"):
        build_image({"devices": [], "volumes": []})
    with pytest.raises(SnapshotError, match="colour"):
        build_image({"devices": [{"name": "DH0", "colour": "red"}]})


def test_environ_requires_geometry():
    entry = {
        "name": "DH0",
        "startup": {"device": "diskimage.device", "environ": {"surfaces": 1}},
    }
    with pytest.raises(SnapshotError, match="blocks_per_track"):
        build_image({"devices": [entry]})


def test_startup_requires_device():
    with pytest.raises(SnapshotError, match="'device'"):
        build_image({"devices": [{"name": "DH0", "startup": {"unit": 1}}]})


def test_unknown_type_name_is_rejected():
    with pytest.raises(SnapshotError, match="unknown type"):
        build_image({"devices": [{"name": "DH0", "type": "printer"}]})


def test_mounted_volume_needs_task():
    entry = {"name": "DH0", "volume": {"name": "Work"}}
    with pytest.raises(SnapshotError, match="task"):
        build_image({"devices": [entry]})


def test_bstr_longer_than_255_is_rejected():
    with pytest.raises(SnapshotError, match="too long"):
        SnapshotBuilder().bstr("X" * 256)


def test_empty_snapshot_builds_empty_directory():
    host = ImageHost(build_image({}))
    assert host.dos_list_head() == 0
    assert DeviceDirectory(host).records() == []


def test_load_snapshot_reports_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SnapshotError, match="broken.json"):
        load_snapshot(path)


def test_builder_keeps_bptrs_longword_aligned():
    builder = SnapshotBuilder()
    builder.cstring("odd")
    address = builder.bstr("DH0") << 2
    assert address % 4 == 0
    assert bytes(builder.memory[address:address + 4]) == b"\x03DH0"
    with pytest.raises(SnapshotError):
        builder.bptr(0x402)
