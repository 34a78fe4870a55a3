import pytest

from dosdev_tool.backend.image import ImageHost
from dosdev_tool.constants import ID_DOS_DISK, ID_NO_DISK_PRESENT
from dosdev_tool.errors import HostError, MemoryFault
from dosdev_tool.snapshot import build_image


def test_read_outside_image_faults(host):
    with pytest.raises(MemoryFault):
        host.read(len(host.memory) - 2, 4)
    with pytest.raises(MemoryFault):
        host.read(-4, 4)


def test_forbid_nests_and_permit_must_match(host):
    with host.forbidden():
        with host.forbidden():
            assert host.forbid_depth == 2
        assert host.forbid_depth == 1
    assert host.forbid_depth == 0

    with pytest.raises(HostError):
        host.permit()


def test_blocking_calls_are_rejected_inside_forbid(host):
    with host.forbidden():
        with pytest.raises(HostError):
            host.lock("DH0:")
        with pytest.raises(HostError):
            host.open_device("diskimage.device", 0)
    assert host.open_locks == {}


def test_lock_follows_handler_state(host):
    assert host.lock("DATA:") is None  # no handler task
    assert host.lock("NOPE:") is None
    assert host.lock("DH0:c/dir") is None

    handle = host.lock("dh0:")
    assert handle is not None
    assert host.open_locks == {handle: "dh0"}
    data = host.info(handle)
    assert data.id_DiskType == 0x444F5303
    assert data.id_VolumeNode != 0
    host.unlock(handle)
    assert host.open_locks == {}


def test_info_reports_no_disk_for_device_without_volume(host):
    handle = host.lock("IHD101:")
    try:
        assert host.info(handle).id_DiskType == ID_NO_DISK_PRESENT
    finally:
        host.unlock(handle)


def test_assign_with_lock_reports_dos_disk(host):
    handle = host.lock("SYS:")
    try:
        data = host.info(handle)
        assert data.id_DiskType == ID_DOS_DISK
        assert data.id_VolumeNode == 0
    finally:
        host.unlock(handle)


def test_unlock_and_info_need_a_held_lock(host):
    with pytest.raises(HostError):
        host.unlock(99)
    with pytest.raises(HostError):
        host.info(99)


def test_open_device_needs_resident_driver(host):
    request = host.open_device("trackdisk.device", 0)
    assert request is not None
    assert host.open_requests[request] == ("trackdisk.device", 0)
    host.close_device(request)
    assert host.open_requests == {}

    # exec matches device names exactly
    assert host.open_device("TrackDisk.device", 0) is None
    assert host.open_device("scsi.device", 0) is None
    with pytest.raises(HostError):
        host.close_device(12345)


def test_image_without_dos_library_is_an_error():
    host = ImageHost(bytes(1024))
    with pytest.raises(HostError):
        host.dos_list_head()


def test_window_ptr_is_plain_state(host):
    assert host.window_ptr == 0
    host.window_ptr = -1
    assert host.window_ptr == -1


def test_from_dump_reads_raw_memory(tmp_path, snapshot_data):
    dump = tmp_path / "chipmem.bin"
    dump.write_bytes(build_image(snapshot_data))

    host = ImageHost.from_dump(dump)

    assert host.source == str(dump)
    assert host.dos_list_head() != 0
    assert host.lock("DF0:") is not None


def test_from_snapshot_loads_json(snapshot_file):
    host = ImageHost.from_snapshot(snapshot_file)
    handle = host.lock("DF0:")
    assert handle is not None
    host.unlock(handle)
