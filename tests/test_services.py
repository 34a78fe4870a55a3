import pytest

from dosdev_tool import check_device
from dosdev_tool.backend.image import ImageHost
from dosdev_tool.errors import HostError
from dosdev_tool.models import Classification
from dosdev_tool.services import DeviceChecker, default_driver, suppress_requesters


def test_scenario_no_media_by_name_and_by_unit(checker):
    by_name = checker.check("DATA")
    by_unit = checker.check("7", "diskimage.device")

    assert by_name.exit_code == 5
    assert by_unit.exit_code == 5
    assert by_unit.resolution.clean_name == "DATA"
    assert by_unit.unit_number == 7


def test_scenario_mounted_volume(checker):
    result = checker.check("DH0")
    assert result.exit_code == 0
    assert result.outcome.volume_name == "Work"


def test_scenario_unknown_unit_is_error(checker):
    result = checker.check("9999")
    assert result.outcome.classification is Classification.NOT_FOUND
    assert result.exit_code == 10
    assert result.unit_number == 9999


def test_scenario_missing_driver_short_circuits(host, monkeypatch):
    def _no_directory_access():
        pytest.fail("device list walked although the driver is missing")

    monkeypatch.setattr(host, "dos_list_head", _no_directory_access)
    result = DeviceChecker(host).check("DH0", "scsi.device")

    assert result.outcome.classification is Classification.DRIVER_UNAVAILABLE
    assert result.exit_code == 20


def test_unknown_device_is_error_whatever_the_driver(checker):
    assert checker.check("NOPE:", "diskimage.device").exit_code == 10
    assert checker.check("NOPE:", "trackdisk.device").exit_code == 10


@pytest.mark.parametrize("unit, name", [("3", "DH0"), ("7", "DATA"), ("101", "IHD101")])
def test_unit_and_name_addressing_agree(checker, unit, name):
    by_unit = checker.check(unit, "diskimage.device")
    by_name = checker.check(name, "diskimage.device")
    assert by_unit.resolution.clean_name == name
    assert by_unit.outcome == by_name.outcome


def test_numeric_identifier_is_never_a_name(host_factory):
    data = {"drivers": ["diskimage.device"], "devices": [{"name": "42", "task": True}]}
    result = DeviceChecker(host_factory(data)).check("42", "diskimage.device")
    assert result.outcome.classification is Classification.NOT_FOUND


def test_window_ptr_restored_after_check(host):
    host.window_ptr = 0x1000
    seen = []
    original_lock = host.lock

    def _lock(path):
        seen.append(host.window_ptr)
        return original_lock(path)

    host.lock = _lock
    DeviceChecker(host).check("DH0")

    assert seen == [-1]
    assert host.window_ptr == 0x1000


def test_suppress_requesters_restores_on_error(host):
    host.window_ptr = 7
    with pytest.raises(RuntimeError):
        with suppress_requesters(host):
            assert host.window_ptr == -1
            raise RuntimeError("boom")
    assert host.window_ptr == 7


def test_scan_keeps_requesters_suppressed(checker, host):
    results = []
    for resolution, outcome in checker.scan("DF*"):
        results.append((resolution.clean_name, outcome.volume_name, host.window_ptr))
    assert results == [("DF0", "Workbench", -1)]
    assert host.window_ptr == 0


def test_describe_absent_resolution(checker):
    assert checker.describe(checker.check("NOPE").resolution) is None
    assert checker.describe(checker.check("DH0").resolution).unit_number == 3


def test_default_host_from_snapshot_env(monkeypatch, snapshot_file):
    monkeypatch.setenv("DOSDEV_SNAPSHOT", str(snapshot_file))
    monkeypatch.delenv("DOSDEV_DUMP", raising=False)
    checker = DeviceChecker()
    assert isinstance(checker.host, ImageHost)
    assert checker.check("DF0").exit_code == 0


def test_default_host_requires_a_source(monkeypatch):
    monkeypatch.delenv("DOSDEV_SNAPSHOT", raising=False)
    monkeypatch.delenv("DOSDEV_DUMP", raising=False)
    with pytest.raises(HostError):
        DeviceChecker()


def test_default_driver_env(monkeypatch):
    monkeypatch.delenv("DOSDEV_DRIVER", raising=False)
    assert default_driver() == "diskimage.device"
    monkeypatch.setenv("DOSDEV_DRIVER", "trackdisk.device")
    assert default_driver() == "trackdisk.device"


def test_check_device_convenience(host):
    assert check_device("0", "trackdisk.device", host=host).resolution.clean_name == "DF0"
