import json

import pytest

from dosdev_tool.backend.image import ImageHost
from dosdev_tool.services import DeviceChecker
from dosdev_tool.snapshot import build_image


def sample_snapshot():
    return {
        "drivers": ["diskimage.device", "trackdisk.device"],
        "devices": [
            {
                "name": "DF0",
                "task": True,
                "startup": {
                    "device": "trackdisk.device",
                    "unit": 0,
                    "environ": {
                        "surfaces": 2,
                        "blocks_per_track": 11,
                        "low_cyl": 0,
                        "high_cyl": 79,
                    },
                },
                "volume": {"name": "Workbench", "disk_type": "DOS\\0"},
            },
            {
                "name": "DH0",
                "task": True,
                "handler": "L:FastFileSystem",
                "startup": {
                    "device": "diskimage.device",
                    "unit": 3,
                    "environ": {
                        "surfaces": 1,
                        "blocks_per_track": 32,
                        "low_cyl": 0,
                        "high_cyl": 1023,
                        "buffers": 30,
                        "dos_type": "DOS\\3",
                    },
                },
                "volume": {"name": "Work", "disk_type": "DOS\\3"},
            },
            {
                "name": "DATA",
                "startup": {
                    "device": "diskimage.device",
                    "unit": 7,
                    "environ": {
                        "surfaces": 1,
                        "blocks_per_track": 32,
                        "low_cyl": 0,
                        "high_cyl": 1023,
                    },
                },
            },
            {
                "name": "IHD101",
                "task": True,
                "startup": {
                    "device": "diskimage.device",
                    "unit": 101,
                    "environ": {
                        "surfaces": 16,
                        "blocks_per_track": 63,
                        "low_cyl": 2,
                        "high_cyl": 4000,
                        "dos_type": "PFS\\3",
                    },
                },
            },
            {
                "name": "IHD102",
                "startup": {"device": "DiskImage.device", "unit": 102},
            },
            {"name": "RAM", "task": True, "volume": {"name": "Ram Disk"}},
            {"name": "SYS", "type": "assign", "lock": True},
        ],
    }


def _make_host(data=None):
    return ImageHost(build_image(sample_snapshot() if data is None else data))


@pytest.fixture
def host():
    return _make_host()


@pytest.fixture
def checker(host):
    return DeviceChecker(host)


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "devices.json"
    path.write_text(json.dumps(sample_snapshot()), encoding="utf-8")
    return path


@pytest.fixture
def host_factory():
    return _make_host


@pytest.fixture
def snapshot_data():
    return sample_snapshot()
