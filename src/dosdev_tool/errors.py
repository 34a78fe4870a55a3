# src/dosdev_tool/errors.py

from __future__ import annotations


class DosDeviceError(Exception):
    """Base error for dosdev_tool.

    A device that is not in the directory is a result, not an error, and
    never raises.
    """


class HostError(DosDeviceError):
    """The host cannot serve the request (no source, misuse of the critical section)."""


class MemoryFault(HostError):
    def __init__(self, address: int, size: int) -> None:
        super().__init__(f"read of {size} bytes at ${address:08X} is outside the image")
        self.address = address
        self.size = size


class ResourceError(DosDeviceError):
    """A transient OS resource (port, request, buffer) could not be allocated."""


class SnapshotError(DosDeviceError):
    pass
