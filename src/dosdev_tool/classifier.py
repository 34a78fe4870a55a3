# src/dosdev_tool/classifier.py

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Tuple

from .backend.base import AbstractHost
from .constants import DEVICE_SEPARATOR, HANDLER_BY_DOSTYPE, ID_NO_DISK_PRESENT, PRIMARY_HANDLER
from .directory import DeviceDirectory
from .errors import MemoryFault, ResourceError
from .models import (
    Classification,
    DeviceRecord,
    DeviceReport,
    NodeKind,
    ResolutionResult,
    StatusOutcome,
)
from .structs import VolumeNode
from .utils import decode_bstr

logger = logging.getLogger(__name__)

NOT_FOUND = StatusOutcome(Classification.NOT_FOUND)
MEDIA_ABSENT = StatusOutcome(Classification.MEDIA_ABSENT)
DRIVER_UNAVAILABLE = StatusOutcome(Classification.DRIVER_UNAVAILABLE)


def probe_driver(host: AbstractHost, driver_name: str) -> bool:
    """True when unit 0 of ``driver_name`` can be opened. The unit is closed again at once."""
    try:
        request = host.open_device(driver_name, 0)
    except ResourceError as exc:
        logger.debug("could not set up an I/O request for %s: %s", driver_name, exc)
        return False
    if request is None:
        return False
    host.close_device(request)
    return True


@contextmanager
def locked(host: AbstractHost, path: str) -> Iterator[Optional[Any]]:
    """Yield a read lock on ``path`` (or None) and always give it back."""
    try:
        handle = host.lock(path)
    except ResourceError as exc:
        logger.debug("Lock(%s) ran out of resources: %s", path, exc)
        handle = None
    try:
        yield handle
    finally:
        if handle is not None:
            host.unlock(handle)


def infer_handler(type_signature: int) -> str:
    return HANDLER_BY_DOSTYPE.get(type_signature & 0xFFFFFFFF, PRIMARY_HANDLER)


def kind_label(kind: Any) -> str:
    if isinstance(kind, NodeKind):
        return kind.name.lower()
    return f"unknown ({kind})"


class StatusClassifier:
    def __init__(self, directory: DeviceDirectory):
        self.directory = directory
        self.host = directory.host

    def classify(self, name: str) -> StatusOutcome:
        return self.classify_resolution(self.directory.resolve_by_name(name))

    def classify_resolution(self, resolution: ResolutionResult) -> StatusOutcome:
        """Classify a resolved entry. Must not be called inside the forbidden section."""
        if not resolution.found:
            return NOT_FOUND

        path = resolution.clean_name + DEVICE_SEPARATOR
        with locked(self.host, path) as handle:
            if handle is None:
                logger.debug("%s cannot be locked; treating as no disk", path)
                return MEDIA_ABSENT
            try:
                data = self.host.info(handle)
            except ResourceError as exc:
                logger.debug("Info(%s) ran out of resources: %s", path, exc)
                data = None
            if data is None or data.id_DiskType == ID_NO_DISK_PRESENT:
                return MEDIA_ABSENT
            return StatusOutcome(Classification.MOUNTED, self._volume_name(data.id_VolumeNode))

    def _volume_name(self, volume: int) -> str:
        if not volume:
            return ""
        try:
            with self.host.forbidden():
                node = self.host.read_struct(VolumeNode, self.host.baddr(volume))
                return decode_bstr(self.host, node.dl_Name)
        except MemoryFault as exc:
            logger.warning("volume node $%08X is unreadable: %s", volume, exc)
            return ""

    def scan(self, pattern: str) -> Iterator[Tuple[ResolutionResult, StatusOutcome]]:
        for resolution in self.directory.resolve_by_pattern(pattern):
            yield resolution, self.classify_resolution(resolution)

    def describe(self, record: DeviceRecord) -> DeviceReport:
        """Project a record onto the fields shown by --info and --config."""
        report = DeviceReport(name=record.name, kind=kind_label(record.kind))
        startup = record.startup
        if startup is not None:
            report.driver_name = startup.driver_name
            report.unit_number = startup.unit_number
            report.flags = startup.flags
            report.geometry = startup.geometry

        if record.handler_name:
            report.handler_name = record.handler_name
        elif report.geometry is not None:
            report.handler_name = infer_handler(report.geometry.type_signature)
            report.handler_inferred = True
        if record.seglist:
            report.seglist = record.seglist
        if record.kind == NodeKind.DEVICE:
            report.stack_size = record.stack_size
            report.priority = record.priority
            report.global_vec = record.global_vec
        return report
