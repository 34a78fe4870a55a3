# src/dosdev_tool/directory.py

import ctypes as ct
import logging
from typing import Iterator, List, Optional, Tuple

from .backend.base import AbstractHost
from .constants import DLT_DEVICE, PATTERN_WILDCARD
from .errors import MemoryFault
from .models import DeviceRecord, Geometry, NodeKind, ResolutionResult, StartupInfo
from .structs import ENVEC_FIELDS, DeviceNode, DosEnvec, FileSysStartupMsg
from .utils import decode_bstr, names_equal, strip_device_name

logger = logging.getLogger(__name__)

# DosEnvec field -> Geometry attribute
_GEOMETRY_FIELDS = {
    "de_SizeBlock": "size_block",
    "de_Surfaces": "surfaces",
    "de_SectorPerBlock": "sectors_per_block",
    "de_BlocksPerTrack": "blocks_per_track",
    "de_Reserved": "reserved_blocks",
    "de_PreAlloc": "prealloc",
    "de_Interleave": "interleave",
    "de_LowCyl": "low_cylinder",
    "de_HighCyl": "high_cylinder",
    "de_NumBuffers": "buffer_count",
    "de_BufMemType": "buffer_memory_class",
    "de_MaxTransfer": "max_transfer_size",
    "de_Mask": "transfer_mask",
    "de_BootPri": "boot_priority",
    "de_DosType": "type_signature",
}
_REQUIRED_GEOMETRY = ("surfaces", "blocks_per_track", "low_cylinder", "high_cylinder")
_MAX_ENTRIES = 4096


class DeviceDirectory:
    """Read-only queries over the DOS device list.

    Every walk runs inside the host's forbidden section and copies what it
    needs into DeviceRecord values before the section ends.
    """

    def __init__(self, host: AbstractHost):
        self.host = host

    # --- traversal (caller holds the forbidden section) ---

    def _nodes(self) -> Iterator[DeviceNode]:
        bptr = self.host.dos_list_head()
        for _ in range(_MAX_ENTRIES):
            if not bptr:
                return
            node = self.host.read_struct(DeviceNode, self.host.baddr(bptr))
            yield node
            bptr = node.dn_Next
        logger.warning("device list longer than %d entries; stopped walking", _MAX_ENTRIES)

    def _geometry(self, environ: int) -> Optional[Geometry]:
        if not environ:
            return None
        address = self.host.baddr(environ)
        table_size = self.host.read_long(address)
        longs = min(table_size + 1, len(ENVEC_FIELDS))
        raw = self.host.read(address, longs * 4).ljust(ct.sizeof(DosEnvec), b"\0")
        envec = DosEnvec.from_buffer_copy(raw)

        values = {"table_size": table_size}
        for field_name, index in ENVEC_FIELDS:
            attr = _GEOMETRY_FIELDS.get(field_name)
            if attr is None or index > table_size:
                continue
            values[attr] = getattr(envec, field_name)
        for attr in _REQUIRED_GEOMETRY:
            values.setdefault(attr, 0)
        return Geometry(**values)

    def _startup(self, startup: int) -> Optional[StartupInfo]:
        if not startup:
            return None
        try:
            msg = self.host.read_struct(FileSysStartupMsg, self.host.baddr(startup))
            driver = decode_bstr(self.host, msg.fssm_Device)
            if not driver:
                return None
            return StartupInfo(
                driver_name=driver,
                unit_number=msg.fssm_Unit,
                flags=msg.fssm_Flags,
                geometry=self._geometry(msg.fssm_Environ),
            )
        except MemoryFault as exc:
            # Some handlers keep a plain integer in dn_Startup.
            logger.debug("dn_Startup $%08X is not a startup message: %s", startup, exc)
            return None

    def _record(self, node: DeviceNode, name: str) -> DeviceRecord:
        kind = NodeKind.from_raw(node.dn_Type)
        if node.dn_Type != DLT_DEVICE:
            return DeviceRecord(name=name, kind=kind)
        return DeviceRecord(
            name=name,
            kind=kind,
            startup=self._startup(node.dn_Startup),
            handler_name=decode_bstr(self.host, node.dn_Handler) or None,
            seglist=node.dn_SegList,
            stack_size=node.dn_StackSize,
            priority=node.dn_Priority,
            global_vec=node.dn_GlobalVec,
        )

    def _named_nodes(self) -> Iterator[Tuple[DeviceNode, str]]:
        for node in self._nodes():
            name = decode_bstr(self.host, node.dn_Name)
            if name:
                yield node, name

    # --- queries ---

    def records(self) -> List[DeviceRecord]:
        """Copy of every named entry, in directory order."""
        with self.host.forbidden():
            return [self._record(node, name) for node, name in self._named_nodes()]

    def resolve_by_name(self, name: str) -> ResolutionResult:
        clean = strip_device_name(name)
        with self.host.forbidden():
            for node, node_name in self._named_nodes():
                if names_equal(node_name, clean):
                    logger.debug("resolved %r", clean)
                    return ResolutionResult(self._record(node, node_name), clean)
        logger.debug("%r is not in the device list", clean)
        return ResolutionResult(None, clean)

    def resolve_by_driver_and_unit(self, driver_name: str, unit_number: int) -> ResolutionResult:
        """First device backed by ``driver_name`` unit ``unit_number``.

        The list order decides between duplicates.
        """
        with self.host.forbidden():
            for node, node_name in self._named_nodes():
                if node.dn_Type != DLT_DEVICE:
                    continue
                startup = self._startup(node.dn_Startup)
                if startup is None or not names_equal(startup.driver_name, driver_name):
                    continue
                if startup.unit_number == unit_number:
                    logger.debug("%s unit %d is %s", driver_name, unit_number, node_name)
                    return ResolutionResult(self._record(node, node_name), node_name)
        return ResolutionResult(None, "")

    def resolve_by_pattern(self, pattern: str) -> Iterator[ResolutionResult]:
        """Lazily yield entries whose name starts with the prefix before a trailing ``*``.

        A pattern without the trailing wildcard yields nothing. The forbidden
        section is dropped while each result is with the consumer, so the
        consumer may lock and query the device.
        """
        if not pattern.endswith(PATTERN_WILDCARD):
            logger.debug("pattern %r has no trailing %s; nothing to match", pattern, PATTERN_WILDCARD)
            return
        prefix = pattern[:-1].lower()
        with self.host.forbidden():
            for node, node_name in self._named_nodes():
                if not node_name.lower().startswith(prefix):
                    continue
                result = ResolutionResult(self._record(node, node_name), node_name)
                self.host.permit()
                try:
                    yield result
                finally:
                    self.host.forbid()
