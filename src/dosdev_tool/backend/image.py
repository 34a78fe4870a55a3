# src/dosdev_tool/backend/image.py

import logging
import threading
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

from .base import AbstractHost
from ..constants import (
    ABS_EXEC_BASE,
    EXEC_DEVICE_LIST,
    EXEC_LIB_LIST,
    DOS_LIBRARY_NAME,
    DLT_DEVICE,
    DLT_DIRECTORY,
    DLT_VOLUME,
    ID_DOS_DISK,
    ID_NO_DISK_PRESENT,
)
from ..errors import HostError, MemoryFault
from ..structs import DL_ROOT, LN_NAME, LN_SUCC, DeviceNode, DosInfo, InfoData, RootNode, VolumeNode
from ..utils import decode_bstr, names_equal

logger = logging.getLogger(__name__)

# Guards against cycles in damaged lists.
_MAX_LIST_NODES = 4096


class ImageHost(AbstractHost):
    """Host backed by an m68k memory image laid out like a running AmigaOS.

    The directory is found from AbsExecBase through dos.library. Handler
    answers to Lock()/Info() are derived from the DosList itself: a device
    without a task has no handler, a device with a task reports the volume
    that shares its task, or no disk when there is none.
    """

    def __init__(self, memory: Union[bytes, bytearray], source: str = "<memory>"):
        self.memory = bytearray(memory)
        self.source = source
        self._mutex = threading.RLock()
        self._forbid_count = 0
        self._forbid_owner: Optional[int] = None
        self._window_ptr = 0
        self._next_handle = 1
        self.open_locks: Dict[int, str] = {}
        self.open_requests: Dict[int, Tuple[str, int]] = {}

    @classmethod
    def from_dump(cls, path: Union[str, Path]) -> "ImageHost":
        """Load a raw memory dump that starts at address 0."""
        path = Path(path)
        return cls(path.read_bytes(), source=str(path))

    @classmethod
    def from_snapshot(cls, path: Union[str, Path]) -> "ImageHost":
        from ..snapshot import load_snapshot

        return cls(load_snapshot(path), source=str(path))

    # --- memory and critical section ---

    def read(self, address: int, size: int) -> bytes:
        if address < 0 or size < 0 or address + size > len(self.memory):
            raise MemoryFault(address, size)
        return bytes(self.memory[address:address + size])

    def forbid(self) -> None:
        self._mutex.acquire()
        self._forbid_count += 1
        self._forbid_owner = threading.get_ident()

    def permit(self) -> None:
        if self._forbid_count == 0:
            raise HostError("Permit() without a matching Forbid()")
        self._forbid_count -= 1
        if self._forbid_count == 0:
            self._forbid_owner = None
        self._mutex.release()

    @property
    def forbid_depth(self) -> int:
        return self._forbid_count

    def _require_unforbidden(self, call: str) -> None:
        # These calls wait on a handler or driver and would break the section.
        if self._forbid_count and self._forbid_owner == threading.get_ident():
            raise HostError(f"{call}() called while the device list is forbidden")

    @property
    def window_ptr(self) -> int:
        return self._window_ptr

    @window_ptr.setter
    def window_ptr(self, value: int) -> None:
        self._window_ptr = value

    # --- exec lists ---

    def _read_cstring(self, address: int, limit: int = 256) -> str:
        if not address:
            return ""
        end = min(address + limit, len(self.memory))
        raw = self.read(address, max(end - address, 0))
        return raw.split(b"\0", 1)[0].decode("latin-1")

    def _find_exec_node(self, list_offset: int, name: str) -> int:
        exec_base = self.read_long(ABS_EXEC_BASE)
        node = self.read_long(exec_base + list_offset)
        for _ in range(_MAX_LIST_NODES):
            succ = self.read_long(node + LN_SUCC)
            if not succ:
                break
            if self._read_cstring(self.read_long(node + LN_NAME)) == name:
                return node
            node = succ
        return 0

    def dos_list_head(self) -> int:
        with self.forbidden():
            dos_base = self._find_exec_node(EXEC_LIB_LIST, DOS_LIBRARY_NAME)
            if not dos_base:
                raise HostError(f"{DOS_LIBRARY_NAME} not found in {self.source}")
            root = self.read_struct(RootNode, self.read_long(dos_base + DL_ROOT))
            dos_info = self.read_struct(DosInfo, self.baddr(root.rn_Info))
            return dos_info.di_DevInfo

    def _dos_entries(self) -> Iterator[Tuple[int, DeviceNode]]:
        """Walk the DosList. Callers hold the forbidden section."""
        bptr = self.dos_list_head()
        for _ in range(_MAX_LIST_NODES):
            if not bptr:
                return
            node = self.read_struct(DeviceNode, self.baddr(bptr))
            yield bptr, node
            bptr = node.dn_Next

    def _find_dos_entry(self, name: str) -> Optional[Tuple[int, DeviceNode]]:
        for bptr, node in self._dos_entries():
            if names_equal(decode_bstr(self, node.dn_Name), name):
                return bptr, node
        return None

    def _media_state(self, name: str) -> Optional[Tuple[int, int]]:
        """(disk type, volume BPTR) the handler behind ``name`` would report."""
        with self.forbidden():
            entry = self._find_dos_entry(name)
            if entry is None:
                return None
            bptr, node = entry
            if node.dn_Type == DLT_DEVICE:
                if not node.dn_Task:
                    return None
                for vol_bptr, other in self._dos_entries():
                    if other.dn_Type != DLT_VOLUME:
                        continue
                    volume = self.read_struct(VolumeNode, self.baddr(vol_bptr))
                    if volume.dl_Task == node.dn_Task:
                        return volume.dol_DiskType, vol_bptr
                return ID_NO_DISK_PRESENT, 0
            if node.dn_Type == DLT_VOLUME:
                volume = self.read_struct(VolumeNode, self.baddr(bptr))
                if not volume.dl_Task:
                    return None
                return volume.dol_DiskType, bptr
            if node.dn_Type == DLT_DIRECTORY and node.dn_Lock:
                return ID_DOS_DISK, 0
            return None

    # --- handler calls ---

    def lock(self, path: str) -> Optional[int]:
        self._require_unforbidden("Lock")
        name, sep, rest = path.partition(":")
        if not sep or rest:
            logger.debug("Lock(%r): only device roots are modelled", path)
            return None
        if self._media_state(name) is None:
            return None
        handle = self._next_handle
        self._next_handle += 1
        self.open_locks[handle] = name
        return handle

    def unlock(self, handle: int) -> None:
        if self.open_locks.pop(handle, None) is None:
            raise HostError(f"UnLock() of lock {handle} that is not held")

    def info(self, handle: int) -> Optional[InfoData]:
        self._require_unforbidden("Info")
        name = self.open_locks.get(handle)
        if name is None:
            raise HostError(f"Info() on lock {handle} that is not held")
        state = self._media_state(name)
        if state is None:
            return None
        disk_type, volume = state
        data = InfoData()
        data.id_DiskType = disk_type
        data.id_VolumeNode = volume
        return data

    def open_device(self, driver_name: str, unit: int) -> Optional[int]:
        self._require_unforbidden("OpenDevice")
        with self.forbidden():
            found = self._find_exec_node(EXEC_DEVICE_LIST, driver_name)
        if not found:
            return None
        request = self._next_handle
        self._next_handle += 1
        self.open_requests[request] = (driver_name, unit)
        return request

    def close_device(self, request: int) -> None:
        if self.open_requests.pop(request, None) is None:
            raise HostError(f"CloseDevice() on request {request} that is not open")
