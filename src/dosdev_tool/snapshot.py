# src/dosdev_tool/snapshot.py
"""Compile a JSON device directory description into an AmigaOS memory image.

The image holds just enough of exec and dos for ImageHost to find the
device list the way a running system does: AbsExecBase at address 4,
dos.library on ExecBase->LibList, drivers on ExecBase->DeviceList.
"""

from __future__ import annotations

import ctypes as ct
import json
from pathlib import Path
from typing import Any, Dict, List, Union

from .constants import (
    ABS_EXEC_BASE,
    EXEC_DEVICE_LIST,
    EXEC_LIB_LIST,
    DOS_LIBRARY_NAME,
    DLT_DEVICE,
    DLT_DIRECTORY,
    DLT_VOLUME,
    DLT_LATE,
    DLT_NONBINDING,
    DEFAULT_SIZE_BLOCK,
    DEFAULT_SECTORS_PER_BLOCK,
    DEFAULT_RESERVED,
    DEFAULT_PREALLOC,
    DEFAULT_INTERLEAVE,
    DEFAULT_BUFFERS,
    DEFAULT_BUF_MEM_TYPE,
    DEFAULT_MAX_TRANSFER,
    DEFAULT_MASK,
    DEFAULT_BOOT_PRI,
    DEFAULT_DOS_TYPE,
    DEFAULT_TABLE_SIZE,
    ID_DOS_DISK,
)
from .errors import SnapshotError
from .structs import (
    DL_ROOT,
    LN_NAME,
    LN_SUCC,
    DeviceNode,
    DosEnvec,
    DosInfo,
    FileSysStartupMsg,
    RootNode,
    VolumeNode,
)
from .utils import parse_dostype

_EXEC_BASE_SIZE = 0x260
_LIBRARY_SIZE = 64
_TASK_SIZE = 92
_LOCK_SIZE = 20
_LN_PRED = 4

NODE_TYPES = {
    "device": DLT_DEVICE,
    "assign": DLT_DIRECTORY,
    "volume": DLT_VOLUME,
    "late": DLT_LATE,
    "nonbinding": DLT_NONBINDING,
}

# snapshot key -> (DosEnvec field, default); None marks a required key
ENVEC_KEYS: Dict[str, tuple] = {
    "table_size": ("de_TableSize", DEFAULT_TABLE_SIZE),
    "size_block": ("de_SizeBlock", DEFAULT_SIZE_BLOCK),
    "sec_org": ("de_SecOrg", 0),
    "surfaces": ("de_Surfaces", None),
    "sectors_per_block": ("de_SectorPerBlock", DEFAULT_SECTORS_PER_BLOCK),
    "blocks_per_track": ("de_BlocksPerTrack", None),
    "reserved": ("de_Reserved", DEFAULT_RESERVED),
    "prealloc": ("de_PreAlloc", DEFAULT_PREALLOC),
    "interleave": ("de_Interleave", DEFAULT_INTERLEAVE),
    "low_cyl": ("de_LowCyl", None),
    "high_cyl": ("de_HighCyl", None),
    "buffers": ("de_NumBuffers", DEFAULT_BUFFERS),
    "buf_mem_type": ("de_BufMemType", DEFAULT_BUF_MEM_TYPE),
    "max_transfer": ("de_MaxTransfer", DEFAULT_MAX_TRANSFER),
    "mask": ("de_Mask", DEFAULT_MASK),
    "boot_pri": ("de_BootPri", DEFAULT_BOOT_PRI),
    "dos_type": ("de_DosType", DEFAULT_DOS_TYPE),
}

_ENTRY_KEYS = {
    "name", "type", "task", "lock", "handler", "seglist", "stack_size",
    "priority", "global_vec", "startup", "volume", "disk_type",
}
_STARTUP_KEYS = {"device", "unit", "flags", "environ"}
_VOLUME_KEYS = {"name", "disk_type"}


def _check_keys(where: str, data: Any, allowed: set) -> None:
    if not isinstance(data, dict):
        raise SnapshotError(f"{where}: expected an object, got {type(data).__name__}")
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise SnapshotError(f"{where}: unknown key(s) {', '.join(unknown)}")


class SnapshotBuilder:
    def __init__(self, base: int = 0x400):
        self.memory = bytearray(base)
        self._top = base
        self._drivers: List[int] = []
        self._entries: List[int] = []

    # --- allocation ---

    def alloc(self, size: int, align: int = 4) -> int:
        self._top = (self._top + align - 1) & ~(align - 1)
        address = self._top
        self._top += size
        if len(self.memory) < self._top:
            self.memory.extend(bytes(self._top - len(self.memory)))
        return address

    def put(self, address: int, data: bytes) -> None:
        self.memory[address:address + len(data)] = data

    def put_long(self, address: int, value: int) -> None:
        self.put(address, (value & 0xFFFFFFFF).to_bytes(4, "big"))

    def put_struct(self, address: int, struct: ct.Structure) -> None:
        self.put(address, bytes(struct))

    @staticmethod
    def bptr(address: int) -> int:
        if address & 3:
            raise SnapshotError(f"${address:08X} is not longword aligned")
        return address >> 2

    def cstring(self, text: str) -> int:
        raw = text.encode("latin-1") + b"\0"
        address = self.alloc(len(raw), align=2)
        self.put(address, raw)
        return address

    def bstr(self, text: str) -> int:
        raw = text.encode("latin-1")
        if len(raw) > 255:
            raise SnapshotError(f"name too long for a BSTR: {text!r}")
        address = self.alloc(len(raw) + 1)
        self.put(address, bytes([len(raw)]) + raw)
        return self.bptr(address)

    # --- content ---

    def add_driver(self, name: str) -> int:
        node = self.alloc(_LIBRARY_SIZE)
        self.put_long(node + LN_NAME, self.cstring(name))
        self._drivers.append(node)
        return node

    def add_entry(self, entry: Dict[str, Any], task: int = 0) -> int:
        where = f"device {entry.get('name', '?')!r}"
        _check_keys(where, entry, _ENTRY_KEYS)
        name = entry.get("name")
        if not isinstance(name, str):
            raise SnapshotError(f"{where}: 'name' must be a string")

        raw_type = entry.get("type", "device")
        if isinstance(raw_type, int):
            node_type = raw_type
        elif raw_type in NODE_TYPES:
            node_type = NODE_TYPES[raw_type]
        else:
            raise SnapshotError(f"{where}: unknown type {raw_type!r}")

        if entry.get("task") and not task:
            task = self.alloc(_TASK_SIZE)

        address = self.alloc(ct.sizeof(DeviceNode))
        if node_type == DLT_VOLUME:
            node = VolumeNode()
            node.dl_Type = node_type
            node.dl_Task = task
            node.dol_DiskType = parse_dostype(entry.get("disk_type", ID_DOS_DISK))
            node.dl_Name = self.bstr(name)
        else:
            node = DeviceNode()
            node.dn_Type = node_type & 0xFFFFFFFF
            node.dn_Task = task
            if entry.get("lock"):
                node.dn_Lock = self.bptr(self.alloc(_LOCK_SIZE))
            if entry.get("handler"):
                node.dn_Handler = self.bstr(entry["handler"])
            node.dn_SegList = int(entry.get("seglist", 0))
            node.dn_StackSize = int(entry.get("stack_size", 4096))
            node.dn_Priority = int(entry.get("priority", 10))
            node.dn_GlobalVec = int(entry.get("global_vec", -1))
            startup = entry.get("startup")
            if isinstance(startup, int):
                node.dn_Startup = startup & 0xFFFFFFFF
            elif startup is not None:
                node.dn_Startup = self._startup(where, startup)
            node.dn_Name = self.bstr(name)
        self.put_struct(address, node)
        self._entries.append(address)

        volume = entry.get("volume")
        if volume is not None:
            _check_keys(f"{where} volume", volume, _VOLUME_KEYS)
            if not task:
                raise SnapshotError(f"{where}: a mounted volume needs \"task\": true")
            self.add_entry(
                {"name": volume["name"], "type": "volume",
                 "disk_type": volume.get("disk_type", ID_DOS_DISK)},
                task=task,
            )
        return address

    def _startup(self, where: str, startup: Dict[str, Any]) -> int:
        _check_keys(f"{where} startup", startup, _STARTUP_KEYS)
        if "device" not in startup:
            raise SnapshotError(f"{where} startup: 'device' is required")
        msg = FileSysStartupMsg()
        msg.fssm_Unit = int(startup.get("unit", 0)) & 0xFFFFFFFF
        msg.fssm_Device = self.bstr(startup["device"])
        msg.fssm_Flags = int(startup.get("flags", 0)) & 0xFFFFFFFF
        if startup.get("environ") is not None:
            msg.fssm_Environ = self._environ(where, startup["environ"])
        address = self.alloc(ct.sizeof(FileSysStartupMsg))
        self.put_struct(address, msg)
        return self.bptr(address)

    def _environ(self, where: str, environ: Dict[str, Any]) -> int:
        _check_keys(f"{where} environ", environ, set(ENVEC_KEYS))
        envec = DosEnvec()
        for key, (field_name, default) in ENVEC_KEYS.items():
            value = environ.get(key, default)
            if value is None:
                raise SnapshotError(f"{where} environ: '{key}' is required")
            if key == "dos_type":
                value = parse_dostype(value)
            elif field_name == "de_BootPri":
                value = int(value)
            else:
                value = int(value) & 0xFFFFFFFF
            setattr(envec, field_name, value)
        table_size = envec.de_TableSize
        raw = bytes(envec)[: (table_size + 1) * 4]
        address = self.alloc(ct.sizeof(DosEnvec))
        self.put(address, raw)
        return self.bptr(address)

    # --- linking ---

    def _link_exec_list(self, list_address: int, nodes: List[int]) -> None:
        tail = list_address + 4
        self.put_long(list_address, nodes[0] if nodes else tail)
        self.put_long(list_address + 4, 0)
        self.put_long(list_address + 8, nodes[-1] if nodes else list_address)
        for i, node in enumerate(nodes):
            self.put_long(node + LN_SUCC, nodes[i + 1] if i + 1 < len(nodes) else tail)
            self.put_long(node + _LN_PRED, nodes[i - 1] if i else list_address)

    def build(self) -> bytes:
        exec_base = self.alloc(_EXEC_BASE_SIZE)
        self.put_long(ABS_EXEC_BASE, exec_base)

        dos_base = self.alloc(_LIBRARY_SIZE)
        self.put_long(dos_base + LN_NAME, self.cstring(DOS_LIBRARY_NAME))
        root_address = self.alloc(ct.sizeof(RootNode))
        info_address = self.alloc(ct.sizeof(DosInfo))
        self.put_long(dos_base + DL_ROOT, root_address)

        root = RootNode()
        root.rn_Info = self.bptr(info_address)
        self.put_struct(root_address, root)

        for here, following in zip(self._entries, self._entries[1:] + [0]):
            self.put_long(here, self.bptr(following) if following else 0)
        dos_info = DosInfo()
        dos_info.di_DevInfo = self.bptr(self._entries[0]) if self._entries else 0
        self.put_struct(info_address, dos_info)

        self._link_exec_list(exec_base + EXEC_LIB_LIST, [dos_base])
        self._link_exec_list(exec_base + EXEC_DEVICE_LIST, self._drivers)
        return bytes(self.memory)


def build_image(data: Dict[str, Any]) -> bytes:
    _check_keys("snapshot", data, {"drivers", "devices"})
    builder = SnapshotBuilder()
    for driver in data.get("drivers", []):
        if not isinstance(driver, str):
            raise SnapshotError(f"snapshot: driver names must be strings, got {driver!r}")
        builder.add_driver(driver)
    for entry in data.get("devices", []):
        builder.add_entry(entry)
    return builder.build()


def load_snapshot(path: Union[str, Path]) -> bytes:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"{path}: {exc}") from exc
    return build_image(data)
