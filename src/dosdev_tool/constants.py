# src/dosdev_tool/constants.py

from typing import Dict, Tuple

# Return codes, ordered by severity.
RC_OK = 0
RC_WARN = 5
RC_ERROR = 10
RC_FAIL = 20

DEFAULT_DRIVER = "diskimage.device"

# Longest DOS name plus terminator.
MAX_NAME_CAPACITY = 108

DEVICE_SEPARATOR = ":"
PATTERN_WILDCARD = "*"

# DosList dl_Type values
DLT_DEVICE = 0
DLT_DIRECTORY = 1
DLT_VOLUME = 2
DLT_LATE = 3
DLT_NONBINDING = 4

# InfoData id_DiskType values
ID_NO_DISK_PRESENT = -1
ID_DOS_DISK = 0x444F5300  # 'DOS\0'

# Requester suppression value for pr_WindowPtr.
WINDOW_PTR_SUPPRESS = -1

# exec/dos structure offsets not covered by structs.py
ABS_EXEC_BASE = 4
EXEC_DEVICE_LIST = 350
EXEC_LIB_LIST = 378
DOS_LIBRARY_NAME = "dos.library"

# Mount defaults. A field equal to its default is left out of a
# generated mountlist entry.
DEFAULT_SIZE_BLOCK = 128  # longwords, i.e. 512 byte blocks
DEFAULT_SECTORS_PER_BLOCK = 1
DEFAULT_RESERVED = 2
DEFAULT_PREALLOC = 0
DEFAULT_INTERLEAVE = 0
DEFAULT_BUFFERS = 5
DEFAULT_BUF_MEM_TYPE = 0
DEFAULT_MAX_TRANSFER = 0x7FFFFFFF
DEFAULT_MASK = 0xFFFFFFFE
DEFAULT_BOOT_PRI = 0
DEFAULT_DOS_TYPE = ID_DOS_DISK
DEFAULT_TABLE_SIZE = 16  # through de_DosType

PRIMARY_HANDLER = "L:FastFileSystem"


def _tag(text: str) -> int:
    return int.from_bytes(text.encode("latin-1"), "big")


# Filesystem handler inferred from a DosType when the record names none.
HANDLER_BY_DOSTYPE: Dict[int, str] = {}

_HANDLER_FAMILIES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (tuple(f"DOS{chr(n)}" for n in range(8)), PRIMARY_HANDLER),
    (("PFS\x01", "PFS\x02", "PFS\x03", "PDS\x03"), "L:pfs3aio"),
    (("SFS\x00", "SFS\x02"), "L:SmartFilesystem"),
    (("MSD\x00", "MSH\x00"), "L:CrossDOSFileSystem"),
    (("CD01", "CDFS"), "L:CDFileSystem"),
)

for _tags, _handler in _HANDLER_FAMILIES:
    for _t in _tags:
        HANDLER_BY_DOSTYPE[_tag(_t)] = _handler
