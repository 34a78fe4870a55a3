# src/dosdev_tool/models.py

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Dict, Any, Union

from .constants import (
    RC_OK,
    RC_WARN,
    RC_ERROR,
    RC_FAIL,
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
)


class NodeKind(IntEnum):
    DEVICE = 0
    DIRECTORY = 1
    VOLUME = 2
    LATE = 3
    NONBINDING = 4

    @classmethod
    def from_raw(cls, value: int) -> Union["NodeKind", int]:
        """Return the matching kind, or the raw value for types DOS does not define."""
        try:
            return cls(value)
        except ValueError:
            return value


class Classification(Enum):
    MOUNTED = "mounted"
    MEDIA_ABSENT = "media_absent"
    NOT_FOUND = "not_found"
    DRIVER_UNAVAILABLE = "driver_unavailable"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]


_EXIT_CODES = {
    Classification.MOUNTED: RC_OK,
    Classification.MEDIA_ABSENT: RC_WARN,
    Classification.NOT_FOUND: RC_ERROR,
    Classification.DRIVER_UNAVAILABLE: RC_FAIL,
}


@dataclass
class Geometry:
    surfaces: int
    blocks_per_track: int
    low_cylinder: int
    high_cylinder: int
    size_block: int = DEFAULT_SIZE_BLOCK
    sectors_per_block: int = DEFAULT_SECTORS_PER_BLOCK
    reserved_blocks: int = DEFAULT_RESERVED
    prealloc: int = DEFAULT_PREALLOC
    interleave: int = DEFAULT_INTERLEAVE
    buffer_count: int = DEFAULT_BUFFERS
    buffer_memory_class: int = DEFAULT_BUF_MEM_TYPE
    max_transfer_size: int = DEFAULT_MAX_TRANSFER
    transfer_mask: int = DEFAULT_MASK
    boot_priority: int = DEFAULT_BOOT_PRI
    type_signature: int = DEFAULT_DOS_TYPE
    table_size: int = DEFAULT_TABLE_SIZE

    @property
    def block_size(self) -> int:
        return self.size_block * 4

    def to_dict(self) -> Dict[str, Any]:
        return vars(self).copy()


@dataclass
class StartupInfo:
    driver_name: str
    unit_number: int
    flags: int = 0
    geometry: Optional[Geometry] = None


@dataclass
class DeviceRecord:
    """Decoded copy of one device directory entry.

    Holds values only; nothing in here points back into OS memory.
    """

    name: str
    kind: Union[NodeKind, int] = NodeKind.DEVICE
    startup: Optional[StartupInfo] = None
    handler_name: Optional[str] = None
    # Segment list BPTR of a handler loaded without a name.
    seglist: int = 0
    stack_size: int = 0
    priority: int = 0
    global_vec: int = 0


@dataclass
class ResolutionResult:
    record: Optional[DeviceRecord]
    clean_name: str

    @property
    def found(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class StatusOutcome:
    classification: Classification
    volume_name: str = ""

    @property
    def exit_code(self) -> int:
        return self.classification.exit_code


@dataclass
class DeviceReport:
    name: str
    kind: str
    driver_name: Optional[str] = None
    unit_number: Optional[int] = None
    flags: Optional[int] = None
    geometry: Optional[Geometry] = None
    handler_name: Optional[str] = None
    handler_inferred: bool = False
    seglist: Optional[int] = None
    stack_size: Optional[int] = None
    priority: Optional[int] = None
    global_vec: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d = vars(self).copy()
        if self.geometry is not None:
            d["geometry"] = self.geometry.to_dict()
        return {k: v for k, v in d.items() if v is not None}


@dataclass
class CheckResult:
    outcome: StatusOutcome
    resolution: ResolutionResult
    driver_name: str
    unit_number: Optional[int] = None

    @property
    def exit_code(self) -> int:
        return self.outcome.exit_code
