# src/dosdev_tool/report.py

import os
from typing import IO, List, Optional, Tuple

from pygments import highlight as _pygments_highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import IniLexer

from .constants import (
    DEFAULT_BOOT_PRI,
    DEFAULT_BUF_MEM_TYPE,
    DEFAULT_DOS_TYPE,
    DEFAULT_INTERLEAVE,
    DEFAULT_MASK,
    DEFAULT_MAX_TRANSFER,
    DEFAULT_RESERVED,
    DEFAULT_SIZE_BLOCK,
    DEVICE_SEPARATOR,
)
from .models import CheckResult, Classification, DeviceReport, ResolutionResult, StatusOutcome
from .utils import format_dostype

_INDENT = "    "


def format_status(result: CheckResult) -> List[str]:
    """Status lines for a single check, as printed without --quiet."""
    outcome = result.outcome
    name = result.resolution.clean_name
    lines: List[str] = []

    if outcome.classification is Classification.DRIVER_UNAVAILABLE:
        return [f"Device driver {result.driver_name} not available"]

    if result.unit_number is not None:
        if not result.resolution.found:
            return [f"No {result.driver_name} found with unit {result.unit_number}"]
        lines.append(f"Found {result.driver_name} unit {result.unit_number} as {name}:")

    if outcome.classification is Classification.MOUNTED:
        if outcome.volume_name:
            lines.append(f'{name}: has mounted volume "{outcome.volume_name}"')
        else:
            lines.append(f"{name}: has mounted volume")
    elif outcome.classification is Classification.MEDIA_ABSENT:
        lines.append(f"{name}: no disk present")
    else:
        lines.append(f"{name}: device not found")
    return lines


def format_scan_line(resolution: ResolutionResult, outcome: StatusOutcome) -> str:
    name = resolution.clean_name
    if outcome.classification is Classification.MOUNTED:
        if outcome.volume_name:
            return f'  {name}: Volume "{outcome.volume_name}"'
        return f"  {name}: Volume mounted"
    return f"  {name}: No disk present"


def _hex(value: int) -> str:
    return f"0x{value & 0xFFFFFFFF:08X}"


def _dostype_label(value: int) -> str:
    return f"{format_dostype(value)} ({_hex(value)})"


def format_info(report: DeviceReport, outcome: Optional[StatusOutcome] = None) -> str:
    rows: List[Tuple[str, object]] = [("Name", report.name), ("Type", report.kind)]
    if outcome is not None:
        rows.append(("Status", outcome.classification.value.replace("_", " ")))
        if outcome.volume_name:
            rows.append(("Volume", outcome.volume_name))
    if report.driver_name is not None:
        rows += [
            ("Device", report.driver_name),
            ("Unit", report.unit_number),
            ("Flags", report.flags),
        ]
    geo = report.geometry
    if geo is not None:
        rows += [
            ("BlockSize", geo.block_size),
            ("Surfaces", geo.surfaces),
            ("BlocksPerTrack", geo.blocks_per_track),
            ("SectorsPerBlock", geo.sectors_per_block),
            ("Reserved", geo.reserved_blocks),
            ("PreAlloc", geo.prealloc),
            ("Interleave", geo.interleave),
            ("LowCyl", geo.low_cylinder),
            ("HighCyl", geo.high_cylinder),
            ("Buffers", geo.buffer_count),
            ("BufMemType", geo.buffer_memory_class),
            ("MaxTransfer", _hex(geo.max_transfer_size)),
            ("Mask", _hex(geo.transfer_mask)),
            ("BootPri", geo.boot_priority),
            ("DosType", _dostype_label(geo.type_signature)),
        ]
    if report.handler_name:
        suffix = " (inferred from DosType)" if report.handler_inferred else ""
        rows.append(("Handler", report.handler_name + suffix))
    if report.seglist:
        rows.append(("SegList", f"${report.seglist:08X}"))
    if report.stack_size is not None:
        rows += [
            ("StackSize", report.stack_size),
            ("Priority", report.priority),
            ("GlobVec", report.global_vec),
        ]

    width = max(len(key) for key, _ in rows)
    lines = [f"=== {report.name}{DEVICE_SEPARATOR} ==="]
    lines += [f"  {key:<{width}} : {value}" for key, value in rows]
    return "\n".join(lines)


def format_mountlist(report: DeviceReport) -> str:
    """Mountlist entry for ``report``; keys at their default value are left out."""
    lines = [f"{report.name}{DEVICE_SEPARATOR}"]

    def add(key: str, value: object) -> None:
        lines.append(f"{_INDENT}{key} = {value}")

    if report.driver_name is not None:
        add("Device", report.driver_name)
        add("Unit", report.unit_number)
        add("Flags", report.flags)

    geo = report.geometry
    if geo is not None:
        add("Surfaces", geo.surfaces)
        add("BlocksPerTrack", geo.blocks_per_track)
        add("LowCyl", geo.low_cylinder)
        add("HighCyl", geo.high_cylinder)
        add("Buffers", geo.buffer_count)
        if geo.size_block != DEFAULT_SIZE_BLOCK:
            add("BlockSize", geo.block_size)
        if geo.reserved_blocks != DEFAULT_RESERVED:
            add("Reserved", geo.reserved_blocks)
        if geo.interleave != DEFAULT_INTERLEAVE:
            add("Interleave", geo.interleave)
        if geo.buffer_memory_class != DEFAULT_BUF_MEM_TYPE:
            add("BufMemType", geo.buffer_memory_class)
        if geo.max_transfer_size != DEFAULT_MAX_TRANSFER:
            add("MaxTransfer", _hex(geo.max_transfer_size))
        if geo.transfer_mask != DEFAULT_MASK:
            add("Mask", _hex(geo.transfer_mask))
        if geo.boot_priority != DEFAULT_BOOT_PRI:
            add("BootPri", geo.boot_priority)
        if geo.type_signature != DEFAULT_DOS_TYPE:
            add("DosType", _hex(geo.type_signature))

    if report.handler_name:
        add("Handler", report.handler_name)
    lines.append("#")
    return "\n".join(lines)


def use_color(stream: IO[str]) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def highlight(text: str, stream: IO[str]) -> str:
    """Colour a mountlist entry for a terminal; other streams get it unchanged."""
    if not use_color(stream):
        return text
    return _pygments_highlight(text, IniLexer(), TerminalFormatter()).rstrip("\n")
