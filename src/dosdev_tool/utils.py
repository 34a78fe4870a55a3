# src/dosdev_tool/utils.py

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from .constants import DEVICE_SEPARATOR, MAX_NAME_CAPACITY

if TYPE_CHECKING:
    from .backend.base import AbstractHost


def decode_bstr(host: "AbstractHost", bstr: int, capacity: int = MAX_NAME_CAPACITY) -> str:
    """Decode the BCPL string a BSTR points at.

    The first byte holds the length, the characters follow without a
    terminator. Returns "" for a null BSTR, an empty string, or a length that
    would not fit ``capacity`` bytes with a terminator.
    """
    if not bstr:
        return ""
    address = host.baddr(bstr)
    length = host.read(address, 1)[0]
    if length == 0 or length + 1 > capacity:
        return ""
    return host.read(address + 1, length).decode("latin-1")


def strip_device_name(name: str) -> str:
    if name.endswith(DEVICE_SEPARATOR):
        return name[:-1]
    return name


def names_equal(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def is_number(text: str) -> bool:
    # str.isdigit() also accepts superscripts and other non-ASCII digits.
    return bool(text) and all("0" <= ch <= "9" for ch in text)


def format_dostype(value: int) -> str:
    """Render a DosType the way the Amiga shell does, e.g. ``DOS\\3``."""
    value &= 0xFFFFFFFF
    parts = []
    for byte in value.to_bytes(4, "big"):
        if 0x20 < byte < 0x7F and byte != 0x5C:
            parts.append(chr(byte))
        else:
            parts.append(f"\\{byte}" if byte < 10 else f"\\x{byte:02X}")
    return "".join(parts)


def parse_dostype(value: Union[str, int]) -> int:
    """Accept ``DOS\\3``, ``0x444F5303`` or a plain integer."""
    if isinstance(value, int):
        return value & 0xFFFFFFFF
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16) & 0xFFFFFFFF
    if is_number(text):
        return int(text) & 0xFFFFFFFF
    raw = bytearray()
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            rest = text[i + 1:]
            if rest[0] in "xX" and len(rest) >= 3:
                raw.append(int(rest[1:3], 16))
                i += 4
                continue
            if rest[0].isdigit():
                raw.append(int(rest[0]))
                i += 2
                continue
        raw.append(ord(ch))
        i += 1
    if len(raw) != 4:
        raise ValueError(f"DosType must be four bytes: {value!r}")
    return int.from_bytes(bytes(raw), "big")
