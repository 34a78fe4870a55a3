"""Runtime version resolver for dosdev_tool."""

from __future__ import annotations

import importlib.metadata
import os
import re
from pathlib import Path
from typing import Iterable, Optional

__all__ = ["get_version"]

PACKAGE_NAME = "dosdev-tool"
CACHE_FILE = Path(__file__).with_name("_cached_version.txt")
_SETUP_VERSION_RE = re.compile(r"^\s*version\s*=\s*['\"]([^'\"]+)['\"]", re.MULTILINE)


def _candidate_roots() -> Iterable[Path]:
    """Directories above this module that may hold setup.py, nearest first."""
    seen: set[Path] = set()
    for loc in [*Path(__file__).resolve().parents, Path.cwd()]:
        if loc in seen:
            continue
        seen.add(loc)
        yield loc


def _read_version_from_setup() -> Optional[str]:
    for root in _candidate_roots():
        candidate = root / "setup.py"
        if not candidate.is_file():
            continue
        try:
            text = candidate.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            continue
        if PACKAGE_NAME not in text:
            continue
        match = _SETUP_VERSION_RE.search(text)
        if match:
            return match.group(1).strip()
    return None


def _read_cached_version() -> Optional[str]:
    try:
        text = CACHE_FILE.read_text(encoding="utf-8").strip()
        if text:
            return text
    except OSError:
        pass
    return None


def _write_cached_version(version: str) -> None:
    version = version.strip()
    if not version:
        return
    try:
        CACHE_FILE.write_text(version + "\n", encoding="utf-8")
    except OSError:
        pass


def get_version(dist_name: str = PACKAGE_NAME) -> str:
    """Return the version shown in the help footer."""
    env_override = os.getenv("DOSDEV_TOOL_VERSION")
    if env_override:
        return env_override
    try:
        resolved = importlib.metadata.version(dist_name)
        _write_cached_version(resolved)
        return resolved
    except importlib.metadata.PackageNotFoundError:
        pass
    setup_version = _read_version_from_setup()
    if setup_version:
        _write_cached_version(setup_version)
        return setup_version
    return _read_cached_version() or "Unknown"
