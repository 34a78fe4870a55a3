from pathlib import Path
from uuid import uuid4

from dosdev_tool import _version as version_mod


def _repo_temp_cache_file() -> Path:
    return Path.cwd() / f".tmp_cached_version_{uuid4().hex}.txt"


def test_write_cached_version_uses_trailing_newline(monkeypatch):
    cache_file = _repo_temp_cache_file()
    try:
        monkeypatch.setattr(version_mod, "CACHE_FILE", cache_file)

        version_mod._write_cached_version(" 1.0.0 ")

        assert cache_file.read_text(encoding="utf-8") == "1.0.0\n"
    finally:
        cache_file.unlink(missing_ok=True)


def test_write_cached_version_ignores_blank_values(monkeypatch):
    cache_file = _repo_temp_cache_file()
    try:
        monkeypatch.setattr(version_mod, "CACHE_FILE", cache_file)

        version_mod._write_cached_version("   ")

        assert not cache_file.exists()
    finally:
        cache_file.unlink(missing_ok=True)


def test_env_override_wins(monkeypatch):
    monkeypatch.setenv("DOSDEV_TOOL_VERSION", "2.0.0-test")
    assert version_mod.get_version() == "2.0.0-test"


def test_falls_back_to_cache_then_unknown(monkeypatch, tmp_path):
    def _missing(_name):
        raise version_mod.importlib.metadata.PackageNotFoundError

    cache_file = tmp_path / "cache.txt"
    monkeypatch.delenv("DOSDEV_TOOL_VERSION", raising=False)
    monkeypatch.setattr(version_mod.importlib.metadata, "version", _missing)
    monkeypatch.setattr(version_mod, "_read_version_from_setup", lambda: None)
    monkeypatch.setattr(version_mod, "CACHE_FILE", cache_file)

    assert version_mod.get_version() == "Unknown"
    cache_file.write_text("0.9.1\n", encoding="utf-8")
    assert version_mod.get_version() == "0.9.1"


def test_setup_version_requires_matching_package(monkeypatch, tmp_path):
    (tmp_path / "setup.py").write_text(
        "setup(name='other-tool', version='5.5.5')\n", encoding="utf-8"
    )
    monkeypatch.setattr(version_mod, "_candidate_roots", lambda: [tmp_path])
    assert version_mod._read_version_from_setup() is None

    (tmp_path / "setup.py").write_text(
        "setup(\n    name='dosdev-tool',\n    version='1.4.0',\n)\n", encoding="utf-8"
    )
    assert version_mod._read_version_from_setup() == "1.4.0"
