"""Tests for FileScanner and FileInfo."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from semindex.errors import ConfigurationError
from semindex.ingest.scanner import DEFAULT_EXTENSIONS, FileInfo, FileScanner


def _tree(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def _names(infos, root: Path) -> list[str]:
    return [Path(i.path).relative_to(root.resolve()).as_posix() for i in infos]


def test_file_info_from_path(tmp_path):
    f = tmp_path / "Guide.MD"
    f.write_text("hello", encoding="utf-8")
    os.utime(f, ns=(1_700_000_000_123_456_789, 1_700_000_000_123_456_789))

    info = FileInfo.from_path(f)
    assert info.path == str(f.resolve())
    assert info.name == "Guide.MD"
    assert info.size == 5
    assert info.mtime == 1_700_000_000_123
    assert info.extension == ".md"


def test_scan_returns_supported_files_sorted(tmp_path):
    _tree(tmp_path, {"b.md": "b", "a.txt": "a", "sub/c.py": "c", "image.png": "x"})
    infos = FileScanner().scan(tmp_path)
    assert _names(infos, tmp_path) == ["a.txt", "b.md", "sub/c.py"]


def test_scan_accepts_special_file_names(tmp_path):
    _tree(tmp_path, {"Dockerfile": "FROM x", "Makefile": "all:", "random": "?"})
    assert _names(FileScanner().scan(tmp_path), tmp_path) == ["Dockerfile", "Makefile"]


def test_scan_respects_ignore_patterns(tmp_path):
    _tree(
        tmp_path,
        {"keep.md": "k", "drop.log": "d", "build/out.txt": "o", "src/build/in.txt": "i"},
    )
    infos = FileScanner(ignore=["*.log", "/build"]).scan(tmp_path)
    assert _names(infos, tmp_path) == ["keep.md", "src/build/in.txt"]


def test_scan_uses_gitignore(tmp_path):
    _tree(tmp_path, {".gitignore": "secret/\n", "secret/a.md": "s", "open.md": "o"})
    names = _names(FileScanner().scan(tmp_path), tmp_path)
    assert "secret/a.md" not in names
    assert "open.md" in names


def test_scan_can_skip_gitignore(tmp_path):
    _tree(tmp_path, {".gitignore": "secret/\n", "secret/a.md": "s"})
    names = _names(FileScanner(use_gitignore=False).scan(tmp_path), tmp_path)
    assert "secret/a.md" in names


def test_scan_skips_git_directory(tmp_path):
    _tree(tmp_path, {".git/config.txt": "x", "a.md": "a"})
    assert _names(FileScanner().scan(tmp_path), tmp_path) == ["a.md"]


def test_scan_skips_large_files(tmp_path):
    _tree(tmp_path, {"small.txt": "x", "large.txt": "x" * 100})
    infos = FileScanner(max_file_size=10).scan(tmp_path)
    assert _names(infos, tmp_path) == ["small.txt"]


def test_scan_custom_extensions(tmp_path):
    _tree(tmp_path, {"a.md": "a", "b.txt": "b"})
    infos = FileScanner(extensions={".TXT"}).scan(tmp_path)
    assert _names(infos, tmp_path) == ["b.txt"]


def test_scan_missing_root_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="does not exist"):
        FileScanner().scan(tmp_path / "missing")


def test_scan_file_root_raises(tmp_path):
    f = tmp_path / "a.md"
    f.write_text("a")
    with pytest.raises(ConfigurationError):
        FileScanner().scan(f)


def test_default_extensions_lowercase_with_dot():
    assert all(e.startswith(".") and e == e.lower() for e in DEFAULT_EXTENSIONS)
