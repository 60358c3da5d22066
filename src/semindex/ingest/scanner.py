"""Directory walker producing candidate files for the indexer."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from semindex.errors import ConfigurationError
from semindex.ingest.ignore import IgnorePattern

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".md", ".markdown", ".txt", ".rst", ".log", ".csv",
        ".py", ".kt", ".kts", ".java", ".js", ".jsx", ".ts", ".tsx",
        ".rs", ".go", ".c", ".h", ".cpp", ".hpp", ".cs", ".rb", ".php",
        ".swift", ".scala", ".clj", ".sh",
        ".json", ".yaml", ".yml", ".toml", ".ini", ".conf", ".cfg",
        ".xml", ".html", ".css", ".sql",
    }
)

# Files accepted by name even when their extension is not in the set above.
SPECIAL_FILE_NAMES: frozenset[str] = frozenset(
    {
        ".editorconfig", ".eslintrc", ".prettierrc", ".gitignore",
        "dockerfile", "makefile", "pyproject.toml", "ruff.toml",
        "openapi.yaml", "openapi.yml", "swagger.json", "schema.sql",
    }
)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


@dataclass(frozen=True)
class FileInfo:
    """A candidate file. ``mtime`` is integer epoch milliseconds."""

    path: str
    name: str
    size: int
    mtime: int
    extension: str

    @classmethod
    def from_path(cls, path: Path) -> FileInfo:
        st = path.stat()
        return cls(
            path=str(path.resolve()),
            name=path.name,
            size=st.st_size,
            mtime=st.st_mtime_ns // 1_000_000,
            extension=path.suffix.lower(),
        )


class FileScanner:
    """Walk a directory tree and return supported, non-ignored files.

    Args:
        ignore: Exclusion patterns (gitignore-style globs).
        extensions: Accepted lowercase extensions, dot included.
        max_file_size: Files larger than this (bytes) are skipped.
        use_gitignore: Also apply the root's ``.gitignore``, if present.
    """

    def __init__(
        self,
        ignore: list[str] | None = None,
        extensions: frozenset[str] | set[str] | None = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        use_gitignore: bool = True,
    ) -> None:
        self.ignore = list(ignore or [])
        self.extensions = frozenset(e.lower() for e in (extensions or DEFAULT_EXTENSIONS))
        self.max_file_size = max_file_size
        self.use_gitignore = use_gitignore

    def scan(self, root: Path | str) -> list[FileInfo]:
        """Return candidate files under *root*, sorted by path.

        Raises:
            ConfigurationError: If *root* does not exist or is not a directory.
        """
        root = Path(root)
        if not root.is_dir():
            raise ConfigurationError(f"Directory does not exist: {root}")
        root = root.resolve()

        if self.use_gitignore:
            patterns = IgnorePattern.from_gitignore(root / ".gitignore", extra=self.ignore)
        else:
            patterns = IgnorePattern(self.ignore)

        files: list[FileInfo] = []
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            # Prune ignored directories in place so os.walk never descends.
            dirnames[:] = sorted(
                d
                for d in dirnames
                if d != ".git" and not patterns.should_ignore(current / d, root, is_dir=True)
            )
            for name in sorted(filenames):
                path = current / name
                if patterns.should_ignore(path, root):
                    continue
                if not self._is_supported(path):
                    continue
                try:
                    info = FileInfo.from_path(path)
                except OSError as exc:
                    logger.warning("Cannot stat %s: %s", path, exc)
                    continue
                if info.size > self.max_file_size:
                    logger.debug("Skipping %s (%d bytes > %d)", path, info.size, self.max_file_size)
                    continue
                files.append(info)

        files.sort(key=lambda f: f.path)
        return files

    def _is_supported(self, path: Path) -> bool:
        if not path.is_file():
            return False
        return path.suffix.lower() in self.extensions or path.name.lower() in SPECIAL_FILE_NAMES
