"""Gitignore-flavoured exclusion patterns for the file scanner.

Supported syntax (a practical subset of .gitignore):

- blank lines and lines starting with ``#`` are ignored; ``#`` later in a
  line is literal, and ``\\#`` / ``\\!`` escape a leading ``#`` / ``!``
- ``name`` / ``*.log`` match a file or directory name anywhere in the tree
- ``/build`` is anchored to the scan root
- ``logs/`` matches directories only (and therefore everything inside them)
- ``docs/*.md`` / ``**/gen/**`` match against the root-relative path;
  ``*`` and ``?`` never cross a ``/``, ``**`` does
- ``!pattern`` re-includes a path excluded by an earlier rule; the last
  matching rule wins, and a file inside an excluded directory stays excluded

Not supported: leading whitespace is stripped rather than kept significant.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath


@dataclass(frozen=True)
class _Rule:
    regex: re.Pattern[str]
    anchored: bool
    dir_only: bool
    negated: bool


def _translate(glob: str) -> re.Pattern[str]:
    """Compile a gitignore glob to a regex matched against ``/``-joined paths."""
    out: list[str] = []
    i, n = 0, len(glob)
    while i < n:
        c = glob[i]
        if c == "*":
            if glob.startswith("**", i):
                i += 2
                if glob.startswith("/", i):
                    # "**/" also matches zero directories.
                    out.append("(?:.*/)?")
                    i += 1
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            j = i + 1
            if j < n and glob[j] in "!^":
                j += 1
            if j < n and glob[j] == "]":
                j += 1
            j = glob.find("]", j)
            if j == -1:
                out.append(re.escape(c))
            else:
                body = glob[i + 1 : j].replace("\\", "\\\\")
                if body[:1] in ("!", "^"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = j
        elif c == "\\" and i + 1 < n:
            i += 1
            out.append(re.escape(glob[i]))
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out))


def _parse(pattern: str) -> _Rule | None:
    text = pattern.strip()
    if not text or text.startswith("#"):
        return None
    negated = text.startswith("!")
    if negated:
        text = text[1:]
    dir_only = text.endswith("/")
    text = text.rstrip("/")
    anchored = text.startswith("/")
    text = text.lstrip("/")
    if not text:
        return None
    # A slash inside the pattern ties it to the root, as in .gitignore.
    if "/" in text:
        anchored = True
    return _Rule(regex=_translate(text), anchored=anchored, dir_only=dir_only, negated=negated)


class IgnorePattern:
    """A set of exclusion rules evaluated against root-relative paths."""

    def __init__(self, patterns: list[str] | None = None) -> None:
        self.patterns = list(patterns or [])
        self._rules = [r for r in (_parse(p) for p in self.patterns) if r is not None]

    def __bool__(self) -> bool:
        return bool(self._rules)

    @classmethod
    def from_gitignore(cls, gitignore: Path, extra: list[str] | None = None) -> IgnorePattern:
        """Build from a .gitignore file (missing file → only *extra*)."""
        lines: list[str] = []
        if gitignore.is_file():
            lines = gitignore.read_text(encoding="utf-8", errors="replace").splitlines()
        return cls([*lines, *(extra or [])])

    def should_ignore(self, path: Path, root: Path, is_dir: bool = False) -> bool:
        """Return True if *path* (under *root*) is excluded.

        Every ancestor directory of *path* below *root* is tested first, so a
        directory rule excludes its whole subtree even when called on a file.
        """
        try:
            rel = PurePosixPath(path.resolve().relative_to(root.resolve()).as_posix())
        except ValueError:
            rel = PurePosixPath(path.name)
        parts = rel.parts
        if not parts:
            return False

        for depth in range(1, len(parts) + 1):
            prefix = PurePosixPath(*parts[:depth])
            if self._excluded(prefix, is_dir=depth < len(parts) or is_dir):
                return True
        return False

    def _excluded(self, rel: PurePosixPath, is_dir: bool) -> bool:
        excluded = False
        for rule in self._rules:
            if rule.dir_only and not is_dir:
                continue
            target = rel.as_posix() if rule.anchored else rel.name
            if rule.regex.fullmatch(target):
                excluded = not rule.negated
        return excluded
