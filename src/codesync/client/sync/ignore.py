"""File classification for workspace synchronization.

This module provides:
- INCLUDE_EXTENSIONS: Extensions that are synchronized
- EXCLUDE_DIRS: Directory names that are never descended into
- FileClassifier: Applies both lists plus optional .syncignore patterns
- is_syncable: Classification with the default lists only
"""

from __future__ import annotations

import fnmatch
from pathlib import Path, PurePath

INCLUDE_EXTENSIONS = frozenset({
    ".js", ".jsx", ".ts", ".tsx", ".vue", ".svelte",
    ".py", ".java", ".cpp", ".c", ".go", ".rs",
    ".json", ".md", ".txt", ".css", ".html", ".scss",
})

EXCLUDE_DIRS = frozenset({
    "node_modules",
    ".git",
    "dist",
    "build",
    ".vscode",
    ".next",
    "coverage",
    ".nyc_output",
    ".turbo",
    ".cache",
})

SYNCIGNORE_FILENAME = ".syncignore"


def is_excluded_dir_name(name: str) -> bool:
    """Check whether a directory name is never synchronized.

    Dot-prefixed names count as excluded regardless of the deny-list.
    """
    return name.startswith(".") or name in EXCLUDE_DIRS


class FileClassifier:
    """Decides whether a path takes part in synchronization.

    A path is syncable iff its extension (case-insensitive) is in the
    allow-list and no directory segment is deny-listed or dot-prefixed.
    Extra gitignore-style patterns can only narrow the result.
    """

    def __init__(self, patterns: list[str] | None = None) -> None:
        """Initialize with extra ignore patterns.

        Args:
            patterns: Additional gitignore-style patterns.
        """
        self._patterns: list[str] = list(patterns or [])

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def add_pattern(self, pattern: str) -> None:
        """Add an ignore pattern."""
        self._patterns.append(pattern)

    def load_from_file(self, path: Path) -> None:
        """Load patterns from a .syncignore file."""
        if path.exists():
            with open(path, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    # Skip comments and empty lines
                    if line and not line.startswith("#"):
                        self._patterns.append(line)

    def is_syncable(self, path: str | PurePath) -> bool:
        """Check if a path should be synchronized. Pure, no I/O.

        Args:
            path: Path to check, absolute or relative to the workspace root.
                  Only relative paths are matched against extra patterns.

        Returns:
            True if the file should be synchronized.
        """
        pure = PurePath(str(path).replace("\\", "/"))
        if pure.suffix.lower() not in INCLUDE_EXTENSIONS:
            return False
        if pure.is_absolute():
            dirs = pure.parts[1:-1]
        else:
            dirs = pure.parts[:-1]
        if any(is_excluded_dir_name(part) for part in dirs):
            return False
        return not self._matches_pattern(pure)

    def _matches_pattern(self, path: PurePath) -> bool:
        if not self._patterns or path.is_absolute():
            return False
        rel_str = path.as_posix()
        segments = path.parts
        for pattern in self._patterns:
            # Directory-only patterns match any parent segment
            if pattern.endswith("/"):
                if any(fnmatch.fnmatch(seg, pattern[:-1]) for seg in segments[:-1]):
                    return True
            elif "/" in pattern:
                if fnmatch.fnmatch(rel_str, pattern.lstrip("/")):
                    return True
            elif fnmatch.fnmatch(path.name, pattern) or fnmatch.fnmatch(rel_str, pattern):
                return True
        return False


_DEFAULT_CLASSIFIER = FileClassifier()


def is_syncable(path: str | PurePath) -> bool:
    """Check a path against the fixed allow-list and deny-list."""
    return _DEFAULT_CLASSIFIER.is_syncable(path)


def load_classifier(root: Path) -> FileClassifier:
    """Create a classifier for a workspace, honouring its .syncignore."""
    classifier = FileClassifier()
    classifier.load_from_file(root / SYNCIGNORE_FILENAME)
    return classifier
