"""Path utilities for packaging function code."""

import io
import tarfile
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import ClassVar

import pathspec


class IgnoreFilter:
    """
    Filter files out of a deployment archive.

    Uses pathspec for gitignore-style matching. When the manifest
    declares an explicit ignore list it is used verbatim, otherwise
    the function directory's .gitignore is loaded.
    """

    # Patterns that are always excluded
    BUILTIN_PATTERNS: ClassVar[list[str]] = [".git/", ".DS_Store"]

    def __init__(self, root: Path, patterns: Iterable[str] | None = None) -> None:
        """
        Initialize filter for a code directory.

        Args:
            root: Directory being packaged.
            patterns: Explicit ignore patterns, or None to use .gitignore.
        """
        self.root = root.resolve()
        self.source = "manifest" if patterns is not None else ".gitignore"
        lines = list(self.BUILTIN_PATTERNS)
        if patterns is not None:
            lines.extend(patterns)
        else:
            lines.extend(self._read_gitignore())
        self._spec = pathspec.PathSpec.from_lines("gitignore", lines)

    def _read_gitignore(self) -> list[str]:
        gitignore_path = self.root / ".gitignore"
        if not gitignore_path.exists():
            return []
        patterns: list[str] = []
        with gitignore_path.open() as f:
            for raw_line in f:
                stripped_line = raw_line.strip()
                if stripped_line and not stripped_line.startswith("#"):
                    patterns.append(stripped_line)
        return patterns

    def is_ignored(self, file_path: Path) -> bool:
        """Check if a file under root matches an ignore pattern."""
        try:
            relative = file_path.resolve().relative_to(self.root)
        except ValueError:
            return True
        return self._spec.match_file(normalize_path(relative))

    def iter_files(self) -> Iterator[Path]:
        """Yield every non-ignored file under root, in sorted order."""
        for path in sorted(self.root.rglob("*")):
            if path.is_file() and not self.is_ignored(path):
                yield path


def normalize_path(file_path: Path) -> str:
    """Render a relative path with forward slashes (POSIX style)."""
    return str(file_path).replace("\\", "/")


def build_code_archive(root: Path, ignore: Iterable[str] | None = None) -> bytes:
    """
    Pack a code directory into an in-memory gzip tarball.

    Args:
        root: Directory holding the function source.
        ignore: Explicit ignore patterns, or None to honour .gitignore.

    Returns:
        The archive bytes.

    Raises:
        FileNotFoundError: If root is not a directory.
    """
    if not root.is_dir():
        raise FileNotFoundError(f"Code directory not found: {root}")

    filter_ = IgnoreFilter(root, ignore)
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for path in filter_.iter_files():
            archive.add(path, arcname=normalize_path(path.relative_to(filter_.root)))
    return buffer.getvalue()


def extract_code_archive(data: bytes, destination: Path) -> None:
    """Extract a downloaded deployment tarball into destination."""
    destination.mkdir(parents=True, exist_ok=True)
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
        archive.extractall(destination, filter="data")
