"""Shared utilities for strict-hooks."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


def snippet(source: str, lineno: int, max_len: int = 160) -> str:
    """Return the source line at lineno (1-based), stripped and truncated."""
    lines = source.splitlines()
    if 0 < lineno <= len(lines):
        return lines[lineno - 1].strip()[:max_len]
    return ""

# Directories to skip during file discovery
SKIP_DIRS = {
    ".git", "node_modules", "bower_components", "dist", "build", "coverage",
    ".next", ".nuxt", ".cache", ".turbo", ".parcel-cache", "out", "vendor",
    "__pycache__", ".venv", "venv",
}

# Maximum file size to read (skip bundles and minified output)
MAX_FILE_SIZE = 2 * 1024 * 1024  # 2 MB


def discover_files(workspace: Path, extensions: Iterable[str]) -> list[Path]:
    """Walk workspace for source files, skipping ignored dirs and large files."""
    wanted = {e.lower() for e in extensions}
    files: list[Path] = []
    for item in sorted(workspace.rglob("*")):
        if item.is_dir() or item.suffix.lower() not in wanted:
            continue
        if any(part in SKIP_DIRS for part in item.relative_to(workspace).parts):
            continue
        if item.name.endswith(".min.js"):
            continue
        try:
            if item.stat().st_size > MAX_FILE_SIZE:
                continue
        except OSError:
            continue
        files.append(item)
    return files
