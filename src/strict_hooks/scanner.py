"""Scanner: lint every source file under the given paths in one pass."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from strict_hooks.analyzer.models import FileReport, LintReport
from strict_hooks.analyzer.service import lint_file
from strict_hooks.config import LintConfig
from strict_hooks.utils import discover_files

log = logging.getLogger(__name__)


def collect_targets(paths: Iterable[Path], config: LintConfig) -> list[tuple[Path, Path]]:
    """(file, workspace) pairs; explicit files are linted whatever their suffix."""
    targets: list[tuple[Path, Path]] = []
    seen: set[Path] = set()
    for path in paths:
        path = path.resolve()
        if path.is_dir():
            found = [(f, path) for f in discover_files(path, config.extensions)]
        else:
            found = [(path, path.parent)]
        for fpath, workspace in found:
            if fpath not in seen:
                seen.add(fpath)
                targets.append((fpath, workspace))
    return targets


def scan(paths: Iterable[Path], config: LintConfig | None = None) -> LintReport:
    """Lint files and directories.

    Args:
        paths: Files and/or directories. Directories are walked for
               ``config.extensions``, skipping vendored and build output.
        config: Lint options. Defaults to ``LintConfig()``.

    Returns:
        LintReport with one FileReport per file.
    """
    config = config or LintConfig()
    targets = collect_targets(paths, config)
    log.info("Linting %d files", len(targets))

    report = LintReport()
    for fpath, workspace in targets:
        try:
            file_report = lint_file(fpath, workspace, config)
        except Exception as exc:
            log.exception("Linting failed for %s (non-fatal)", fpath)
            file_report = FileReport(file=str(fpath), error=f"internal error: {exc}")
        report.files.append(file_report)

    log.info(
        "Lint complete: %d warnings in %d files, %d files failed",
        report.warning_count, len(report.files), report.failed_files,
    )
    return report
