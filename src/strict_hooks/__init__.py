"""strict-hooks: require documented dependencies when exhaustive-deps is disabled."""

from __future__ import annotations

__version__ = "0.3.0"

from strict_hooks.analyzer.service import lint_file, lint_source  # noqa: E402
from strict_hooks.config import LintConfig, load_config  # noqa: E402
from strict_hooks.scanner import scan  # noqa: E402

__all__ = ["LintConfig", "__version__", "lint_file", "lint_source", "load_config", "scan"]
