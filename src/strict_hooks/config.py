"""Lint configuration: pydantic model + YAML loading."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

log = logging.getLogger(__name__)

DEFAULT_HOOKS = (
    "useEffect",
    "useCallback",
    "useMemo",
    "useLayoutEffect",
    "useInsertionEffect",
)

SUPPRESSED_RULE = "react-hooks/exhaustive-deps"

CONFIG_FILENAMES = (".strict-hooks.yml", ".strict-hooks.yaml")


class ConfigError(ValueError):
    """Configuration file is unreadable or invalid."""


class LintConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    enabled_hooks: set[str] = Field(default_factory=lambda: set(DEFAULT_HOOKS), alias="enabledHooks")
    disabled_hooks: set[str] = Field(default_factory=set, alias="disabledHooks")
    # True: one report per missing/stale dependency with a suggested comment edit.
    # False: one aggregated missing-deps report per call site.
    require_comment_per_dependency: bool = Field(True, alias="requireCommentPerDependency")
    respect_upstream_disable: bool = Field(False, alias="respectUpstreamDisable")
    reason_placeholder: bool = Field(True, alias="reasonPlaceholder")  # `name: [reason]` vs `name`
    source_type: Literal["module", "script"] = Field("module", alias="sourceType")
    globals: set[str] = Field(default_factory=set)
    suppressed_rule: str = Field(SUPPRESSED_RULE, alias="suppressedRule")
    extensions: list[str] = Field(
        default_factory=lambda: [".js", ".jsx", ".mjs", ".cjs"],
    )

    def is_hook_enabled(self, name: str) -> bool:
        return name not in self.disabled_hooks and name in self.enabled_hooks


def load_config(path: Path) -> LintConfig:
    """Read a YAML config file. An empty file gives the defaults."""
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")

    try:
        config = LintConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    log.debug("Loaded config from %s", path)
    return config


def find_config(start: Path) -> Path | None:
    """Nearest config file in ``start`` or one of its parents."""
    start = start.resolve()
    if start.is_file():
        start = start.parent
    for directory in (start, *start.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None
