"""
strict-hooks: per-file lint entrypoint.

Usage:
    from strict_hooks.analyzer.service import lint_source

    report = lint_source(code, filename="App.jsx")
    for d in report.diagnostics:
        print(d.line, d.kind, d.message)

For each enabled hook call carrying
``// eslint-disable-line react-hooks/exhaustive-deps``:

    declared   = names in the dependency array
    used       = names the callback closes over
    documented = names listed after ``--`` in the comment

and the configured reporting policy turns the three sets into diagnostics.
"""

from __future__ import annotations

import logging
from pathlib import Path

from strict_hooks.analyzer.annotations import Directive, has_marker, parse_annotation, upstream_disables
from strict_hooks.analyzer.call_sites import (
    CallSite,
    collect_directives,
    find_suppression_comment,
    iter_call_sites,
)
from strict_hooks.analyzer.dependencies import declared_dependencies, used_identifiers
from strict_hooks.analyzer.models import Diagnostic, FileReport
from strict_hooks.analyzer.reconcile import Reconciliation, ReportingPolicy, policy_for
from strict_hooks.config import LintConfig
from strict_hooks.ir.javascript import SourceUnit, end_line_of, parse_source
from strict_hooks.ir.scope import ScopeManager

log = logging.getLogger(__name__)


class VisitedCallSites:
    """Call sites already analyzed in one source unit, keyed by (hook, line).

    Owned by a single lint run and cleared when the unit is done.
    """

    def __init__(self, filename: str) -> None:
        self.filename = filename
        self._seen: set[tuple[str, int]] = set()

    def first_visit(self, site: CallSite) -> bool:
        key = (site.hook, site.line)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def clear(self) -> None:
        self._seen.clear()

    def __len__(self) -> int:
        return len(self._seen)


def check_call_site(
    site: CallSite,
    unit: SourceUnit,
    manager: ScopeManager,
    config: LintConfig,
    policy: ReportingPolicy,
    directives: dict[int, Directive] | None = None,
) -> list[Diagnostic]:
    """Diagnostics for one hook call; empty when it carries no suppression comment."""
    comment = find_suppression_comment(site, unit, config.suppressed_rule, directives)
    if comment is None:
        return []

    if config.respect_upstream_disable and directives is not None:
        others = upstream_disables(
            directives.values(),
            end_line_of(site.statement) if site.statement is not None else site.line,
            config.suppressed_rule,
            own=comment.directive,
        )
        if others:
            log.debug("%s:%d skipped, also disabled by %s", unit.filename, site.line,
                      [d.kind for d in others])
            return []

    if not has_marker(comment.value):
        return [policy.missing_comment(site, unit, comment)]

    rec = Reconciliation(
        used=frozenset(used_identifiers(site, unit, manager)),
        declared=frozenset(declared_dependencies(site, unit)),
        documented=frozenset(parse_annotation(comment.value)),
    )
    return policy.report(site, unit, comment, rec)


def lint_unit(
    unit: SourceUnit,
    config: LintConfig,
    visited: VisitedCallSites | None = None,
) -> tuple[list[Diagnostic], int]:
    """Lint a parsed unit. Returns (diagnostics, number of hook calls inspected)."""
    if visited is None:
        visited = VisitedCallSites(unit.filename)
    manager = ScopeManager(unit, globals=config.globals)
    policy = policy_for(config)
    directives = collect_directives(unit)

    diagnostics: list[Diagnostic] = []
    inspected = 0
    for site in iter_call_sites(unit, config):
        if not visited.first_visit(site):
            continue
        inspected += 1
        diagnostics.extend(check_call_site(site, unit, manager, config, policy, directives))

    diagnostics.sort(key=lambda d: (d.span.start.line, d.span.start.column, d.kind))
    return diagnostics, inspected


def lint_source(
    source: str,
    filename: str = "<input>",
    config: LintConfig | None = None,
) -> FileReport:
    """Lint JavaScript/JSX text."""
    config = config or LintConfig()
    unit = parse_source(source, filename, config.source_type)
    visited = VisitedCallSites(filename)
    try:
        diagnostics, inspected = lint_unit(unit, config, visited)
    finally:
        visited.clear()
    return FileReport(
        file=filename,
        diagnostics=diagnostics,
        call_sites=inspected,
        parse_errors=unit.has_errors,
    )


def lint_file(
    path: Path,
    workspace: Path | None = None,
    config: LintConfig | None = None,
) -> FileReport:
    """Lint one file; paths in the report are relative to ``workspace`` when given."""
    rel = str(path)
    if workspace is not None:
        try:
            rel = str(path.relative_to(workspace))
        except ValueError:
            pass
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        log.warning("Cannot read %s: %s", path, exc)
        return FileReport(file=rel, error=str(exc))
    return lint_source(source, rel, config)
