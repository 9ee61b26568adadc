"""Reconcile used / declared / documented dependencies into diagnostics.

Two reporting policies share the same arithmetic:

- AggregatePolicy: one ``missing-deps`` per call site listing every
  undocumented dependency; stale notes only when nothing is missing.
- PerDependencyPolicy: one ``missing-deps`` per undocumented dependency,
  each with a suggested comment edit, plus one ``stale-dep`` per stale note.
"""

from __future__ import annotations

from dataclasses import dataclass

from tree_sitter import Node

from strict_hooks.analyzer.annotations import MARKER
from strict_hooks.analyzer.call_sites import CallSite, SuppressionComment
from strict_hooks.analyzer.models import Diagnostic, DiagnosticKind, Position, Span, Suggestion
from strict_hooks.config import LintConfig
from strict_hooks.ir.javascript import SourceUnit, line_of
from strict_hooks.utils import snippet

MESSAGES: dict[str, str] = {
    "missing-comment": "Disabling '{rule}' requires '-- depName [optional reason]'.",
    "missing-deps": "You've disabled exhaustive-deps, but you need to document why "
                    "'{deps}' {verb} safe to omit.",
    "stale-dep": "Dependency '{dep}' is no longer used in hook but still mentioned in comment.",
    "unnecessary-disable": "No missing dependencies detected, remove 'eslint-disable-line {rule}'.",
}


@dataclass(frozen=True)
class Reconciliation:
    used: frozenset[str]
    declared: frozenset[str]
    documented: frozenset[str]

    @property
    def missing(self) -> list[str]:
        """Used but neither declared nor documented."""
        return sorted(self.used - self.declared - self.documented)

    @property
    def stale(self) -> list[str]:
        """Documented but no longer used."""
        return sorted(self.documented - self.used)

    @property
    def ignored(self) -> list[str]:
        """Used but left out of the dependency array."""
        return sorted(self.used - self.declared)

    @property
    def unnecessary(self) -> bool:
        return not self.ignored and not self.documented


def span_of(node: Node) -> Span:
    return Span(
        start=Position(line=node.start_point[0] + 1, column=node.start_point[1] + 1),
        end=Position(line=node.end_point[0] + 1, column=node.end_point[1] + 1),
    )


class ReportingPolicy:
    """Turns one call site's reconciliation into diagnostics."""

    def __init__(self, config: LintConfig) -> None:
        self.config = config

    def _diagnostic(
        self,
        kind: DiagnosticKind,
        site: CallSite,
        unit: SourceUnit,
        at: Node,
        data: dict[str, str] | None = None,
        suggestions: list[Suggestion] | None = None,
    ) -> Diagnostic:
        data = data or {}
        message = MESSAGES[kind].format(rule=self.config.suppressed_rule, **data)
        return Diagnostic(
            kind=kind,
            message=message,
            file=unit.filename,
            span=span_of(at),
            hook=site.hook,
            data=data,
            snippet=snippet(unit.source, line_of(at)),
            suggestions=suggestions or [],
        )

    def missing_comment(self, site: CallSite, unit: SourceUnit,
                        comment: SuppressionComment) -> Diagnostic:
        return self._diagnostic("missing-comment", site, unit, comment.node)

    def report(self, site: CallSite, unit: SourceUnit, comment: SuppressionComment,
               rec: Reconciliation) -> list[Diagnostic]:
        raise NotImplementedError


class AggregatePolicy(ReportingPolicy):
    def report(self, site: CallSite, unit: SourceUnit, comment: SuppressionComment,
               rec: Reconciliation) -> list[Diagnostic]:
        missing = rec.missing
        if missing:
            return [self._diagnostic(
                "missing-deps", site, unit, site.node,
                data={"deps": ", ".join(missing), "verb": "are" if len(missing) > 1 else "is"},
            )]
        if rec.stale:
            return [
                self._diagnostic("stale-dep", site, unit, comment.node, data={"dep": dep})
                for dep in rec.stale
            ]
        if rec.unnecessary:
            return [self._diagnostic("unnecessary-disable", site, unit, comment.node)]
        return []


class PerDependencyPolicy(ReportingPolicy):
    def suggest(self, comment: SuppressionComment, dep: str) -> Suggestion:
        """Append ``dep`` (or ``dep: [reason]``) to the comment payload."""
        text = comment.value.strip()
        insert = f"{dep}: [reason]" if self.config.reason_placeholder else dep
        separator = " " if text.endswith(MARKER) else ", "
        return Suggestion(
            desc=f"Add '{dep}' to comment",
            span=span_of(comment.node),
            old_text="//" + comment.value,
            new_text=f"// {text}{separator}{insert}",
        )

    def report(self, site: CallSite, unit: SourceUnit, comment: SuppressionComment,
               rec: Reconciliation) -> list[Diagnostic]:
        found: list[Diagnostic] = []
        if rec.unnecessary:
            found.append(self._diagnostic("unnecessary-disable", site, unit, comment.node))
        for dep in rec.missing:
            found.append(self._diagnostic(
                "missing-deps", site, unit, comment.node,
                data={"deps": dep, "verb": "is"},
                suggestions=[self.suggest(comment, dep)],
            ))
        for dep in rec.stale:
            found.append(self._diagnostic("stale-dep", site, unit, comment.node, data={"dep": dep}))
        return found


def policy_for(config: LintConfig) -> ReportingPolicy:
    if config.require_comment_per_dependency:
        return PerDependencyPolicy(config)
    return AggregatePolicy(config)
