"""Render a LintReport as a Markdown report."""

from __future__ import annotations

from collections import Counter

from strict_hooks.analyzer.models import Diagnostic, LintReport

_KIND_LABELS = {
    "missing-deps": "Undocumented dependency",
    "missing-comment": "Suppression without notes",
    "stale-dep": "Stale note",
    "unnecessary-disable": "Unneeded suppression",
}


def render_markdown(report: LintReport, title: str = "strict-hooks report") -> str:
    """Produce a full Markdown report from a LintReport."""
    sections: list[str] = []

    # ── Title ────────────────────────────────────────────────────────────
    sections.append(f"# {title}\n")

    # ── Summary box ──────────────────────────────────────────────────────
    kinds = Counter(d.kind for d in report.diagnostics())
    inspected = sum(f.call_sites for f in report.files)
    summary_lines = [
        f"- **Files linted**: {len(report.files)}",
        f"- **Hook calls inspected**: {inspected}",
        f"- **Warnings**: {report.warning_count}",
    ]
    for kind, label in _KIND_LABELS.items():
        if kinds.get(kind):
            summary_lines.append(f"  - {label} (`{kind}`): {kinds[kind]}")
    if report.failed_files:
        summary_lines.append(f"- **Files not linted**: {report.failed_files}")
    sections.append("\n".join(summary_lines) + "\n")

    if not report.warning_count and not report.failed_files:
        sections.append("No problems found.\n")
        return "\n".join(sections)

    # ── Per-file tables ──────────────────────────────────────────────────
    for f in report.files:
        if f.error is not None:
            sections.append(f"## `{f.file}`\n")
            sections.append(f"> Could not lint: {f.error}\n")
            continue
        if not f.diagnostics:
            continue
        sections.append(f"## `{f.file}`\n")
        sections.append("| Line | Hook | Kind | Message |")
        sections.append("|---|---|---|---|")
        for d in f.diagnostics:
            sections.append(f"| {d.line} | `{d.hook}` | {d.kind} | {_escape(d.message)} |")
        sections.append("")

        fixes = [d for d in f.diagnostics if d.suggestions]
        if fixes:
            sections.append("Suggested comment edits:\n")
            for d in fixes:
                sections.append(_suggestion_line(d))
            sections.append("")

    return "\n".join(sections)


def _escape(text: str) -> str:
    return text.replace("|", "\\|")


def _suggestion_line(d: Diagnostic) -> str:
    s = d.suggestions[0]
    return f"- line {d.line}: `{s.new_text}`"
