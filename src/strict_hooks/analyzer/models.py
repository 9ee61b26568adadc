"""Pydantic models for lint reports."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field

DiagnosticKind = Literal["missing-comment", "missing-deps", "stale-dep", "unnecessary-disable"]


# ── Locations ──────────────────────────────────────────────────────────────

class Position(BaseModel):
    line: int       # 1-based
    column: int     # 1-based


class Span(BaseModel):
    start: Position
    end: Position


# ── Diagnostics ────────────────────────────────────────────────────────────

class Suggestion(BaseModel):
    """A proposed edit to the suppression comment. Never applied automatically."""
    desc: str
    span: Span
    old_text: str
    new_text: str


class Diagnostic(BaseModel):
    kind: DiagnosticKind
    message: str
    severity: Literal["warning"] = "warning"
    file: str
    span: Span
    hook: str                                       # "useEffect", "useCallback", ...
    data: dict[str, str] = Field(default_factory=dict)  # message template values
    snippet: str = ""
    suggestions: list[Suggestion] = Field(default_factory=list)

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column


class FileReport(BaseModel):
    file: str
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    call_sites: int = 0             # hook calls inspected
    parse_errors: bool = False      # tree-sitter recovered from syntax errors
    error: str | None = None        # file could not be linted at all


class LintReport(BaseModel):
    files: list[FileReport] = Field(default_factory=list)

    @computed_field
    @property
    def warning_count(self) -> int:
        return sum(len(f.diagnostics) for f in self.files)

    @computed_field
    @property
    def failed_files(self) -> int:
        return sum(1 for f in self.files if f.error is not None)

    def diagnostics(self) -> list[Diagnostic]:
        return [d for f in self.files for d in f.diagnostics]
