"""Parse eslint directive comments and the dependency notes written after `--`.

A suppression comment looks like::

    // eslint-disable-line react-hooks/exhaustive-deps -- fetchData: memoized, page

The directive part names the silenced rules; the payload after the first
``--`` documents which dependencies were left out on purpose.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

MARKER = "--"

_DIRECTIVE_RE = re.compile(
    r"^\s*(eslint-disable-next-line|eslint-disable-line|eslint-disable|eslint-enable)(?=\s|$)(.*)$",
    re.DOTALL,
)
_IDENTIFIER_RE = re.compile(r"[\w$.]+")
_SEGMENT_SPLIT_RE = re.compile(r"[,\n]")


@dataclass(frozen=True)
class Directive:
    kind: str                   # "eslint-disable"|"eslint-enable"|
                                # "eslint-disable-line"|"eslint-disable-next-line"
    rules: tuple[str, ...]      # empty = every rule
    description: str
    line: int                   # line the comment starts on

    def names(self, rule: str) -> bool:
        return rule in self.rules


def parse_directive(comment_value: str, line: int = 0) -> Directive | None:
    """Parse the text of a comment (without `//` or `/* */`) as an eslint directive."""
    m = _DIRECTIVE_RE.match(comment_value)
    if m is None:
        return None
    kind, rest = m.group(1), m.group(2)
    rule_text, _, description = rest.partition(MARKER)
    rules = tuple(r.strip() for r in rule_text.split(",") if r.strip())
    return Directive(kind=kind, rules=rules, description=description.strip(), line=line)


def has_marker(comment_text: str, marker: str = MARKER) -> bool:
    return marker in comment_text


def parse_annotation(comment_text: str, marker: str = MARKER) -> set[str]:
    """Names documented after the first marker.

    Entries are comma or newline separated, each ``name`` or ``name: reason``.
    Later markers belong to the free text and are kept. Only the leading
    identifier-shaped run of each entry is kept.
    """
    parts = comment_text.split(marker)
    if len(parts) < 2:
        return set()
    payload = marker.join(parts[1:]).strip()
    if not payload:
        return set()

    names: set[str] = set()
    for segment in _SEGMENT_SPLIT_RE.split(payload):
        head = segment.strip().split(":", 1)[0]
        tokens = head.split()
        if not tokens:
            continue
        m = _IDENTIFIER_RE.match(tokens[0])
        if m:
            names.add(m.group(0))
    return names


def upstream_disables(
    directives: Iterable[Directive],
    line: int,
    rule: str,
    own: Directive | None = None,
) -> list[Directive]:
    """Directives other than the ``rule`` suppression that also silence ``line``.

    Counts blanket or other-rule ``eslint-disable-line`` on the line,
    ``eslint-disable-next-line`` on the line before, an ``eslint-disable``
    block still open at the line, and extra rules named by ``own`` itself.
    """
    found: list[Directive] = []
    open_blocks: list[Directive] = []
    for d in sorted(directives, key=lambda d: d.line):
        if d.line > line:
            break
        if d.kind == "eslint-disable":
            open_blocks.append(d)
        elif d.kind == "eslint-enable":
            if d.rules:
                open_blocks = [
                    b for b in open_blocks if not b.rules or set(b.rules) - set(d.rules)
                ]
            else:
                open_blocks = []
        elif d is own:
            if any(r != rule for r in d.rules):
                found.append(d)
        elif d.kind == "eslint-disable-line" and d.line == line:
            found.append(d)
        elif d.kind == "eslint-disable-next-line" and d.line == line - 1:
            found.append(d)
    found.extend(open_blocks)
    return found
