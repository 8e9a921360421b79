"""
Parse `git log --graph` lines into rows.

Each line looks like ``<graph glyphs> <hash> -<refs> <subject> (<date>) <<committer>>``
or is pure graph scaffolding (``|\\``, ``| |`` ...).
"""
from __future__ import annotations

import datetime
import logging
from typing import Iterable, Optional

from .models import CommitRow, GraphOnlyRow, Row

logger = logging.getLogger(__name__)

GRAPH_GLYPHS = frozenset("*|/\\_.")

# Applied in order; later entries expect the earlier ones to have collapsed
# overlapping patterns already.
LIGATURES: tuple[tuple[str, str], ...] = (
    ("|\\ ", "|\\"),
    ("|/ ", "|/"),
    ("/\\ ", "/\\"),
    ("\\| ", "\\|"),
    ("/| ", "/|"),
    ("|\\| ", "|\\"),
    ("|/| ", "|/"),
    ("\\| ", "\\|"),
    (" | ", "|"),
    ("\\/|", "\\|"),
    ("/\\|", "/|"),
    ("|/\\", "|/"),
    ("\\|/", "\\|"),
    ("/|\\", "/|"),
)


def normalize_graph(raw: str) -> str:
    """Collapse double-width crossing glyphs and trim trailing spaces."""
    graph = raw
    for old, new in LIGATURES:
        graph = graph.replace(old, new)
    return graph.rstrip(" ")


def split_graph_prefix(line: str) -> tuple[str, str]:
    """Split `line` into its raw graph prefix and the remainder.

    The prefix is the leading run of space separated tokens made only of
    graph glyphs. The remainder keeps the space that separated it from the
    prefix, so ``"* abc - x"`` gives ``("* ", " abc - x")``.
    """
    pos = 0
    while True:
        space = line.find(" ", pos)
        if space == -1:
            token = line[pos:]
            if token and set(token) <= GRAPH_GLYPHS:
                return line, ""
            break
        token = line[pos:space]
        if token and not set(token) <= GRAPH_GLYPHS:
            break
        pos = space + 1
    if pos == 0:
        return "", line
    return line[:pos], line[pos - 1:]


def _take_refs(rest: str) -> tuple[str, str]:
    """Return (ref string, remaining text) when `rest` opens with a ref list."""
    stripped = rest.lstrip(" ")
    if not stripped.startswith("("):
        return "", rest
    depth = 0
    for i, ch in enumerate(stripped):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return stripped[1:i].strip(), stripped[i + 1:]
    # unbalanced: leave everything for the later steps
    return "", rest


def _take_between(text: str, opener: str, closer: str) -> tuple[Optional[str], str]:
    start = text.rfind(opener)
    end = text.rfind(closer)
    if start == -1 or end == -1 or end <= start:
        return None, text
    return text[start + 1:end], text[:start].strip()


def parse_date(value: Optional[str]) -> Optional[datetime.datetime]:
    """Parse an RFC 3339 timestamp; None when absent or malformed."""
    if not value:
        return None
    value = value.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        return datetime.datetime.fromisoformat(value)
    except ValueError:
        logger.debug(f"parse_date: unparsable date {value!r}")
        return None


def _apply_refs(row: CommitRow, refs: str) -> None:
    for ref in refs.split(", "):
        ref = ref.strip()
        if not ref:
            continue
        if ref.startswith("HEAD"):
            row.is_head = True
            _, arrow, target = ref.partition(" -> ")
            if arrow and target and target not in row.branches:
                row.branches.append(target)
        elif ref.startswith("tag: "):
            row.tags.append(ref[len("tag: "):])
        elif ref not in row.branches:
            row.branches.append(ref)


def parse_line(line: str) -> Row:
    """Turn one raw graph line into a `CommitRow` or a `GraphOnlyRow`."""
    line = line.rstrip("\r\n")
    prefix, remainder = split_graph_prefix(line)
    if " - " not in remainder:
        return GraphOnlyRow(graph=normalize_graph(line))

    hash_part, _, rest = remainder.partition(" -")
    row = CommitRow(hash=hash_part.strip(), graph=normalize_graph(prefix))

    refs, rest = _take_refs(rest)
    if refs:
        _apply_refs(row, refs)

    committer, rest = _take_between(rest, "<", ">")
    if committer is not None:
        row.committer = committer

    date_text, rest = _take_between(rest, "(", ")")
    if date_text is not None:
        row.date = parse_date(date_text)

    row.message = rest.strip()
    return row


def parse_lines(lines: Iterable[str]) -> list[Row]:
    """Parse a page of raw lines, skipping blank ones."""
    rows: list[Row] = []
    for line in lines:
        if not line.strip():
            continue
        rows.append(parse_line(line))
    return rows
