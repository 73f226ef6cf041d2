"""
Label quoting for node, edge and relationship labels.

Mermaid's parser chokes on unquoted labels that contain delimiter-like
characters, e.g. ``B[End (v2)]``. Every such label is rewritten as a double
quoted string, with inner double quotes turned into single quotes and
backslash-escaped quotes un-escaped to a plain single quote. A label that is
already quoted is left byte-identical, so the pass is a fixed point.

Flowchart lines are walked left to right. At each identifier the shape table
is tried in order: the tripled ``((( )))``, then doubled forms
(``[[ ]]``, ``(( ))``), then mixed forms (``[( )]``, ``([ ])``), then single
delimiters. Quoted runs outside labels are copied through untouched.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sanitizer.diagram_lines import (
    RELATIONSHIP_SYMBOL,
    LineKind,
    classify_lines,
)
from sanitizer.repairs import LABEL_QUOTED, RepairWarning, SourceLine, texts

FLOWCHART_RESERVED = frozenset('(){}[]"\'<>|\\-')
RELATIONSHIP_RESERVED = frozenset('/|(){}[]<>"\'\\')

_OPENERS = "[({"
_CLOSERS = "])}"


@dataclass(frozen=True)
class Shape:
    name: str
    opener: str
    closers: Tuple[str, ...]


SHAPES = (
    # tripled
    Shape("double circle", "(((", (")))",)),
    # doubled
    Shape("subroutine", "[[", ("]]",)),
    Shape("circle", "((", ("))",)),
    Shape("hexagon", "{{", ("}}",)),
    # mixed
    Shape("cylinder", "[(", (")]",)),
    Shape("stadium", "([", ("])",)),
    Shape("parallelogram", "[/", ("/]", "\\]")),
    Shape("trapezoid", "[\\", ("\\]", "/]")),
    # single
    Shape("rectangle", "[", ("]",)),
    Shape("rounded", "(", (")",)),
    Shape("rhombus", "{", ("}",)),
)

_CONNECTOR_BEFORE_PIPE = re.compile(
    r"(?:--+[>xo]?|==+[>xo]?|-?\.+-[>xo]?|-{1,3}>|={1,3}>)\s*$"
)

_RELATIONSHIP_LINE = re.compile(
    r"^(\s*[\w-]+\s+" + RELATIONSHIP_SYMBOL + r"\s+[\w-]+\s*:\s*)(.*?)(\s*)$"
)


# ──────────────────────────────────────────────────────────────────
# Label rewriting
# ──────────────────────────────────────────────────────────────────

def is_quoted(text: str) -> bool:
    text = text.strip()
    return len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'"


def quote_label(content: str, reserved=FLOWCHART_RESERVED) -> Optional[str]:
    """Quoted replacement for *content*, or None if it can stay as is."""
    if not content.strip() or is_quoted(content):
        return None
    fixed = content.replace('\\"', "'").replace("\\'", "'")
    if fixed == content and not any(c in reserved for c in content):
        return None
    return '"' + fixed.replace('"', "'") + '"'


# ──────────────────────────────────────────────────────────────────
# Flowchart scanner
# ──────────────────────────────────────────────────────────────────

def _is_word(c: str) -> bool:
    return c.isalnum() or c == "_"


def _find_close(line: str, start: int, closers: Tuple[str, ...]) -> Optional[Tuple[int, str]]:
    """Position of the first closer at nesting depth zero, skipping quoted runs."""
    depth = 0
    j = start
    while j < len(line):
        if depth == 0:
            for closer in closers:
                if line.startswith(closer, j):
                    return j, closer
        c = line[j]
        if c == '"':
            end = line.find('"', j + 1)
            if end != -1:
                j = end + 1
                continue
        elif c in _OPENERS:
            depth += 1
        elif c in _CLOSERS:
            if depth == 0:
                return None
            depth -= 1
        j += 1
    return None


def _match_shape(line: str, pos: int) -> Optional[Tuple[Shape, int, int, str]]:
    """First shape in precedence order whose delimiters close properly at *pos*."""
    for shape in SHAPES:
        if not line.startswith(shape.opener, pos):
            continue
        content_start = pos + len(shape.opener)
        found = _find_close(line, content_start, shape.closers)
        if found is not None:
            close_at, closer = found
            return shape, content_start, close_at, closer
    return None


def _find_edge_label_end(line: str, start: int) -> Optional[int]:
    """Index of the pipe closing an edge label that begins at *start*."""
    body = line[start:]
    lead = len(body) - len(body.lstrip())
    if body[lead:lead + 1] == '"':
        quote_end = line.find('"', start + lead + 1)
        if quote_end != -1:
            pipe = line.find("|", quote_end + 1)
            return pipe if pipe != -1 else None
    pipe = line.find("|", start)
    return pipe if pipe != -1 else None


def normalize_flowchart_line(line: str, reserved=FLOWCHART_RESERVED) -> Tuple[str, List[str]]:
    """Quote node and edge labels on one flowchart line.

    Returns (new_line, original contents of the labels that were quoted).
    """
    out: List[str] = []
    quoted: List[str] = []
    i = 0
    n = len(line)

    while i < n:
        c = line[i]

        if c == '"':
            end = line.find('"', i + 1)
            if end == -1:
                out.append(line[i:])
                break
            out.append(line[i:end + 1])
            i = end + 1
            continue

        if c == "|" and _CONNECTOR_BEFORE_PIPE.search(line, 0, i):
            end = _find_edge_label_end(line, i + 1)
            if end is not None:
                content = line[i + 1:end]
                replacement = quote_label(content, reserved)
                if replacement is not None:
                    quoted.append(content)
                out.append("|" + (replacement or content) + "|")
                i = end + 1
                continue

        if _is_word(c) and (i == 0 or not _is_word(line[i - 1])):
            j = i
            while j < n and _is_word(line[j]):
                j += 1
            match = _match_shape(line, j)
            if match is None:
                out.append(line[i:j])
                i = j
                continue
            shape, content_start, close_at, closer = match
            content = line[content_start:close_at]
            replacement = quote_label(content, reserved)
            if replacement is not None:
                quoted.append(content)
            out.append(line[i:content_start] + (replacement or content) + closer)
            i = close_at + len(closer)
            continue

        out.append(c)
        i += 1

    return "".join(out), quoted


def normalize_relationship_line(line: str) -> Tuple[str, List[str]]:
    """Quote the label of an ``ENTITY rel ENTITY : label`` line if needed."""
    m = _RELATIONSHIP_LINE.match(line)
    if not m:
        return line, []
    prefix, label, trailing = m.groups()
    replacement = quote_label(label, RELATIONSHIP_RESERVED)
    if replacement is None:
        return line, []
    return prefix + replacement + trailing, [label]


# ──────────────────────────────────────────────────────────────────
# Document pass
# ──────────────────────────────────────────────────────────────────

def normalize_labels(
    lines: List[SourceLine], er: bool,
) -> Tuple[List[SourceLine], List[RepairWarning]]:
    """Quote labels across the document.

    Flowcharts: every content line, plus statements after the header of a
    one-line diagram. ER diagrams: relationship lines only;
    attribute comments are already quoted by grammar.
    """
    result: List[SourceLine] = []
    warnings: List[RepairWarning] = []

    for source, line in zip(lines, classify_lines(texts(lines))):
        if er and line.kind is LineKind.RELATIONSHIP:
            new_text, quoted = normalize_relationship_line(line.text)
        elif not er and line.kind is LineKind.CONTENT:
            new_text, quoted = normalize_flowchart_line(line.text)
        elif not er and line.kind is LineKind.TYPE_DECLARATION and ";" in line.text:
            head, sep, body = line.text.partition(";")
            new_body, quoted = normalize_flowchart_line(body)
            new_text = head + sep + new_body
        else:
            result.append(source)
            continue
        result.append(SourceLine(source.number, new_text))
        for label in quoted:
            warnings.append(RepairWarning(source.number, LABEL_QUOTED, f"quoted label '{label.strip()}'"))

    return result, warnings
