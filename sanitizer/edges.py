"""
Dangling-edge removal for flowcharts.

A line that ends in a connector with no destination (``A -->``,
``A -.->|label|``, ``B ===``) makes the whole diagram fail to parse. Such a
line is turned into a comment that keeps the original text. ER diagrams are
skipped.
"""

import re
from typing import List, Tuple

from sanitizer.diagram_lines import COMMENT_MARKER, LineKind, classify_lines
from sanitizer.repairs import INCOMPLETE_EDGE, RepairWarning, SourceLine, texts

REMOVED_MARKER = "(incomplete edge removed)"

# Connector shafts: --> ---> ==> -.-> --- === -.- --x --o <-->, plus the
# single-dash forms models sometimes emit (->).
_CONNECTOR = r"(?:<?--+[>xo]?|<?==+[>xo]?|<?-?\.+-[>xo]?|-{1,3}>|={1,3}>|\.{1,3}>)"
_DANGLING = re.compile(_CONNECTOR + r"\s*(?:\|[^|]*\|)?\s*$")


def is_dangling_edge(line: str) -> bool:
    return bool(_DANGLING.search(line.strip()))


def comment_out(line: str) -> str:
    stripped = line.strip()
    indent = line[: len(line) - len(line.lstrip())]
    return f"{indent}{COMMENT_MARKER} {stripped} {COMMENT_MARKER} {REMOVED_MARKER}"


def remove_incomplete_edges(
    lines: List[SourceLine],
) -> Tuple[List[SourceLine], List[RepairWarning]]:
    """Comment out every content line that ends in a connector."""
    result: List[SourceLine] = []
    warnings: List[RepairWarning] = []

    for source, line in zip(lines, classify_lines(texts(lines))):
        if line.kind is not LineKind.CONTENT or not is_dangling_edge(line.text):
            result.append(source)
            continue
        result.append(SourceLine(source.number, comment_out(line.text)))
        warnings.append(RepairWarning(
            source.number,
            INCOMPLETE_EDGE,
            f"incomplete edge removed (no target): '{line.stripped}'",
        ))

    return result, warnings
