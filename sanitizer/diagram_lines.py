"""
Line classification for Mermaid diagram text.

Splits a diagram definition into lines and tags each one with a LineKind.
Classification is recomputed from scratch on every call.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union


# ──────────────────────────────────────────────────────────────────
# Diagram-type vocabulary
# ──────────────────────────────────────────────────────────────────

SUPPORTED_TYPES = ("flowchart", "graph", "erDiagram")

# Recognised declarations that are rejected outright.
UNSUPPORTED_TYPES = (
    "sequenceDiagram", "classDiagram", "classDiagram-v2",
    "stateDiagram-v2", "stateDiagram", "gantt", "pie", "journey",
    "gitGraph", "mindmap", "timeline", "quadrantChart",
    "requirementDiagram", "sankey-beta", "sankey", "xychart-beta",
    "xychart", "block-beta", "block", "C4Context", "C4Container",
    "C4Component", "C4Dynamic", "C4Deployment", "packet-beta",
    "architecture-beta", "kanban", "zenuml",
)

ER_TYPE = "erDiagram"

COMMENT_MARKER = "%%"

_KEYWORDS = {kw.lower(): kw for kw in SUPPORTED_TYPES + UNSUPPORTED_TYPES}

# A declaration line carries only the keyword plus optional direction/title
# words; anything that looks like an edge or a shape is content.
_NOT_A_DECLARATION = re.compile(r"[\[\](){}|>]|--|==|-\.")

_ENTITY_START = re.compile(r"^([\w-]+)\s*(\[[^\]]*\])?\s*\{\s*$")
_ENTITY_END = re.compile(r"^\}\s*$")

# Cardinality markers: ||--o{ , }|..|{ , |o--o| , }o--|| ...
RELATIONSHIP_SYMBOL = r"[|}{o][|o}{]?(?:--|\.\.)[|o}{]?[|}{o]"
_RELATIONSHIP = re.compile(
    r"^([\w-]+)\s+(" + RELATIONSHIP_SYMBOL + r")\s+([\w-]+)\s*:\s*(.*?)\s*$"
)


class LineKind(Enum):
    TYPE_DECLARATION = "type_declaration"
    COMMENT = "comment"
    BLANK = "blank"
    ENTITY_BLOCK_START = "entity_block_start"
    ENTITY_BLOCK_END = "entity_block_end"
    ATTRIBUTE = "attribute"
    RELATIONSHIP = "relationship"
    CONTENT = "content"


@dataclass(frozen=True)
class Line:
    index: int
    text: str
    kind: LineKind

    @property
    def number(self) -> int:
        """1-based line number, as shown to users."""
        return self.index + 1

    @property
    def indent(self) -> str:
        return leading_whitespace(self.text)

    @property
    def stripped(self) -> str:
        return self.text.strip()


def leading_whitespace(text: str) -> str:
    return text[: len(text) - len(text.lstrip())]


def split_lines(text: str) -> List[str]:
    """Split on newlines, keeping a trailing empty line if the text ends with one."""
    return text.replace("\r\n", "\n").split("\n")


# ──────────────────────────────────────────────────────────────────
# Diagram-type detection
# ──────────────────────────────────────────────────────────────────

def split_declaration(line: str) -> Optional[Tuple[str, str]]:
    """Split a declaration line into (keyword, inline statements).

    One-line diagrams put statements after a ``;`` (``graph TD; A-->B``);
    only the part before the first ``;`` has to look like a header.
    """
    head, _, body = line.strip().partition(";")
    first, _, rest = head.strip().partition(" ")
    keyword = _KEYWORDS.get(first.lower())
    if keyword is None or _NOT_A_DECLARATION.search(rest):
        return None
    return keyword, body.strip()


def declaration_keyword(line: str) -> Optional[str]:
    """Return the canonical diagram keyword a declaration line starts with."""
    parts = split_declaration(line)
    return parts[0] if parts else None


def header_line(lines: Iterable[str]) -> Optional[Tuple[int, str]]:
    """First line that is neither blank nor a comment, with its index."""
    for i, line in enumerate(lines):
        stripped = line.strip()
        if not stripped or stripped.startswith(COMMENT_MARKER):
            continue
        return i, line
    return None


def detect_diagram_type(text: Union[str, List[str]]) -> Tuple[Optional[str], bool]:
    """Detect the declared diagram type.

    Returns (keyword, supported). keyword is None when the first meaningful
    line carries no recognised declaration at all.
    """
    lines = split_lines(text) if isinstance(text, str) else text
    header = header_line(lines)
    if header is None:
        return None, False
    keyword = declaration_keyword(header[1])
    if keyword is None:
        return None, False
    return keyword, keyword in SUPPORTED_TYPES


def is_er_document(lines: List[str]) -> bool:
    keyword, _ = detect_diagram_type(lines)
    return keyword == ER_TYPE


def match_relationship(line: str) -> Optional[re.Match]:
    return _RELATIONSHIP.match(line.strip())


# ──────────────────────────────────────────────────────────────────
# Classifier
# ──────────────────────────────────────────────────────────────────

def classify_lines(text: Union[str, List[str]]) -> List[Line]:
    """Classify every line of a diagram definition.

    Priority: declaration, comment, blank, entity block start/end (ER only),
    relationship (ER only), attribute (inside an open entity block), content.
    """
    lines = split_lines(text) if isinstance(text, str) else list(text)
    er = is_er_document(lines)
    in_block = False
    result: List[Line] = []

    for i, raw in enumerate(lines):
        stripped = raw.strip()

        if declaration_keyword(stripped) is not None and not in_block:
            kind = LineKind.TYPE_DECLARATION
        elif stripped.startswith(COMMENT_MARKER):
            kind = LineKind.COMMENT
        elif not stripped:
            kind = LineKind.BLANK
        elif er and not in_block and _ENTITY_START.match(stripped):
            kind = LineKind.ENTITY_BLOCK_START
            in_block = True
        elif er and in_block and _ENTITY_END.match(stripped):
            kind = LineKind.ENTITY_BLOCK_END
            in_block = False
        elif er and not in_block and match_relationship(stripped):
            kind = LineKind.RELATIONSHIP
        elif in_block:
            kind = LineKind.ATTRIBUTE
        else:
            kind = LineKind.CONTENT

        result.append(Line(index=i, text=raw, kind=kind))

    return result
