"""Document-wide delimiter balance check.

Counts are taken over the whole text, not per line, since labels may wrap.
No repair is attempted; a mismatch is always a hard rejection.
"""

import re
from dataclasses import dataclass
from typing import List

from sanitizer.diagram_lines import (
    RELATIONSHIP_SYMBOL,
    is_er_document,
    match_relationship,
    split_lines,
)

BRACKET_PAIRS = (
    ("square brackets", "[", "]"),
    ("parentheses", "(", ")"),
    ("curly braces", "{", "}"),
)

_CARDINALITY = re.compile(r"(?<=\s)" + RELATIONSHIP_SYMBOL + r"(?=\s)")


@dataclass(frozen=True)
class BracketMismatch:
    name: str
    open_char: str
    close_char: str
    opening: int
    closing: int

    @property
    def message(self) -> str:
        return (
            f"Mismatched {self.name}: {self.opening} opening '{self.open_char}', "
            f"{self.closing} closing '{self.close_char}'"
        )


def _mask_cardinality(lines: List[str]) -> str:
    """Blank out ER cardinality markers (||--o{ etc.), which are not delimiters."""
    masked = []
    for line in lines:
        if match_relationship(line):
            line = _CARDINALITY.sub(" ", line, count=1)
        masked.append(line)
    return "\n".join(masked)


def countable_text(text: str) -> str:
    lines = split_lines(text)
    if is_er_document(lines):
        return _mask_cardinality(lines)
    return text


def check_bracket_balance(text: str) -> List[BracketMismatch]:
    """Return every unbalanced delimiter pair; empty list when balanced."""
    counted = countable_text(text)
    mismatches: List[BracketMismatch] = []
    for name, open_char, close_char in BRACKET_PAIRS:
        opening = counted.count(open_char)
        closing = counted.count(close_char)
        if opening != closing:
            mismatches.append(BracketMismatch(name, open_char, close_char, opening, closing))
    return mismatches


def format_mismatches(mismatches: List[BracketMismatch]) -> str:
    return "; ".join(m.message for m in mismatches)
