"""Shared records passed between repair passes."""

from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional

ATTRIBUTE_SPLIT = "attribute_split"
ATTRIBUTE_TYPED = "attribute_typed"
INCOMPLETE_EDGE = "incomplete_edge"
LABEL_QUOTED = "label_quoted"

# Kinds surfaced to end users; label quoting is lossless and stays in the log.
USER_FACING = frozenset({ATTRIBUTE_SPLIT, ATTRIBUTE_TYPED, INCOMPLETE_EDGE})

LogSink = Optional[Callable[[str], None]]


class SourceLine(NamedTuple):
    """A line of text tagged with the input line number it came from."""
    number: int
    text: str


@dataclass(frozen=True)
class RepairWarning:
    line: int
    kind: str
    message: str

    def __str__(self) -> str:
        return f"Line {self.line}: {self.message}"

    def to_dict(self) -> dict:
        return {"line": self.line, "kind": self.kind, "message": self.message}


def number_lines(lines: List[str]) -> List[SourceLine]:
    return [SourceLine(i + 1, text) for i, text in enumerate(lines)]


def texts(lines: List[SourceLine]) -> List[str]:
    return [line.text for line in lines]


def emit(log: LogSink, warnings: List[RepairWarning]) -> None:
    if log is None:
        return
    for w in warnings:
        log(str(w))
