"""
Diagram text inside markdown and AI responses.

Model replies wrap diagrams in prose and code fences; notes store them as
```` ```mermaid ```` blocks. These helpers find the diagram text, and repair
every fenced block of a markdown document in place.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sanitizer.diagram_lines import declaration_keyword, header_line, split_lines
from sanitizer.repairs import LogSink
from sanitizer.validator import ValidationVerdict, validate_diagram

_MERMAID_FENCE = re.compile(r"```mermaid[^\n]*\n(.*?)```", re.DOTALL | re.IGNORECASE)
_ANY_FENCE = re.compile(r"```[^\n`]*\n(.*?)```", re.DOTALL)
_MERMAID_BLOCK = re.compile(r"(```mermaid[^\n]*\n)(.*?)(```)", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class BlockReport:
    index: int
    verdict: ValidationVerdict

    @property
    def changed(self) -> bool:
        return self.verdict.corrected_text is not None

    def to_dict(self) -> dict:
        data = self.verdict.to_dict()
        data["index"] = self.index
        return data


def _looks_like_diagram(text: str) -> bool:
    header = header_line(split_lines(text))
    return header is not None and declaration_keyword(header[1]) is not None


def extract_diagram_code(content: str) -> Optional[str]:
    """Pull diagram text out of an AI response.

    Tries a ```mermaid fence, then any fence whose body starts with a diagram
    declaration, then the whole content. Returns None if nothing looks like
    a diagram.
    """
    m = _MERMAID_FENCE.search(content)
    if m and m.group(1).strip():
        return m.group(1).strip()

    for m in _ANY_FENCE.finditer(content):
        body = m.group(1).strip()
        if body and _looks_like_diagram(body):
            return body

    stripped = content.strip()
    if stripped and _looks_like_diagram(stripped):
        return stripped
    return None


def sanitize_markdown(md: str, log: LogSink = None) -> Tuple[str, List[BlockReport]]:
    """Validate every ```mermaid block in *md* and apply corrections in place.

    Invalid blocks are left as written; their verdicts explain why.
    """
    reports: List[BlockReport] = []

    def _fix(match: re.Match) -> str:
        index = len(reports)

        def _block_log(msg: str) -> None:
            log(f"block {index}: {msg}")

        verdict = validate_diagram(match.group(2), log=_block_log if log else None)
        reports.append(BlockReport(index=index, verdict=verdict))
        if verdict.corrected_text is None:
            return match.group(0)
        return match.group(1) + verdict.corrected_text + match.group(3)

    return _MERMAID_BLOCK.sub(_fix, md), reports
