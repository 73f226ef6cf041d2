"""Deterministic Mermaid diagram sanitizer.

Repairs common defects in flowchart and erDiagram definitions written by
people or generated by an LLM (unquoted special-character labels, crammed
ER attribute lines, dangling edges) and returns a structured verdict.
Pure text in, text plus diagnostics out. No rendering, no I/O.
"""

from sanitizer.markdown_blocks import extract_diagram_code, sanitize_markdown
from sanitizer.suggestions import suggest_fixes
from sanitizer.summary import count_elements
from sanitizer.validator import (
    ErrorKind,
    ValidationVerdict,
    repair_diagram,
    sanitize_diagram,
    validate_diagram,
)

__all__ = [
    "ErrorKind",
    "ValidationVerdict",
    "count_elements",
    "extract_diagram_code",
    "repair_diagram",
    "sanitize_diagram",
    "sanitize_markdown",
    "suggest_fixes",
    "validate_diagram",
]
