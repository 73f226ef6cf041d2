"""Human-readable hints for diagram errors, shown next to the error message."""

from typing import List, Optional

from sanitizer.diagram_lines import SUPPORTED_TYPES
from sanitizer.validator import ErrorKind

_KIND_HINTS = {
    ErrorKind.EMPTY_INPUT: [
        "Paste or generate a diagram definition before saving",
    ],
    ErrorKind.UNKNOWN_DIAGRAM_TYPE: [
        f"Start the diagram with one of: {', '.join(SUPPORTED_TYPES)}",
        "Remove any prose or code fences before the diagram declaration",
    ],
    ErrorKind.UNSUPPORTED_DIAGRAM_TYPE: [
        "Redraw the diagram as a flowchart or an erDiagram",
    ],
    ErrorKind.TYPE_MISMATCH: [
        "Change the first line to the requested diagram type",
    ],
    ErrorKind.STRUCTURAL_ERROR: [
        "Verify all brackets and parentheses are properly matched",
        "Wrap labels containing special characters in double quotes",
    ],
}


def suggest_fixes(error: str, kind: Optional[ErrorKind] = None) -> List[str]:
    """Suggestions for an error message (from this engine or from the renderer)."""
    suggestions: List[str] = list(_KIND_HINTS.get(kind, [])) if kind else []
    lower = error.lower()

    if "expecting" in lower and "got" in lower:
        suggestions.append("Check for missing node IDs or incomplete syntax")
        suggestions.append("Ensure all connections use proper arrow syntax (-->, -.->, etc.)")

    if "bracket" in lower or "parenthes" in lower or "brace" in lower:
        for hint in _KIND_HINTS[ErrorKind.STRUCTURAL_ERROR]:
            if hint not in suggestions:
                suggestions.append(hint)

    if "line" in lower:
        suggestions.append("Check the syntax on the specified line number")
        suggestions.append("Look for incomplete node definitions or missing arrows")

    if "parse" in lower:
        suggestions.append("Validate the diagram structure matches Mermaid syntax")
        suggestions.append("Remove any unsupported characters or syntax")

    if not suggestions:
        suggestions.append("Review the Mermaid documentation for correct syntax")
        suggestions.append("Try simplifying the diagram to isolate the issue")

    return suggestions
