"""
Mermaid diagram validation and repair pipeline.

validate_diagram() never raises on malformed content: every outcome is a
ValidationVerdict. Fatal problems (empty input, unknown or disabled diagram
type, type mismatch, unbalanced delimiters) stop the pipeline before any
rewriting. Otherwise the repair passes run in a fixed order:

    ER attribute reconstruction (erDiagram only)
    -> dangling-edge removal (flowchart / graph only)
    -> label quoting

and the verdict carries the corrected text only when something changed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from sanitizer.brackets import check_bracket_balance, format_mismatches
from sanitizer.diagram_lines import (
    ER_TYPE,
    SUPPORTED_TYPES,
    LineKind,
    classify_lines,
    detect_diagram_type,
    split_declaration,
    split_lines,
)
from sanitizer.edges import remove_incomplete_edges
from sanitizer.er_attributes import reconstruct_entity_blocks
from sanitizer.labels import normalize_labels
from sanitizer.repairs import (
    USER_FACING,
    LogSink,
    RepairWarning,
    emit,
    number_lines,
    texts,
)

# Accepted values for expected_type, mapped to the declarations they allow.
TYPE_FAMILIES = {
    "flowchart": ("flowchart", "graph"),
    "graph": ("flowchart", "graph"),
    "erDiagram": ("erDiagram",),
}

NO_CONTENT_WARNING = "Diagram has no content (only a type declaration)"


class ErrorKind(str, Enum):
    EMPTY_INPUT = "empty_input"
    UNKNOWN_DIAGRAM_TYPE = "unknown_diagram_type"
    UNSUPPORTED_DIAGRAM_TYPE = "unsupported_diagram_type"
    TYPE_MISMATCH = "type_mismatch"
    STRUCTURAL_ERROR = "structural_error"


@dataclass(frozen=True)
class ValidationVerdict:
    valid: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    warnings: Tuple[str, ...] = ()
    corrected_text: Optional[str] = None
    repairs: Tuple[RepairWarning, ...] = ()
    diagram_type: Optional[str] = None

    @classmethod
    def failure(cls, kind: ErrorKind, error: str,
                diagram_type: Optional[str] = None) -> "ValidationVerdict":
        return cls(valid=False, error=error, error_kind=kind, diagram_type=diagram_type)

    def resolved_text(self, original: str) -> str:
        """Text to hand to the renderer: corrected if changed, else the original."""
        return self.corrected_text if self.corrected_text is not None else original

    def to_dict(self) -> dict:
        data = {
            "valid": self.valid,
            "warnings": list(self.warnings),
            "diagram_type": self.diagram_type,
            "repairs": [r.to_dict() for r in self.repairs],
        }
        if not self.valid:
            data["error"] = self.error
            data["error_kind"] = self.error_kind.value if self.error_kind else None
        if self.corrected_text is not None:
            data["corrected_text"] = self.corrected_text
        return data


@dataclass(frozen=True)
class RepairResult:
    text: str
    repairs: Tuple[RepairWarning, ...] = field(default_factory=tuple)

    @property
    def warnings(self) -> Tuple[str, ...]:
        return tuple(str(r) for r in self.repairs if r.kind in USER_FACING)


# ──────────────────────────────────────────────────────────────────
# Repair pipeline
# ──────────────────────────────────────────────────────────────────

def repair_diagram(text: str, log: LogSink = None) -> RepairResult:
    """Run every repair pass that applies to the declared diagram type.

    Text without a supported declaration is returned unchanged; the passes
    only know the flowchart and ER grammars.
    """
    if not isinstance(text, str):
        raise TypeError(f"diagram text must be str, got {type(text).__name__}")

    keyword, supported = detect_diagram_type(text)
    if not supported:
        return RepairResult(text=text)

    er = keyword == ER_TYPE
    lines = number_lines(split_lines(text))
    repairs: List[RepairWarning] = []

    if er:
        lines, found = reconstruct_entity_blocks(lines)
        repairs.extend(found)
    else:
        lines, found = remove_incomplete_edges(lines)
        repairs.extend(found)

    lines, found = normalize_labels(lines, er=er)
    repairs.extend(found)

    repairs.sort(key=lambda r: r.line)
    emit(log, repairs)
    return RepairResult(text="\n".join(texts(lines)), repairs=tuple(repairs))


def sanitize_diagram(text: str, log: LogSink = None) -> str:
    """Repaired diagram text. Idempotent: sanitize(sanitize(s)) == sanitize(s)."""
    return repair_diagram(text, log=log).text


# ──────────────────────────────────────────────────────────────────
# Validation
# ──────────────────────────────────────────────────────────────────

def _has_content(text: str) -> bool:
    for line in classify_lines(text):
        if line.kind is LineKind.TYPE_DECLARATION:
            if split_declaration(line.text)[1]:
                return True
        elif line.kind not in (LineKind.COMMENT, LineKind.BLANK):
            return True
    return False


def validate_diagram(
    text: str,
    *,
    expected_type: Optional[str] = None,
    log: LogSink = None,
) -> ValidationVerdict:
    """Validate a diagram definition and repair what can be repaired.

    Raises TypeError only for a non-string argument; malformed diagram
    content always comes back as a verdict.
    """
    if not isinstance(text, str):
        raise TypeError(f"diagram text must be str, got {type(text).__name__}")

    if not text.strip():
        return ValidationVerdict.failure(ErrorKind.EMPTY_INPUT, "Diagram code is empty")

    keyword, supported = detect_diagram_type(text)
    if keyword is not None and not supported:
        return ValidationVerdict.failure(
            ErrorKind.UNSUPPORTED_DIAGRAM_TYPE,
            f"Diagram type '{keyword}' is disabled due to frequent rendering errors. "
            f"Supported types: {', '.join(SUPPORTED_TYPES)}",
            diagram_type=keyword,
        )
    if keyword is None:
        first = text.strip().split("\n")[0].strip()
        return ValidationVerdict.failure(
            ErrorKind.UNKNOWN_DIAGRAM_TYPE,
            f"Diagram must start with a valid type ({', '.join(SUPPORTED_TYPES)}); "
            f"found '{first[:60]}'",
        )

    if expected_type is not None:
        allowed = TYPE_FAMILIES.get(expected_type, (expected_type,))
        if keyword not in allowed:
            return ValidationVerdict.failure(
                ErrorKind.TYPE_MISMATCH,
                f"Expected {expected_type} but got {keyword}",
                diagram_type=keyword,
            )

    mismatches = check_bracket_balance(text)
    if mismatches:
        return ValidationVerdict.failure(
            ErrorKind.STRUCTURAL_ERROR, format_mismatches(mismatches), diagram_type=keyword,
        )

    result = repair_diagram(text, log=log)
    warnings = list(result.warnings)
    if not _has_content(text):
        warnings.append(NO_CONTENT_WARNING)

    return ValidationVerdict(
        valid=True,
        warnings=tuple(warnings),
        corrected_text=result.text if result.text != text else None,
        repairs=result.repairs,
        diagram_type=keyword,
    )
