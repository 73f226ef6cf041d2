"""End-to-end tests for validate_diagram / sanitize_diagram."""

import dataclasses
import re

import pytest

from sanitizer.brackets import check_bracket_balance
from sanitizer.repairs import INCOMPLETE_EDGE, LABEL_QUOTED
from sanitizer.validator import (
    NO_CONTENT_WARNING,
    ErrorKind,
    repair_diagram,
    sanitize_diagram,
    validate_diagram,
)


# ──────────────────────────────────────────────────────────────────
# Editor and generation scenarios
# ──────────────────────────────────────────────────────────────────

def test_unquoted_label_is_quoted_silently():
    """Label quoting is lossless, so it is logged but not surfaced as a warning."""
    verdict = validate_diagram("flowchart TD\nA[Start] --> B[End (v2)]")
    assert verdict.valid
    assert verdict.corrected_text == 'flowchart TD\nA[Start] --> B["End (v2)"]'
    assert verdict.warnings == ()
    assert [r.kind for r in verdict.repairs] == [LABEL_QUOTED]
    assert verdict.diagram_type == "flowchart"


def test_dangling_edge_is_commented_out():
    verdict = validate_diagram("flowchart TD\nA --> ")
    assert verdict.valid
    assert verdict.corrected_text == "flowchart TD\n%% A --> %% (incomplete edge removed)"
    assert len(verdict.warnings) == 1
    assert verdict.warnings[0].startswith("Line 2:")
    assert verdict.repairs[0].kind == INCOMPLETE_EDGE


def test_crammed_er_attributes_are_split():
    verdict = validate_diagram("erDiagram\nUSER {\n  string name PK string email\n}")
    assert verdict.valid
    assert verdict.corrected_text == "erDiagram\nUSER {\n  string name PK\n  string email\n}"
    assert len(verdict.warnings) == 1
    assert verdict.warnings[0].startswith("Line 3:")


def test_unbalanced_brackets_are_rejected():
    verdict = validate_diagram("graph TD\nA[(")
    assert not verdict.valid
    assert verdict.error_kind is ErrorKind.STRUCTURAL_ERROR
    assert "1 opening '['" in verdict.error
    assert "0 closing ']'" in verdict.error
    assert "parentheses" in verdict.error
    assert verdict.corrected_text is None


def test_disabled_type_is_named():
    verdict = validate_diagram("stateDiagram-v2\n[*] --> Still")
    assert not verdict.valid
    assert verdict.error_kind is ErrorKind.UNSUPPORTED_DIAGRAM_TYPE
    assert "'stateDiagram-v2'" in verdict.error
    assert verdict.diagram_type == "stateDiagram-v2"


def test_sequence_diagrams_are_disabled():
    verdict = validate_diagram("sequenceDiagram\nAlice->>Bob: hi")
    assert verdict.error_kind is ErrorKind.UNSUPPORTED_DIAGRAM_TYPE


# ──────────────────────────────────────────────────────────────────
# Fatal checks
# ──────────────────────────────────────────────────────────────────

def test_empty_input():
    verdict = validate_diagram("  \n\t\n")
    assert verdict.error_kind is ErrorKind.EMPTY_INPUT


def test_unknown_type():
    verdict = validate_diagram("hello world\nA --> B")
    assert verdict.error_kind is ErrorKind.UNKNOWN_DIAGRAM_TYPE
    assert "found 'hello world'" in verdict.error


def test_non_string_input_raises():
    with pytest.raises(TypeError):
        validate_diagram(None)
    with pytest.raises(TypeError):
        repair_diagram(b"graph TD")


def test_expected_type():
    assert validate_diagram("graph TD\nA --> B", expected_type="flowchart").valid
    verdict = validate_diagram("graph TD\nA --> B", expected_type="erDiagram")
    assert verdict.error_kind is ErrorKind.TYPE_MISMATCH
    assert verdict.error == "Expected erDiagram but got graph"


def test_unchanged_diagram_has_no_corrected_text():
    verdict = validate_diagram("flowchart LR\nA[Start] --> B[Stop]")
    assert verdict.valid
    assert verdict.corrected_text is None
    assert verdict.warnings == ()
    assert verdict.repairs == ()


def test_declaration_only_warns():
    verdict = validate_diagram("flowchart TD")
    assert verdict.valid
    assert verdict.warnings == (NO_CONTENT_WARNING,)


def test_er_relationship_label_is_quoted():
    verdict = validate_diagram("erDiagram\nCUSTOMER ||--o{ ORDER : places/buys")
    assert verdict.valid
    assert verdict.corrected_text == 'erDiagram\nCUSTOMER ||--o{ ORDER : "places/buys"'
    assert verdict.warnings == ()


def test_log_sink_receives_every_repair():
    messages = []
    validate_diagram("flowchart TD\nA --> \nB[x (y)] --> C", log=messages.append)
    assert messages == [
        "Line 2: incomplete edge removed (no target): 'A -->'",
        "Line 3: quoted label 'x (y)'",
    ]


def test_to_dict():
    invalid = validate_diagram("graph TD\nA[(").to_dict()
    assert invalid["valid"] is False
    assert invalid["error_kind"] == "structural_error"
    assert "corrected_text" not in invalid

    valid = validate_diagram("flowchart TD\nA --> ").to_dict()
    assert "error" not in valid
    assert valid["corrected_text"].endswith("(incomplete edge removed)")
    assert valid["repairs"][0] == {
        "line": 2,
        "kind": "incomplete_edge",
        "message": "incomplete edge removed (no target): 'A -->'",
    }


def test_verdict_is_frozen():
    verdict = validate_diagram("flowchart TD\nA --> B")
    with pytest.raises(dataclasses.FrozenInstanceError):
        verdict.valid = False


def test_er_types_outside_the_keyword_list_are_kept():
    verdict = validate_diagram(
        "erDiagram\nUSER {\n  int64 id PK\n  ObjectId owner FK\n  long created\n}"
    )
    assert verdict.valid
    assert verdict.corrected_text is None
    assert verdict.warnings == ()


def test_one_line_diagram():
    verdict = validate_diagram("graph TD; A-->B")
    assert verdict.valid
    assert verdict.corrected_text is None
    assert verdict.warnings == ()


def test_one_line_diagram_labels_are_quoted():
    verdict = validate_diagram("graph TD; A[x (y)] --> B")
    assert verdict.corrected_text == 'graph TD; A["x (y)"] --> B'


def test_unsupported_text_passes_through_repair():
    text = "pie\n\"Dogs\" : 3"
    assert sanitize_diagram(text) == text


# ──────────────────────────────────────────────────────────────────
# Properties over a corpus
# ──────────────────────────────────────────────────────────────────

CORPUS = [
    "flowchart TD\nA[Start] --> B[End (v2)]",
    "flowchart TD\nA --> ",
    "graph LR\nA[[Sub (x)]] -->|Yes (maybe)| B([Go-live])\nB -.->|re-try|\nC{a > b} --> D[(Orders - 2024)]",
    'flowchart TD\nA[Say \\"hi\\"] --> B["Already (quoted)"]',
    "flowchart TD\n    subgraph one\n    A[x - y] --> B\n    end",
    "erDiagram\nUSER {\n  string name PK string email\n  attendance_code_id PK FK bool is_active\n}\nUSER ||--o{ ORDER : places/buys",
    'erDiagram\nORDER {\n    int id PK\n    string status "current (state)"\n}',
    "erDiagram\nITEM {\n  email\n  string sku UK int qty\n}\n",
    "graph TD; A[x (y)] --> B",
    "erDiagram\nT {\n  int64 id PK long created\n}",
]


@pytest.mark.parametrize("text", CORPUS)
def test_sanitize_is_idempotent(text):
    once = sanitize_diagram(text)
    assert sanitize_diagram(once) == once


@pytest.mark.parametrize("text", CORPUS)
def test_repaired_output_is_a_fixed_point(text):
    verdict = validate_diagram(text)
    again = validate_diagram(verdict.resolved_text(text))
    assert again.valid
    assert again.corrected_text is None


@pytest.mark.parametrize("text", CORPUS)
def test_valid_output_is_balanced(text):
    verdict = validate_diagram(text)
    assert verdict.valid
    assert check_bracket_balance(verdict.resolved_text(text)) == []


@pytest.mark.parametrize("text", CORPUS)
def test_no_line_is_lost(text):
    """Every input word survives repair, either rewritten or commented out."""
    words = set(re.findall(r"\w+", sanitize_diagram(text)))
    for word in re.findall(r"\w+", text):
        assert word in words
