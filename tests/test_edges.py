"""Tests for dangling-edge removal."""

import pytest

from sanitizer.edges import REMOVED_MARKER, comment_out, is_dangling_edge, remove_incomplete_edges
from sanitizer.repairs import INCOMPLETE_EDGE, number_lines, texts


@pytest.mark.parametrize("line", ["A -->", "A --> ", "A -->|yes|", "B ===", "A -.->", "  X ---"])
def test_dangling(line):
    assert is_dangling_edge(line)


@pytest.mark.parametrize("line", ["A --> B", "A[Start]", "A -->|yes| B", "style A stroke-width:2px"])
def test_not_dangling(line):
    assert not is_dangling_edge(line)


def test_comment_out_keeps_indent_and_text():
    assert comment_out("    A -->") == f"    %% A --> %% {REMOVED_MARKER}"


def test_remove_incomplete_edges():
    lines = number_lines(["flowchart TD", "A --> ", "B --> C"])
    result, warnings = remove_incomplete_edges(lines)
    assert texts(result) == ["flowchart TD", "%% A --> %% (incomplete edge removed)", "B --> C"]
    assert len(warnings) == 1
    assert warnings[0].line == 2
    assert warnings[0].kind == INCOMPLETE_EDGE


def test_comments_are_not_touched():
    lines = number_lines(["flowchart TD", "%% A -->"])
    result, warnings = remove_incomplete_edges(lines)
    assert result == lines
    assert warnings == []


def test_removal_is_idempotent():
    lines = number_lines(["graph LR", "A -->", "B -.->|later|"])
    once, _ = remove_incomplete_edges(lines)
    twice, warnings = remove_incomplete_edges(once)
    assert twice == once
    assert warnings == []
