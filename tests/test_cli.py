"""Tests for the mermaid-sanitize command line tool."""

import io
import json

from sanitizer.cli import main

FENCE = "```"


def test_repaired_diagram_goes_to_stdout(capsys):
    code = main(["--code", "flowchart TD\nA[Start] --> B[End (v2)]"])
    out, err = capsys.readouterr()
    assert code == 0
    assert out == 'flowchart TD\nA[Start] --> B["End (v2)"]\n'
    assert "VALID after repair (2 nodes, 1 edges)" in err


def test_invalid_diagram_exits_1(capsys):
    code = main(["--code", "graph TD\nA[("])
    _, err = capsys.readouterr()
    assert code == 1
    assert "INVALID: Mismatched square brackets" in err
    assert "Verify all brackets and parentheses are properly matched" in err


def test_json_output(capsys):
    code = main(["--json", "--code", "flowchart TD\nA --> "])
    data = json.loads(capsys.readouterr().out)
    assert code == 0
    assert data["valid"] is True
    assert len(data["warnings"]) == 1
    assert data["corrected_text"].endswith("%% (incomplete edge removed)")
    assert "node_count" in data


def test_json_output_for_invalid_diagram(capsys):
    code = main(["--json", "--code", "journey\ntitle My day"])
    data = json.loads(capsys.readouterr().out)
    assert code == 1
    assert data["error_kind"] == "unsupported_diagram_type"
    assert data["suggestions"]


def test_expected_type(capsys):
    assert main(["--expect", "erDiagram", "--code", "graph TD\nA --> B"]) == 1
    assert "Expected erDiagram but got graph" in capsys.readouterr().err


def test_missing_input_file(tmp_path, capsys):
    assert main(["--input", str(tmp_path / "nope.mmd")]) == 2
    assert "File not found" in capsys.readouterr().err


def test_input_and_output_files(tmp_path):
    src = tmp_path / "diagram.mmd"
    src.write_text("erDiagram\nUSER {\n  string name PK string email\n}\n", encoding="utf-8")
    dest = tmp_path / "out" / "fixed.mmd"
    assert main(["--input", str(src), "--output", str(dest)]) == 0
    assert dest.read_text(encoding="utf-8") == "erDiagram\nUSER {\n  string name PK\n  string email\n}\n"


def test_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("graph LR\nA --> B\n"))
    assert main([]) == 0
    assert capsys.readouterr().out == "graph LR\nA --> B\n"


def test_extract_from_ai_reply(capsys):
    reply = f"Sure!\n{FENCE}mermaid\nerDiagram\nUSER {{\n  string name PK string email\n}}\n{FENCE}"
    assert main(["--extract", "--code", reply]) == 0
    assert "  string email\n" in capsys.readouterr().out


def test_extract_without_diagram():
    assert main(["--extract", "--code", "I can't draw that."]) == 2


def test_verbose_logs_repairs(capsys):
    main(["-v", "--code", "flowchart TD\nA --> "])
    assert "[sanitize] Line 2: incomplete edge removed" in capsys.readouterr().err


def test_markdown_mode(tmp_path, capsys):
    src = tmp_path / "note.md"
    src.write_text(f"# Note\n\n{FENCE}mermaid\ngraph TD\nA[x (y)] --> B\n{FENCE}\n", encoding="utf-8")
    assert main(["--markdown", "--input", str(src), "--output", str(src)]) == 0
    assert 'A["x (y)"] --> B' in src.read_text(encoding="utf-8")
    assert "block 0: FIXED" in capsys.readouterr().err


def test_markdown_mode_with_invalid_block(tmp_path, capsys):
    src = tmp_path / "note.md"
    src.write_text(f"{FENCE}mermaid\ngraph TD\nA[(\n{FENCE}\n", encoding="utf-8")
    assert main(["--markdown", "--json", "--input", str(src)]) == 1
    data = json.loads(capsys.readouterr().out)
    assert data["changed"] is False
    assert data["blocks"][0]["valid"] is False
