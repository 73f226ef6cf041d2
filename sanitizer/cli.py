#!/usr/bin/env python3
"""
Mermaid diagram validator and sanitizer (CLI)

Validates a flowchart or erDiagram definition, repairs what can be repaired
(quoting labels, splitting crammed ER attributes, commenting out dangling
edges) and prints the corrected diagram.

Usage:
    mermaid-sanitize --input diagram.mmd [--output fixed.mmd] [--json]
    mermaid-sanitize --code 'flowchart TD
    A[Start] --> B[End (v2)]'
    mermaid-sanitize --markdown --input page.md --output page.md
    cat reply.txt | mermaid-sanitize --extract --expect erDiagram

Exit codes:
  0: diagram valid (possibly after repair)
  1: diagram invalid
  2: bad arguments / file not found / no diagram found
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from sanitizer.markdown_blocks import extract_diagram_code, sanitize_markdown
from sanitizer.suggestions import suggest_fixes
from sanitizer.summary import count_elements
from sanitizer.validator import validate_diagram


def _log(msg: str) -> None:
    print(f"[sanitize] {msg}", file=sys.stderr)


def _read_input(args: argparse.Namespace) -> Optional[str]:
    if args.input:
        p = Path(args.input)
        if not p.exists():
            print(f"Error: File not found: {p}", file=sys.stderr)
            return None
        return p.read_text(encoding="utf-8")
    if args.code:
        return args.code
    return sys.stdin.read()


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        out = Path(output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
        print(f"Written to {out}", file=sys.stderr)
    else:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")


def _run_markdown(md: str, args: argparse.Namespace) -> int:
    fixed, reports = sanitize_markdown(md, log=_log if args.verbose else None)
    invalid = [r for r in reports if not r.verdict.valid]

    if args.json:
        print(json.dumps({
            "blocks": [r.to_dict() for r in reports],
            "changed": fixed != md,
        }, indent=2))
        if args.output:
            _write_output(fixed, args.output)
    else:
        for r in reports:
            if r.verdict.valid:
                status = "FIXED" if r.changed else "OK"
                print(f"  block {r.index}: {status}", file=sys.stderr)
            else:
                print(f"  block {r.index}: INVALID: {r.verdict.error}", file=sys.stderr)
        print(f"{len(reports)} block(s), {len(invalid)} invalid", file=sys.stderr)
        _write_output(fixed, args.output)

    return 1 if invalid else 0


def _run_diagram(code: str, args: argparse.Namespace) -> int:
    verdict = validate_diagram(
        code, expected_type=args.expect, log=_log if args.verbose else None,
    )
    final = verdict.resolved_text(code)

    if args.json:
        result = verdict.to_dict()
        if verdict.valid:
            result.update(count_elements(final))
        else:
            result["suggestions"] = suggest_fixes(verdict.error, verdict.error_kind)
        print(json.dumps(result, indent=2))
        if verdict.valid and args.output:
            _write_output(final, args.output)
        return 0 if verdict.valid else 1

    if not verdict.valid:
        print(f"INVALID: {verdict.error}", file=sys.stderr)
        for hint in suggest_fixes(verdict.error, verdict.error_kind):
            print(f"  - {hint}", file=sys.stderr)
        return 1

    for w in verdict.warnings:
        print(f"WARNING: {w}", file=sys.stderr)
    counts = count_elements(final)
    if "entity_count" in counts:
        summary = f"{counts['entity_count']} entities, {counts['relationship_count']} relationships"
    else:
        summary = f"{counts['node_count']} nodes, {counts['edge_count']} edges"
    changed = " after repair" if verdict.corrected_text is not None else ""
    print(f"VALID{changed} ({summary})", file=sys.stderr)
    _write_output(final, args.output)
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate and repair Mermaid diagram syntax")
    parser.add_argument("--input", "-i", help="Input file path (.mmd, or .md with --markdown)")
    parser.add_argument("--code", "-c", help="Diagram code string to validate")
    parser.add_argument("--output", "-o", help="Write the corrected text here (default: stdout)")
    parser.add_argument("--json", action="store_true", help="Output the verdict as JSON")
    parser.add_argument("--markdown", action="store_true",
                        help="Treat input as markdown and repair every ```mermaid block")
    parser.add_argument("--extract", action="store_true",
                        help="Extract the diagram from an AI response (code fences, prose)")
    parser.add_argument("--expect", choices=["flowchart", "graph", "erDiagram"],
                        help="Require this diagram family")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every repair to stderr")
    args = parser.parse_args(argv)

    text = _read_input(args)
    if text is None:
        return 2

    if args.markdown:
        return _run_markdown(text, args)

    if args.extract:
        code = extract_diagram_code(text)
        if code is None:
            print("Error: no diagram found in input", file=sys.stderr)
            return 2
        text = code

    return _run_diagram(text, args)


if __name__ == "__main__":
    sys.exit(main())
