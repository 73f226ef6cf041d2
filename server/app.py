"""
FastAPI application for the diagram sanitizer.

Sits between the editor / AI generation flow and the Mermaid renderer:
receives diagram text, bounds its size, runs validation and repair, and
returns the verdict. Also repairs every ```mermaid block of a markdown note
and renders a markdown preview.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import markdown
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse

from sanitizer.diagram_lines import SUPPORTED_TYPES
from sanitizer.markdown_blocks import extract_diagram_code, sanitize_markdown
from sanitizer.suggestions import suggest_fixes
from sanitizer.summary import count_elements
from sanitizer.validator import TYPE_FAMILIES, repair_diagram, validate_diagram


def _load_env() -> None:
    env_path = Path(".env")
    if not env_path.exists():
        for parent in Path.cwd().parents:
            candidate = parent / ".env"
            if candidate.exists():
                env_path = candidate
                break
    if env_path.exists():
        load_dotenv(env_path)


_load_env()

MAX_DIAGRAM_CHARS = int(os.environ.get("MAX_DIAGRAM_CHARS", "50000"))
MAX_MARKDOWN_CHARS = int(os.environ.get("MAX_MARKDOWN_CHARS", "500000"))
HOST = os.environ.get("SANITIZER_HOST", "0.0.0.0")
PORT = int(os.environ.get("SANITIZER_PORT", "8000"))

app = FastAPI(title="Mermaid Diagram Sanitizer")


def _log(msg: str) -> None:
    print(f"[app] {msg}", file=sys.stderr)


# ──────────────────────────────────────────────────────────────────
# Request helpers
# ──────────────────────────────────────────────────────────────────

async def _read_text_field(request: Request, name: str, limit: int) -> tuple[dict, str]:
    """Parse the JSON body and return (body, text field), enforcing the size bound."""
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    text = body.get(name)
    if not isinstance(text, str):
        raise HTTPException(status_code=400, detail=f"{name} is required")
    if len(text) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"{name} exceeds {limit} characters ({len(text)})",
        )
    return body, text


# ──────────────────────────────────────────────────────────────────
# REST API: Diagrams
# ──────────────────────────────────────────────────────────────────

@app.get("/api/health")
async def health():
    return JSONResponse(content={"ok": True, "supported_types": list(SUPPORTED_TYPES)})


@app.post("/api/diagrams/validate")
async def validate(request: Request):
    """Validate (and repair) one diagram. Invalid diagrams are a 200 with valid=false."""
    body, code = await _read_text_field(request, "code", MAX_DIAGRAM_CHARS)

    expected = body.get("expected_type")
    if expected is not None and expected not in TYPE_FAMILIES:
        raise HTTPException(
            status_code=400,
            detail=f"expected_type must be one of: {', '.join(TYPE_FAMILIES)}",
        )

    if body.get("extract"):
        extracted = extract_diagram_code(code)
        if extracted is None:
            raise HTTPException(status_code=422, detail="No diagram found in content")
        code = extracted

    verdict = validate_diagram(code, expected_type=expected, log=_log)
    result = verdict.to_dict()
    if verdict.valid:
        result["counts"] = count_elements(verdict.resolved_text(code))
    else:
        result["suggestions"] = suggest_fixes(verdict.error, verdict.error_kind)
        _log(f"Rejected diagram: {verdict.error}")
    return JSONResponse(content=result)


@app.post("/api/diagrams/sanitize")
async def sanitize(request: Request):
    """Run the repair passes without validation gates."""
    _, code = await _read_text_field(request, "code", MAX_DIAGRAM_CHARS)
    result = repair_diagram(code, log=_log)
    return JSONResponse(content={
        "code": result.text,
        "changed": result.text != code,
        "warnings": list(result.warnings),
        "repairs": [r.to_dict() for r in result.repairs],
    })


# ──────────────────────────────────────────────────────────────────
# REST API: Markdown documents
# ──────────────────────────────────────────────────────────────────

@app.post("/api/markdown/sanitize")
async def sanitize_document(request: Request):
    _, md = await _read_text_field(request, "markdown", MAX_MARKDOWN_CHARS)
    fixed, reports = sanitize_markdown(md, log=_log)
    return JSONResponse(content={
        "markdown": fixed,
        "changed": fixed != md,
        "blocks": [r.to_dict() for r in reports],
    })


@app.post("/api/markdown/preview", response_class=HTMLResponse)
async def preview_document(request: Request):
    """Render a markdown note as HTML after repairing its diagram blocks."""
    _, md = await _read_text_field(request, "markdown", MAX_MARKDOWN_CHARS)
    fixed, _ = sanitize_markdown(md)
    html = markdown.markdown(fixed, extensions=["tables", "fenced_code", "toc"])
    return HTMLResponse(content=html)


# ──────────────────────────────────────────────────────────────────
# Entrypoint
# ──────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server.app:app", host=HOST, port=PORT, reload=True)
