"""Element counts for diagram text, used in CLI and API reports."""

import re

from sanitizer.diagram_lines import (
    ER_TYPE,
    LineKind,
    classify_lines,
    detect_diagram_type,
    match_relationship,
    split_declaration,
)

_NODE = re.compile(r"^\s*(\w+)\s*[\[\({]")
_EDGE = re.compile(r"-->|-\.->|==>|<-->|<-\.->|<==>|---|-\.-|===")
_EDGE_SPLIT = re.compile(r"<?-->|<?-\.->|<?==>|---|-\.-|===")
_SUBGRAPH = re.compile(r"^\s*subgraph\s")
_DIRECTIVE = re.compile(r"^\s*(classDef|style|linkStyle|class|click|direction)\s")
_ENTITY_NAME = re.compile(r"^([\w-]+)")


def _count_er(text: str) -> dict:
    entities = set()
    relationships = 0
    attributes = 0
    for line in classify_lines(text):
        if line.kind is LineKind.ENTITY_BLOCK_START:
            entities.add(_ENTITY_NAME.match(line.stripped).group(1))
        elif line.kind is LineKind.ATTRIBUTE:
            attributes += 1
        elif line.kind is LineKind.RELATIONSHIP:
            relationships += 1
            m = match_relationship(line.text)
            entities.update((m.group(1), m.group(3)))
    return {
        "entity_count": len(entities),
        "relationship_count": relationships,
        "attribute_count": attributes,
    }


def _count_flowchart(text: str) -> dict:
    nodes = set()
    edge_count = 0
    subgraph_count = 0

    for line in classify_lines(text):
        if line.kind is LineKind.TYPE_DECLARATION:
            stripped = split_declaration(line.text)[1]
        elif line.kind is LineKind.CONTENT:
            stripped = line.stripped
        else:
            continue
        if not stripped:
            continue
        if _DIRECTIVE.match(stripped) or stripped == "end":
            continue
        if _SUBGRAPH.match(stripped):
            subgraph_count += 1
            continue

        if _EDGE.search(stripped):
            edge_count += len(_EDGE.findall(stripped))
            for part in _EDGE_SPLIT.split(stripped):
                part = re.sub(r"^\|[^|]*\|", "", part.strip()).strip()
                m = re.match(r"(\w+)", part)
                if m:
                    nodes.add(m.group(1))
        else:
            m = _NODE.match(stripped)
            if m:
                nodes.add(m.group(1))

    return {
        "node_count": len(nodes),
        "edge_count": edge_count,
        "subgraph_count": subgraph_count,
    }


def count_elements(text: str) -> dict:
    """Count nodes/edges (flowcharts) or entities/relationships (ER diagrams)."""
    keyword, _ = detect_diagram_type(text)
    if keyword == ER_TYPE:
        return _count_er(text)
    return _count_flowchart(text)
