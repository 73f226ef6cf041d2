"""
ER attribute reconstruction.

Model output often crams several attribute definitions onto one line inside
an entity block:

    USER {
        string name PK string email
    }

Mermaid expects exactly one ``type name [PK|FK|UK] ["comment"]`` per line.
Each attribute line is walked token by token through a two-state machine
(expecting a type / accumulating an attribute) and re-emitted one attribute
per line with the original indentation. A bare name with no type gets the
default type instead of being dropped, so no token is ever lost. Lines that
are already well formed, or that cannot be segmented, are left untouched.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from sanitizer.diagram_lines import LineKind, classify_lines
from sanitizer.repairs import (
    ATTRIBUTE_SPLIT,
    ATTRIBUTE_TYPED,
    RepairWarning,
    SourceLine,
    texts,
)

TYPE_KEYWORDS = frozenset({
    # numeric
    "int", "integer", "bigint", "smallint", "tinyint", "float", "double",
    "decimal", "numeric", "number", "real", "serial", "money",
    # text
    "string", "text", "varchar", "char", "nvarchar",
    # boolean
    "bool", "boolean",
    # date / time
    "date", "datetime", "timestamp", "timestamptz", "time", "interval",
    # structured
    "json", "jsonb", "array", "enum", "object", "xml",
    # identifiers / binary
    "uuid", "guid", "bytea", "blob", "binary",
})

DEFAULT_TYPE = "string"

_TYPE_TOKEN = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)(\(\s*[\d\s,]*\)|\[\])?")
_CONSTRAINT_TOKEN = re.compile(r",|,?(?:(?:PK|FK|UK),?)+", re.IGNORECASE)
_TOKEN = re.compile(r'"[^"]*"?|\S+')


class Constraint(Enum):
    PK = "PK"
    FK = "FK"
    UK = "UK"


@dataclass(frozen=True)
class AttributeField:
    type: str
    name: str
    constraints: Tuple[str, ...] = ()
    comment: Optional[str] = None
    defaulted_type: bool = False

    @property
    def constraint_set(self) -> FrozenSet[Constraint]:
        keys = set()
        for token in self.constraints:
            for part in token.split(","):
                if part:
                    keys.add(Constraint(part.upper()))
        return frozenset(keys)

    def render(self) -> str:
        parts = [self.type, self.name, *self.constraints]
        if self.comment is not None:
            parts.append(self.comment)
        return " ".join(parts)


# ──────────────────────────────────────────────────────────────────
# Token classes
# ──────────────────────────────────────────────────────────────────

def tokenize_attribute(line: str) -> List[str]:
    """Whitespace tokens, keeping a quoted comment together."""
    return _TOKEN.findall(line)


def is_type_token(token: str) -> bool:
    m = _TYPE_TOKEN.fullmatch(token)
    return bool(m) and m.group(1).lower() in TYPE_KEYWORDS


def is_constraint_token(token: str) -> bool:
    return bool(_CONSTRAINT_TOKEN.fullmatch(token))


def is_comment_token(token: str) -> bool:
    return token.startswith('"')


def _is_word_token(token: str) -> bool:
    return not (is_constraint_token(token) or is_comment_token(token))


def is_well_formed(tokens: List[str]) -> bool:
    """A single ``type name [constraints] [comment]`` tuple.

    Any word may be the type; the keyword list only matters when a line has
    to be segmented.
    """
    if len(tokens) < 2 or not (_is_word_token(tokens[0]) and _is_word_token(tokens[1])):
        return False
    rest = tokens[2:]
    if rest and is_comment_token(rest[-1]):
        rest = rest[:-1]
    return all(is_constraint_token(t) for t in rest)


# ──────────────────────────────────────────────────────────────────
# State machine
# ──────────────────────────────────────────────────────────────────

class _State(Enum):
    EXPECTING_TYPE = "expecting_type"
    ACCUMULATING = "accumulating"


def _takes_type_slot(token: str, following: Optional[str]) -> bool:
    """Whether *token* opens an attribute as its type rather than as a bare name.

    Unknown words count as types when a name follows them (``int64 id PK``).
    A word that is last, or followed by a constraint, a comment or a known
    type keyword, is a name that lost its type.
    """
    if is_type_token(token):
        return True
    if following is None or not _is_word_token(following):
        return False
    return not is_type_token(following)


@dataclass
class _Pending:
    type: Optional[str] = None
    name: Optional[str] = None
    constraints: List[str] = field(default_factory=list)
    comment: Optional[str] = None

    def build(self) -> Optional[AttributeField]:
        if self.name is None:
            return None
        return AttributeField(
            type=self.type or DEFAULT_TYPE,
            name=self.name,
            constraints=tuple(self.constraints),
            comment=self.comment,
            defaulted_type=self.type is None,
        )


def parse_attribute_fields(line: str) -> Optional[List[AttributeField]]:
    """Segment an attribute line into fields.

    Returns None when some token cannot be attached to an attribute
    (a constraint or comment with no name before it, a type with no name).
    """
    tokens = tokenize_attribute(line)
    if not tokens:
        return None

    fields: List[AttributeField] = []
    state = _State.EXPECTING_TYPE
    pending: Optional[_Pending] = None

    for i, token in enumerate(tokens):
        following = tokens[i + 1] if i + 1 < len(tokens) else None
        if state is _State.EXPECTING_TYPE:
            if not _is_word_token(token):
                return None
            if _takes_type_slot(token, following):
                pending = _Pending(type=token)
            else:
                pending = _Pending(name=token)
            state = _State.ACCUMULATING
            continue

        assert pending is not None
        if pending.name is None:
            # type seen, name expected; a type keyword is a legal name here
            if not _is_word_token(token):
                return None
            pending.name = token
        elif is_constraint_token(token):
            pending.constraints.append(token)
        elif is_comment_token(token):
            pending.comment = token
            fields.append(pending.build())
            pending = None
            state = _State.EXPECTING_TYPE
        else:
            fields.append(pending.build())
            if _takes_type_slot(token, following):
                pending = _Pending(type=token)
            else:
                pending = _Pending(name=token)

    if pending is not None:
        built = pending.build()
        if built is None:
            return None
        fields.append(built)

    return fields


def reconstruct_attribute_line(line: str) -> Optional[List[AttributeField]]:
    """Fields to emit for *line*, or None if the line should stay as written."""
    tokens = tokenize_attribute(line.strip())
    if not tokens or is_well_formed(tokens):
        return None
    fields = parse_attribute_fields(line.strip())
    if not fields:
        return None
    only = fields[0]
    if len(fields) == 1 and not only.defaulted_type and only.render() == " ".join(tokens):
        return None
    return fields


# ──────────────────────────────────────────────────────────────────
# Block pass
# ──────────────────────────────────────────────────────────────────

def _describe(fields: List[AttributeField]) -> Tuple[str, str]:
    typed = [f.name for f in fields if f.defaulted_type]
    if len(fields) > 1:
        message = f"split attribute line into {len(fields)} attributes"
        if typed:
            message += f" (default type '{DEFAULT_TYPE}' added for {', '.join(typed)})"
        return ATTRIBUTE_SPLIT, message
    return ATTRIBUTE_TYPED, f"added default type '{DEFAULT_TYPE}' to attribute '{typed[0]}'"


def reconstruct_entity_blocks(
    lines: List[SourceLine],
) -> Tuple[List[SourceLine], List[RepairWarning]]:
    """Rewrite every attribute line inside entity blocks, one attribute per line."""
    result: List[SourceLine] = []
    warnings: List[RepairWarning] = []

    for source, line in zip(lines, classify_lines(texts(lines))):
        if line.kind is not LineKind.ATTRIBUTE:
            result.append(source)
            continue
        fields = reconstruct_attribute_line(line.text)
        if fields is None:
            result.append(source)
            continue
        for f in fields:
            result.append(SourceLine(source.number, line.indent + f.render()))
        kind, message = _describe(fields)
        warnings.append(RepairWarning(source.number, kind, message))

    return result, warnings
