"""Interpretation of the block content that sits under a single heading."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from markdown_it import MarkdownIt
from markdown_it.token import Token

from contractdown.core.headings import inline_text
from contractdown.models import FieldSpec, HeadingEvent, Schema

_PROPERTY_LINE = re.compile(r"^\s*([A-Za-z][A-Za-z _-]*?)\s*:\s*(.*?)\s*$")
PROPERTY_KEYS = frozenset({"method", "verb", "description"})

_NAME_COLUMNS = ("name", "field", "param", "parameter")
_TYPE_COLUMNS = ("type",)
_DESCRIPTION_COLUMNS = ("description", "desc", "comment", "notes")
_REQUIRED_COLUMNS = ("required", "optional")

_TRUTHY = {"yes", "y", "true", "required", "x", "✓"}
_FALSY = {"no", "n", "false", "optional", "-", ""}


@dataclass
class Table:
    headers: list[str]
    rows: list[list[str]]


@dataclass
class Fence:
    info: str
    content: str


@dataclass
class SectionBody:
    text: str
    properties: dict[str, str] = field(default_factory=dict)
    prose: list[str] = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)
    fences: list[Fence] = field(default_factory=list)


class MalformedTableError(ValueError):
    pass


def _body_parser() -> MarkdownIt:
    # Front matter is deliberately not enabled: a body starting with ``---``
    # is a thematic break, not metadata.
    return MarkdownIt("commonmark").enable("table")


def body_text(lines: Sequence[str], heading: HeadingEvent) -> str:
    """Return the Markdown between ``heading`` and the next document-level heading."""
    rest = "".join(lines[heading.source_span.end_line :])
    end = len(lines) - heading.source_span.end_line
    for token in _body_parser().parse(rest):
        if token.type == "heading_open" and token.level == 0 and token.map:
            end = token.map[0]
            break
    return "".join(lines[heading.source_span.end_line : heading.source_span.end_line + end])


def read_body(lines: Sequence[str], heading: HeadingEvent) -> SectionBody:
    text = body_text(lines, heading)
    body = SectionBody(text=text.strip())
    tokens = _body_parser().parse(text)

    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.level != 0:
            i += 1
            continue
        if token.type == "paragraph_open":
            _read_paragraph(tokens[i + 1], body)
            i += 3
        elif token.type == "table_open":
            table, i = _read_table(tokens, i)
            body.tables.append(table)
        elif token.type == "fence":
            body.fences.append(Fence(info=token.info.strip(), content=token.content))
            i += 1
        else:
            i += 1
    return body


def _read_paragraph(inline: Token, body: SectionBody) -> None:
    raw_lines = [line for line in inline.content.splitlines() if line.strip()]
    matches = [_PROPERTY_LINE.match(line) for line in raw_lines]
    keys = [m.group(1).strip().lower() if m else None for m in matches]
    # A paragraph is a property block only when every line names a known key.
    if raw_lines and all(key in PROPERTY_KEYS for key in keys):
        for key, match in zip(keys, matches):
            assert key is not None and match is not None
            body.properties.setdefault(key, match.group(2))
        return
    text = inline_text(inline)
    if text:
        body.prose.append(text)


def _read_table(tokens: Sequence[Token], start: int) -> tuple[Table, int]:
    headers: list[str] = []
    rows: list[list[str]] = []
    current: list[str] | None = None
    in_head = False
    i = start + 1
    while i < len(tokens) and tokens[i].type != "table_close":
        token = tokens[i]
        if token.type == "thead_open":
            in_head = True
        elif token.type == "thead_close":
            in_head = False
        elif token.type == "tr_open" and not in_head:
            current = []
        elif token.type == "tr_close" and current is not None:
            rows.append(current)
            current = None
        elif token.type == "inline":
            cell = inline_text(token)
            if in_head:
                headers.append(cell)
            elif current is not None:
                current.append(cell)
        i += 1
    return Table(headers=headers, rows=rows), i + 1


def _column(headers: list[str], candidates: tuple[str, ...]) -> int | None:
    for idx, header in enumerate(headers):
        if header.strip().lower() in candidates:
            return idx
    return None


def _parse_required(value: str, column_name: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUTHY:
        flag = True
    elif normalized in _FALSY:
        flag = False
    else:
        raise MalformedTableError(f"unrecognized value '{value}' in column '{column_name}'")
    return not flag if column_name == "optional" else flag


def fields_from_table(table: Table) -> list[FieldSpec]:
    """Interpret a field table; ``Name`` and ``Type`` columns are mandatory."""
    headers = [h.strip().lower() for h in table.headers]
    name_col = _column(headers, _NAME_COLUMNS)
    type_col = _column(headers, _TYPE_COLUMNS)
    if name_col is None or type_col is None:
        raise MalformedTableError(f"field table needs Name and Type columns, got {table.headers}")
    desc_col = _column(headers, _DESCRIPTION_COLUMNS)
    req_col = _column(headers, _REQUIRED_COLUMNS)

    def cell(row: list[str], idx: int | None) -> str:
        if idx is None or idx >= len(row):
            return ""
        return row[idx]

    specs: list[FieldSpec] = []
    for row in table.rows:
        name = cell(row, name_col)
        if not name:
            continue
        required = True
        if req_col is not None:
            required = _parse_required(cell(row, req_col), headers[req_col])
        specs.append(
            FieldSpec(
                name=name,
                type=cell(row, type_col),
                description=cell(row, desc_col),
                required=required,
            )
        )
    return specs


def schema_from_body(body: SectionBody) -> Schema:
    """Build a schema from the first field table and first fenced block of a body."""
    fields = fields_from_table(body.tables[0]) if body.tables else []
    if body.fences:
        fence = body.fences[0]
        language = fence.info.split()[0] if fence.info else None
        return Schema(fields=fields, raw=fence.content, language=language)
    return Schema(fields=fields)
