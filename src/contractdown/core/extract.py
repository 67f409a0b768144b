import logging
import re
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TypeVar

from contractdown.core.blocks import (
    MalformedTableError,
    SectionBody,
    fields_from_table,
    read_body,
    schema_from_body,
)
from contractdown.core.errors import ContractExtractionError
from contractdown.core.headings import heading_events, read_front_matter, tokenize
from contractdown.core.sections import build_section_tree
from contractdown.models import EndpointDescriptor, ParsedDocument, Schema, Section, TypeSchema, Verb

logger = logging.getLogger(__name__)

_API_TITLES = ("api", "rest api", "endpoints")
_TYPES_TITLES = ("types",)

_URL_PARAMS_TITLES = ("url params", "url parameters", "params", "path params", "path parameters")
_BODY_TITLES = ("body", "request", "request body")
_RESULT_TITLES = ("result", "response", "returns")

_T = TypeVar("_T")

_PLACEHOLDER = re.compile(r"\{([^}/]+)\}|:([A-Za-z_][A-Za-z0-9_]*)")


class _IssueCollector:
    """Accumulates extraction issues; raises them together in strict mode."""

    def __init__(self, strict: bool) -> None:
        self.strict = strict
        self.issues: list[str] = []

    def report(self, message: str) -> None:
        self.issues.append(message)
        if not self.strict:
            logger.warning("%s", message)

    def finish(self) -> None:
        if self.strict and self.issues:
            raise ContractExtractionError(self.issues)


def _top_level(root: Section, titles: tuple[str, ...]) -> list[Section]:
    return [s for s in root.children if s.title.strip().lower() in titles]


def _find_child(section: Section, titles: tuple[str, ...]) -> Section | None:
    for child in section.children:
        if child.title.strip().lower() in titles:
            return child
    return None


def _entries(root: Section, titles: tuple[str, ...]) -> list[Section]:
    entries: list[Section] = []
    for group in _top_level(root, titles):
        entries.extend(group.children)
    return entries


def _schema_for(
    section: Section | None, lines: Sequence[str], where: str, issues: _IssueCollector
) -> Schema | None:
    if section is None or section.source_node is None:
        return Schema()
    try:
        return schema_from_body(read_body(lines, section.source_node))
    except MalformedTableError as exc:
        issues.report(f"{where}: {exc}")
        return None


def _description(body: SectionBody) -> str:
    if "description" in body.properties:
        return body.properties["description"]
    return "\n\n".join(body.prose)


def _endpoint_from_section(
    section: Section, lines: Sequence[str], issues: _IssueCollector
) -> EndpointDescriptor | None:
    name = section.title.strip()
    if not name or section.source_node is None:
        issues.report("endpoint heading without a name")
        return None
    where = f"endpoint '{name}'"
    body = read_body(lines, section.source_node)

    method = body.properties.get("method") or body.properties.get("verb")
    if not method:
        issues.report(f"{where}: missing 'Method:' line")
        return None
    try:
        verb = Verb(method.strip().upper())
    except ValueError:
        issues.report(f"{where}: unsupported verb '{method}'")
        return None

    url_params = _schema_for(_find_child(section, _URL_PARAMS_TITLES), lines, f"{where} url params", issues)
    request_body = _schema_for(_find_child(section, _BODY_TITLES), lines, f"{where} body", issues)
    result = _schema_for(_find_child(section, _RESULT_TITLES), lines, f"{where} result", issues)
    if url_params is None or request_body is None or result is None:
        return None

    declared = set(url_params.field_names())
    for match in _PLACEHOLDER.finditer(name):
        placeholder = match.group(1) or match.group(2)
        if placeholder not in declared:
            issues.report(f"{where}: path placeholder '{placeholder}' is not declared in URL Params")
            return None

    return EndpointDescriptor(
        name=name,
        verb=verb,
        description=_description(body),
        url_params_schema=url_params,
        body_schema=request_body,
        result_schema=result,
    )


def _type_from_section(section: Section, lines: Sequence[str], issues: _IssueCollector) -> TypeSchema | None:
    name = section.title.strip()
    if not name or section.source_node is None:
        issues.report("type heading without a name")
        return None
    body = read_body(lines, section.source_node)
    try:
        fields = fields_from_table(body.tables[0]) if body.tables else []
    except MalformedTableError as exc:
        issues.report(f"type '{name}': {exc}")
        return None
    return TypeSchema(name=name, raw_definition=body.text, fields=fields)


def _collect(
    root: Section,
    lines: Sequence[str],
    titles: tuple[str, ...],
    kind: str,
    build: Callable[[Section, Sequence[str], _IssueCollector], _T | None],
    issues: _IssueCollector,
) -> list[_T]:
    """Build one record per entry section; the first of several same-named entries wins."""
    records: list[_T] = []
    seen: set[str] = set()
    for section in _entries(root, titles):
        name = section.title.strip()
        if name and name in seen:
            issues.report(f"duplicate {kind} '{name}'")
            continue
        record = build(section, lines, issues)
        if record is not None:
            seen.add(name)
            records.append(record)
    return records


def _endpoints(root: Section, lines: Sequence[str], issues: _IssueCollector) -> list[EndpointDescriptor]:
    return _collect(root, lines, _API_TITLES, "endpoint", _endpoint_from_section, issues)


def _types(root: Section, lines: Sequence[str], issues: _IssueCollector) -> dict[str, TypeSchema]:
    return {t.name: t for t in _collect(root, lines, _TYPES_TITLES, "type", _type_from_section, issues)}


def extract_endpoints(root: Section, raw: str, *, strict: bool = True) -> list[EndpointDescriptor]:
    """Collect one endpoint per child of every top-level ``API`` section.

    In strict mode all issues are raised together as a ``ContractExtractionError``;
    otherwise they are logged, malformed entries are dropped and the first of
    several same-named entries wins.
    """
    issues = _IssueCollector(strict)
    endpoints = _endpoints(root, raw.splitlines(keepends=True), issues)
    issues.finish()
    return endpoints


def extract_types(root: Section, raw: str, *, strict: bool = True) -> dict[str, TypeSchema]:
    """Collect one type per child of every top-level ``Types`` section."""
    issues = _IssueCollector(strict)
    types = _types(root, raw.splitlines(keepends=True), issues)
    issues.finish()
    return types


def parse_document(raw: str, *, strict: bool = True) -> ParsedDocument:
    tokens = tokenize(raw)
    root = build_section_tree(heading_events(tokens))
    lines = raw.splitlines(keepends=True)

    issues = _IssueCollector(strict)
    endpoints = _endpoints(root, lines, issues)
    types = _types(root, lines, issues)
    issues.finish()

    logger.debug("Parsed %d endpoint(s) and %d type(s)", len(endpoints), len(types))
    return ParsedDocument(metadata=read_front_matter(tokens), root=root, endpoints=endpoints, types=types)


def extract_contracts(raw: str, *, strict: bool = True) -> tuple[list[EndpointDescriptor], dict[str, TypeSchema]]:
    document = parse_document(raw, strict=strict)
    return document.endpoints, document.types


def load_document(path: str | Path, *, strict: bool = True) -> ParsedDocument:
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"Document not found: {path}") from None
    return parse_document(raw, strict=strict)
