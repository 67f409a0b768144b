import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from contractdown.api.app import load_handlers
from contractdown.api.registry import descriptors_from_endpoints, registry_from_endpoints
from contractdown.cli._common import fail_on_document_errors, resolve_strict
from contractdown.core.extract import load_document
from contractdown.models import ParsedDocument, Schema

console = Console()


def _describe_schema(schema: Schema) -> str:
    if schema.is_empty:
        return "-"
    parts = [f"{f.name}: {f.type}" + ("" if f.required else "?") for f in schema.fields]
    if schema.raw is not None:
        parts.append(f"<{schema.language or 'raw'} block>")
    return ", ".join(parts)


def _render(document: ParsedDocument) -> None:
    endpoints = Table(title="Endpoints")
    for header in ("name", "verb", "url params", "body", "result"):
        endpoints.add_column(header)
    for e in document.endpoints:
        endpoints.add_row(
            e.name,
            e.verb.value,
            _describe_schema(e.url_params_schema),
            _describe_schema(e.body_schema),
            _describe_schema(e.result_schema),
        )
    console.print(endpoints)

    types = Table(title="Types")
    types.add_column("name")
    types.add_column("fields")
    for t in document.types.values():
        types.add_row(t.name, ", ".join(f"{f.name}: {f.type}" for f in t.fields) or "-")
    console.print(types)
    console.print(f"({len(document.endpoints)} endpoints, {len(document.types)} types)")


def extract(
    document: Annotated[Path, typer.Argument(help="Markdown contract document.")],
    as_json: Annotated[bool, typer.Option("--json", help="Emit JSON instead of tables.")] = False,
    lenient: Annotated[bool, typer.Option("--lenient", help="Log contract issues instead of failing.")] = False,
) -> None:
    """Extract endpoints and types from a contract document."""
    with fail_on_document_errors():
        parsed = load_document(document, strict=resolve_strict(lenient))
    if as_json:
        typer.echo(json.dumps(parsed.model_dump(mode="json", exclude={"root"}), indent=2))
    else:
        _render(parsed)


def descriptors(
    document: Annotated[Path, typer.Argument(help="Markdown contract document.")],
    handlers: Annotated[
        str | None, typer.Option(help="'module:attribute' mapping endpoint names to handlers; keys output by handler.")
    ] = None,
    output: Annotated[Path | None, typer.Option(help="Write the JSON to this file instead of stdout.")] = None,
    lenient: Annotated[bool, typer.Option("--lenient", help="Log contract issues instead of failing.")] = False,
) -> None:
    """Emit the {name, verb} descriptors of a contract document as JSON."""
    with fail_on_document_errors():
        parsed = load_document(document, strict=resolve_strict(lenient))
        if handlers is None:
            data: object = [{"name": d.name, "verb": d.verb} for d in descriptors_from_endpoints(parsed.endpoints)]
        else:
            data = registry_from_endpoints(parsed.endpoints, load_handlers(handlers)).to_json()

    text = json.dumps(data, indent=2)
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
        console.print(f"[green]Wrote[/green] descriptors to {output}")
