from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from contractdown.cli._common import fail_on_document_errors, resolve_strict
from contractdown.config import get_host, get_port

console = Console()


def serve(
    document: Annotated[Path, typer.Argument(help="Markdown contract document.")],
    handlers: Annotated[str, typer.Option(help="'module:attribute' mapping endpoint names to handlers.")],
    host: Annotated[str | None, typer.Option(help="Bind address (default from env).")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port (default from env).")] = None,
    descriptors: Annotated[
        Path | None, typer.Option(help="Descriptor JSON written by 'contractdown descriptors --handlers'.")
    ] = None,
    lenient: Annotated[bool, typer.Option("--lenient", help="Log contract issues instead of failing.")] = False,
) -> None:
    """Bind the handlers described by a contract document and start the API server."""
    import uvicorn

    from contractdown.api.app import create_app, load_handlers
    from contractdown.api.registry import DescriptorRegistry

    with fail_on_document_errors():
        registry = DescriptorRegistry.load(descriptors) if descriptors is not None else None
        app = create_app(document, load_handlers(handlers), strict=resolve_strict(lenient), registry=registry)

    bind_host = host or get_host()
    bind_port = port if port is not None else get_port()
    console.print(f"[green]Starting API server on {bind_host}:{bind_port}[/green]")
    for route in app.state.bound_routes:
        console.print(f"  {route.verb:<6} {route.path}")
    uvicorn.run(app, host=bind_host, port=bind_port)
