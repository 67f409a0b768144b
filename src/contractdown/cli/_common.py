from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console

from contractdown.config import get_strict
from contractdown.core.errors import BindingError, ContractExtractionError

err_console = Console(stderr=True)


def resolve_strict(lenient: bool) -> bool:
    return get_strict() and not lenient


@contextmanager
def fail_on_document_errors() -> Iterator[None]:
    """Turn document and binding errors into a readable message and exit code 1."""
    try:
        yield
    except ContractExtractionError as exc:
        err_console.print("[red]Contract issues:[/red]")
        for issue in exc.issues:
            err_console.print(f"  - {issue}")
        raise typer.Exit(code=1) from None
    except (FileNotFoundError, ImportError, BindingError, ValueError) as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from None
