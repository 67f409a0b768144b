import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from contractdown.cli._common import resolve_strict
from contractdown.core.errors import ContractExtractionError
from contractdown.core.extract import load_document
from contractdown.watcher.watchfiles_adapter import MarkdownWatcher

console = Console()


def report_documents(paths: set[Path], strict: bool) -> None:
    for path in sorted(paths):
        try:
            document = load_document(path, strict=strict)
        except ContractExtractionError as exc:
            console.print(f"[red]{path}[/red]: {len(exc.issues)} issue(s)")
            for issue in exc.issues:
                console.print(f"  - {issue}")
        except FileNotFoundError:
            console.print(f"[yellow]{path}[/yellow]: removed before it could be read")
        else:
            console.print(
                f"[green]{path}[/green]: {len(document.endpoints)} endpoints, {len(document.types)} types"
            )


def watch(
    directory: Annotated[Path, typer.Argument(help="Directory holding contract documents.")] = Path("."),
    lenient: Annotated[bool, typer.Option("--lenient", help="Log contract issues instead of failing.")] = False,
) -> None:
    """Re-extract contract documents whenever they change."""
    strict = resolve_strict(lenient)

    async def _on_change(paths: set[Path]) -> None:
        report_documents(paths, strict)

    async def _run() -> None:
        watcher = MarkdownWatcher(directory, _on_change)
        await watcher.start()
        console.print(f"[green]Watching[/green] {directory} (Ctrl+C to stop)")
        try:
            await watcher.wait()
        finally:
            await watcher.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Stopped.")
