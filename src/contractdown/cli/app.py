import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from contractdown.cli.extract import descriptors, extract
from contractdown.cli.serve import serve
from contractdown.cli.watch import watch
from contractdown.config import get_log_level

app = typer.Typer(
    name="contractdown",
    help="contractdown CLI: extract API contracts from Markdown and serve them.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _configure(
    log_level: Annotated[str | None, typer.Option("--log-level", help="Logging level (default from env).")] = None,
) -> None:
    logging.basicConfig(
        level=(log_level or get_log_level()).upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


app.command("extract")(extract)
app.command("descriptors")(descriptors)
app.command("watch")(watch)
app.command("serve")(serve)


def main() -> None:
    app()
