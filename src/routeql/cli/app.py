import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from routeql.cli.compose import compose
from routeql.cli.transform import transform

app = typer.Typer(
    name="routeql",
    help="routeql: compose GraphQL documents and generate route loading code.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug output.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


app.command("transform")(transform)
app.command("compose")(compose)


def main() -> None:
    app()
