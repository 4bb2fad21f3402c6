from __future__ import annotations

import typer

from odds_feed.cli.names import app as names_app

app = typer.Typer(no_args_is_help=True)
app.add_typer(names_app, name="names")
