"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdsafe.cli.commands import build_cmd, check_href_cmd, render_cmd


app = typer.Typer(name="mdsafe", no_args_is_help=True, help="Markdown to sanitized HTML")

app.command(name="render")(render_cmd)
app.command(name="build")(build_cmd)
app.command(name="check-href")(check_href_cmd)
