"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdbook_mermaid.cli.commands import main_callback, rewrite_cmd, supports_cmd


app = typer.Typer(
    name="mdbook-mermaid",
    add_completion=False,
    help="mdBook preprocessor that turns mermaid code blocks into <pre class=\"mermaid\"> elements",
)

app.callback(invoke_without_command=True)(main_callback)
app.command(name="supports")(supports_cmd)
app.command(name="rewrite")(rewrite_cmd)
