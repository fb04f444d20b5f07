# brandsync/cli/theme_cli.py
import typer
from typing import Optional
from typing_extensions import Annotated

from .config import BRANDSYNC_CLI_DEFAULT_SURFACE
from .utils_cli import build_token_client, close_token_client, echo_json, run_async
from ..builder.templates import BUILDER_TEMPLATES
from ..theme.defaults import DEFAULT_THEME
from ..theme.fields import SURFACE_SECTIONS
from ..theme.resolver import resolve_theme

app = typer.Typer(
    name="theme",
    help="Inspect resolved themes and builder templates.",
    no_args_is_help=True
)


@app.command("resolve")
def resolve(
    tenant_id: Annotated[str, typer.Argument(help="The tenant whose theme to resolve.")],
    surface: Annotated[
        Optional[str],
        typer.Option("--surface", help=f"Surface override key: {', '.join(SURFACE_SECTIONS)}.")
    ] = BRANDSYNC_CLI_DEFAULT_SURFACE,
):
    """Print the tenant's resolved theme as JSON."""
    if surface is not None and surface not in SURFACE_SECTIONS:
        typer.secho(f"Error: Unknown surface '{surface}'.", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    async def _resolve():
        client = await build_token_client()
        try:
            legacy, document = await client.fetch_resolution_inputs(tenant_id)
        finally:
            await close_token_client(client)
        return resolve_theme(DEFAULT_THEME, legacy, document, surface), document

    theme, document = run_async(_resolve())
    version = document.version if document is not None else "none"
    typer.secho(f"Tenant '{tenant_id}', surface {surface or 'general'}, document version {version}", err=True)
    echo_json(theme.model_dump(mode="json"))


@app.command("templates")
def list_templates():
    """List the curated builder templates."""
    for template in BUILDER_TEMPLATES:
        typer.echo(f"{template.id:<18} {template.name:<18} {template.description}")


if __name__ == "__main__":
    app()
