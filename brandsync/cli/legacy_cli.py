# brandsync/cli/legacy_cli.py
import typer
from typing_extensions import Annotated

from .utils_cli import build_token_client, close_token_client, echo_json, parse_json_option, run_async

app = typer.Typer(
    name="legacy",
    help="Manage a tenant's legacy flat settings.",
    no_args_is_help=True
)


@app.command("import")
def import_fields(
    tenant_id: Annotated[str, typer.Argument(help="The tenant to seed.")],
    fields_json_str: Annotated[
        str,
        typer.Option(
            "--fields-json",
            help="JSON object of flat fields (e.g. '{\"primary_color\": \"#111111\"}'). REPLACES existing fields."
        )
    ],
):
    """Replace a tenant's legacy fields and signal its surfaces."""
    fields = parse_json_option(fields_json_str, "legacy fields")
    if not isinstance(fields, dict):
        typer.secho("Error: --fields-json must be a JSON object.", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    async def _import():
        client = await build_token_client()
        try:
            stored = await client.store.upsert_legacy_fields(tenant_id, fields)
            await client.notifier.publish(tenant_id)
        finally:
            await close_token_client(client)
        return stored

    stored = run_async(_import())
    echo_json(stored.model_dump(mode="json"))


@app.command("show")
def show_fields(
    tenant_id: Annotated[str, typer.Argument(help="The tenant to inspect.")],
):
    """Print a tenant's legacy fields."""
    async def _show():
        client = await build_token_client()
        try:
            return await client.fetch_legacy_fields(tenant_id)
        finally:
            await close_token_client(client)

    echo_json(run_async(_show()).model_dump(mode="json"))


if __name__ == "__main__":
    app()
