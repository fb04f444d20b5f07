# brandsync/cli/utils_cli.py
import asyncio
import json
import logging
from typing import Any, Awaitable, TypeVar

import typer

from .config import BRANDSYNC_CLI_JSON_INDENT
from ..errors import BrandSyncError
from ..notifications import ChangeNotifier, close_change_transport, get_change_transport
from ..settings import settings
from ..storage.sqlite_base import close_sqlite_db_connection
from ..store import TokenStoreClient, get_token_store

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_async(coro: Awaitable[T]) -> T:
    """
    Run a coroutine for a CLI command, turning library errors into a clean exit.
    """
    try:
        return asyncio.run(coro)
    except BrandSyncError as e:
        typer.secho(f"Error: {e.detail}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


async def build_token_client() -> TokenStoreClient:
    """Token store client wired to the configured store and change transport."""
    store = await get_token_store()
    transport = await get_change_transport()
    return TokenStoreClient(store, ChangeNotifier(transport))


async def close_token_client(client: TokenStoreClient) -> None:
    """
    Release what ``build_token_client`` opened: the change transport, the
    store and, for the sqlite backend, the shared connection. A failing step
    is logged and the rest still run.
    """
    steps = [("change transport", close_change_transport), ("token store", client.store.teardown)]
    if settings.storage_backend.lower() == "sqlite":
        steps.append(("sqlite connection", close_sqlite_db_connection))
    for name, close in steps:
        try:
            await close()
        except Exception as e:
            logger.error(f"Teardown error ({name}): {e}", exc_info=True)


def echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=BRANDSYNC_CLI_JSON_INDENT, default=str))


def parse_json_option(raw: str, option_name: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        typer.secho(f"Error: Invalid JSON string provided for {option_name}: {raw}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
