import asyncio
from typing import Annotated

import typer
from rich.console import Console

from runbook_studio.core.content import ContentCache
from runbook_studio.core.ports.remote import RemoteContentStore
from runbook_studio.settings import Settings, load_settings

console = Console()


def _get_store(settings: Settings) -> RemoteContentStore:
    from runbook_studio.remote.http_store import HttpRunbookStore

    return HttpRunbookStore.from_settings(settings)


def fetch(
    document_id: Annotated[str, typer.Argument(help="Runbook id (GUID).")],
    published: Annotated[bool, typer.Option("--published", help="Fetch the published version.")] = False,
    force: Annotated[bool, typer.Option("--force", help="Ignore cached content.")] = False,
) -> None:
    """Print the content of a remote runbook."""
    settings = load_settings()
    try:
        store = _get_store(settings)
    except ValueError as e:
        console.print(str(e), style="red", markup=False, highlight=False)
        raise typer.Exit(code=1) from e
    cache = ContentCache(store, document_id, freshness_window=settings.freshness_window)

    async def _run() -> str:
        try:
            return await cache.get_content(force_download=force, want_published=published)
        finally:
            close = getattr(store, "close", None)
            if close is not None:
                close()

    content = asyncio.run(_run())
    if not content:
        console.print(f"[yellow]No content available for runbook {document_id}[/yellow]")
        raise typer.Exit(code=1)
    console.print(content, markup=False, highlight=False)
