"""Generations commands -- list, inspect and clean up cache generations.

Provides the ``fetchcache generations`` sub-command group. Generations are
read from the user cache directory; the *current* set is derived from the
resolved configuration (``cache.namespace`` and ``cache.version``).
"""

from __future__ import annotations

import asyncio

import typer

from fetchcache.output import error, info, print_table, success, warning


generations_app = typer.Typer(no_args_is_help=True)


def _resolve(ctx: typer.Context):
    from fetchcache.config import resolve_config

    obj = ctx.obj or {}
    return resolve_config(cli_origin=obj.get("origin"), cli_version=obj.get("cache_version"))


@generations_app.command("list")
def generations_list(ctx: typer.Context) -> None:
    """List persisted generations with their entry counts.

    Example::

        fetchcache generations list
        fetchcache --cache-version v2 generations list --json
    """
    from fetchcache.cache import CacheStore
    from fetchcache.config import get_cache_dir
    from fetchcache.models import GenerationSet

    config = _resolve(ctx)
    current = GenerationSet.from_config(config.cache).names
    store = CacheStore(get_cache_dir())
    try:
        stats = store.stats()
    finally:
        store.close()

    if not stats:
        info("No cache generations.")
        return
    rows = [
        [name, str(count), "yes" if name in current else "no"]
        for name, count in stats.items()
    ]
    print_table(["generation", "entries", "current"], rows, title="Cache generations")


@generations_app.command("show")
def generations_show(
    ctx: typer.Context,
    name: str = typer.Argument(help="Generation name."),
) -> None:
    """List the URLs stored in one generation."""
    from fetchcache.cache import CacheStore
    from fetchcache.config import get_cache_dir

    store = CacheStore(get_cache_dir())
    try:
        if name not in store.list_generations():
            error(f"No such generation: {name}")
            raise typer.Exit(code=2)
        urls = store.open(name).keys()
    finally:
        store.close()

    info(f"{len(urls)} entr{'y' if len(urls) == 1 else 'ies'} in {name}")
    print_table(["url"], [[u] for u in urls], title=name)


@generations_app.command("activate")
def generations_activate(ctx: typer.Context) -> None:
    """Run an install/activate cycle for the configured version.

    Deletes every generation the current version does not own. Asks for
    confirmation unless ``--force`` is active.
    """
    from fetchcache.cache import CacheStore
    from fetchcache.client import OriginClient
    from fetchcache.config import get_cache_dir
    from fetchcache.interceptor import register
    from fetchcache.registry import Registration

    config = _resolve(ctx)
    if not config.cache.enabled:
        warning("Caching is disabled (cache.enabled = false); nothing to activate.")
        raise typer.Exit()

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Delete all generations not owned by the current version?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    store = CacheStore(get_cache_dir())
    try:
        # activation never fetches, so the origin client is not opened
        interceptor = asyncio.run(
            register(Registration(), store, config.cache, OriginClient(config.request))
        )
    finally:
        store.close()

    purged = interceptor.lifecycle.last_purged
    if purged:
        success(f"Activated {interceptor.version}; deleted {', '.join(purged)}")
    else:
        success(f"Activated {interceptor.version}; nothing to delete")
