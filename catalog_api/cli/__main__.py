"""Catalog CLI - Main Entry Point.

Commands:
    serve  - Run the catalog under uvicorn
    key    - Print the canonical storage key for path segments
    routes - Show which route shape a request path resolves to
"""

import dataclasses
import os
import sys
from typing import Optional, Tuple

import click

from catalog_api import __version__
from catalog_api.app import ENV_FILE_VARIABLE, configure_logging, create_app
from catalog_api.config import ConfigLoader
from catalog_api.faults import ConfigFault
from catalog_api.keys import KEY_ROOT, join_key
from catalog_api.routing import resolve_route

from . import __cli_name__
from .colors import error, info, kv, success


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
def cli():
    """Read-only HTTP edge for the versioned artifact catalog."""


# ============================================================================
# Commands
# ============================================================================

@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind host")
@click.option("--port", default=8787, type=int, show_default=True, help="Bind port")
@click.option("--workers", default=1, type=int, show_default=True, help="Number of worker processes")
@click.option("--env-file", type=click.Path(dir_okay=False), help="Load CATALOG_* settings from a .env file")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Override CATALOG_LOG_LEVEL")
def serve(host: str, port: int, workers: int, env_file: Optional[str], log_level: Optional[str]):
    """
    Start the catalog server.

    Examples:
      catalog-api serve
      catalog-api serve --env-file .env --port 8080 --workers 4
    """
    import uvicorn

    overrides = {"log_level": log_level.upper()} if log_level else None
    try:
        config = ConfigLoader.load(env_file=env_file, overrides=overrides).to_config()
    except ConfigFault as e:
        error(f"Invalid configuration: {e.message}")
        sys.exit(1)

    configure_logging(config.log_level)
    info(f"Starting {config.worker_name} on http://{host}:{port}")
    kv("Blob store", config.blob_backend)
    kv("KV store", config.kv_backend)
    kv("Ingest", "enabled" if config.ingest_enabled else "disabled")

    if workers > 1:
        # Each worker process rebuilds the app from the environment.
        if env_file:
            os.environ[ENV_FILE_VARIABLE] = env_file
        if log_level:
            os.environ["CATALOG_LOG_LEVEL"] = config.log_level
        uvicorn.run(
            "catalog_api.app:app_from_env",
            factory=True,
            host=host,
            port=port,
            workers=workers,
            log_level=config.log_level.lower(),
            access_log=False,
        )
    else:
        uvicorn.run(
            create_app(config),
            host=host,
            port=port,
            log_level=config.log_level.lower(),
            access_log=False,
        )


@cli.command("key")
@click.argument("segments", nargs=-1, required=True)
@click.option("--root", default=KEY_ROOT, show_default=True, help="Key namespace root")
def key(segments: Tuple[str, ...], root: str):
    """
    Print the canonical storage key for SEGMENTS.

    Examples:
      catalog-api key skills my-skill 1.0.0 SKILL.md
    """
    click.echo(join_key(root, *segments))


@cli.command("routes")
@click.argument("path")
@click.option("--method", "-X", default="GET", show_default=True, help="HTTP method")
@click.option("--legacy-prefix", default="/catalog", show_default=True, help="Legacy mount prefix")
def routes(path: str, method: str, legacy_prefix: str):
    """
    Show the route shape PATH resolves to.

    Examples:
      catalog-api routes /skills/registry.json
      catalog-api routes /catalog/skills/my-skill/latest/SKILL.md
    """
    normalized, route = resolve_route(path, method.upper(), legacy_prefix)
    success(type(route).__name__)
    kv("api path", normalized.api_path)
    kv("legacy", str(normalized.legacy).lower())
    for name, value in dataclasses.asdict(route).items():
        kv(name, value)


def main():
    """Entry point for `catalog-api` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
