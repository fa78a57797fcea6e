"""Command line interface for Schema Builder."""

import asyncio

import click
import uvicorn

from schemabuilder import __version__
from schemabuilder.core.config import get_settings
from schemabuilder.core.database import Database
from schemabuilder.core.logging import get_logger, setup_logging
from schemabuilder.services.users import UserService

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__)
def main():
    """Schema Builder - visual database schema designer backend."""
    setup_logging(get_settings())


@main.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.option("--workers", default=None, type=int, help="Number of worker processes")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host, port, workers, reload: bool):
    """Start the API server."""
    settings = get_settings()
    host = host or settings.app.host
    port = port or settings.app.port
    workers = workers or settings.app.workers
    logger.info("Starting Schema Builder server", host=host, port=port, workers=workers, reload=reload)

    uvicorn.run(
        "schemabuilder.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        workers=workers if not reload else 1,
        reload=reload,
        log_level=settings.logging.level.lower(),
    )


@main.command()
@click.option("--concurrency", default=2, help="Number of worker processes")
@click.option("--loglevel", default="info", help="Worker log level")
def worker(concurrency: int, loglevel: str):
    """Start the background email worker."""
    from schemabuilder.tasks.celery_app import celery_app

    celery_app.worker_main([
        "worker",
        f"--concurrency={concurrency}",
        f"--loglevel={loglevel}",
        "--queues=email",
    ])


@main.command("init-db")
def init_db():
    """Connect to the document store and create indexes."""
    settings = get_settings()
    click.echo(f"Initializing database '{settings.database.name}'...")

    async def _init():
        database = Database(settings.database)
        try:
            await database.connect()
        finally:
            await database.close()

    asyncio.run(_init())
    click.echo("Database initialized successfully!")


@main.command("list-users")
@click.option("--page", default=1, help="Page number")
@click.option("--limit", default=20, help="Users per page")
def list_users(page: int, limit: int):
    """List registered users."""
    settings = get_settings()

    async def _list():
        database = Database(settings.database)
        try:
            return await UserService(database.users, database.schemas).list_users(page, limit)
        finally:
            await database.close()

    result = asyncio.run(_list())
    for user in result.items:
        status = "verified" if user.is_verified else "unverified"
        click.echo(f"{user.id}  {user.email:<40} {user.username:<24} {user.provider.value:<10} {status}")
    pagination = result.pagination()
    click.echo(f"Page {pagination['page']} of {pagination['totalPages']} ({pagination['total']} users)")


@main.command("check-config")
def check_config():
    """Show the effective configuration without secrets."""
    settings = get_settings()
    click.echo(f"Environment:      {settings.app.environment}")
    click.echo(f"Database:         {settings.database.name} ({'memory' if settings.database.is_memory() else 'mongodb'})")
    click.echo(f"Auth mode:        {settings.auth.mode}")
    click.echo(f"Email backend:    {settings.email.backend}")
    click.echo(f"AI model:         {settings.ai.default_model}")
    click.echo(f"Token lifetime:   {settings.security.access_token_expire_minutes} minutes")
    click.echo(f"CORS origins:     {', '.join(settings.security.cors_origin_list())}")
    if settings.auth.mode == "federated" and not settings.auth.federated_project_id:
        click.echo("Warning: federated mode without SCHEMABUILDER_AUTH_FEDERATED_PROJECT_ID accepts any project")
    if not settings.auth.verify_local_signatures:
        click.echo("Warning: federated token signatures are not verified locally")


if __name__ == "__main__":
    main()
