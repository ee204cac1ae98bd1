import asyncio
from functools import wraps
from typing import Optional
import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from tortoise import Tortoise

from ..config import settings
from ..exceptions import SCIMException
from ..repositories import TortoiseRepository
from ..schemas import (
    Group, PaginationParameters, QueryParameters, ResourceRetrievalParameters, ResourceType, SCIMSchemaUri, User
)
from ..services import GroupProvider, UserProvider
from ..utils import SCIMFilterParser


console = Console()


async def init_db():
    """Initialize database connection for CLI commands."""
    await Tortoise.init(config=settings.tortoise_orm_config)


async def close_db():
    """Close database connection."""
    await Tortoise.close_connections()


def async_command(f):
    """Decorator to run async commands."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        async def run():
            try:
                await init_db()
                return await f(*args, **kwargs)
            finally:
                await close_db()

        return asyncio.run(run())

    return wrapper


def _provider(resource_type: str):
    if resource_type == ResourceType.GROUP.value:
        return GroupProvider(TortoiseRepository(ResourceType.GROUP, Group)), SCIMSchemaUri.GROUP
    return UserProvider(TortoiseRepository(ResourceType.USER, User)), SCIMSchemaUri.USER


@click.group("resources")
def resources_cli():
    """Inspect provisioned users and groups."""
    pass


@resources_cli.command("list")
@click.option("--type", "-t", "resource_type", type=click.Choice([t.value for t in ResourceType]), default=ResourceType.USER.value, help="Resource type to list")
@click.option("--filter", "-f", "filter_text", help='SCIM filter, e.g. \'userName eq "bjensen"\'')
@click.option("--count", "-c", type=click.IntRange(min=0), help="Return at most this many resources")
@async_command
async def list_resources(resource_type: str, filter_text: Optional[str], count: Optional[int]):
    """List stored resources, optionally filtered."""
    provider, schema = _provider(resource_type)

    try:
        found = await provider.query(QueryParameters(
            alternate_filters=SCIMFilterParser().parse(filter_text),
            schema_identifier=schema.value,
            pagination=PaginationParameters(count=count) if count is not None else None,
        ))
    except SCIMException as e:
        console.print(f"[red]✗[/red] Error: {e.detail}")
        raise click.Abort()

    if not found:
        console.print(f"[yellow]No {resource_type} resources found.[/yellow]")
        return

    table = Table(title=f"{resource_type} resources")
    table.add_column("ID", style="cyan")
    table.add_column(provider.natural_key_attribute, style="green")
    table.add_column("Last Modified", style="dim")
    if resource_type == ResourceType.USER.value:
        table.add_column("Active", style="yellow")
    else:
        table.add_column("Members", style="yellow")

    for resource in found:
        last_modified = resource.meta.last_modified.strftime("%Y-%m-%d %H:%M:%S") if resource.meta.last_modified else "-"
        extra = ("✓" if resource.active else "✗") if resource_type == ResourceType.USER.value else str(len(resource.members))
        table.add_row(resource.id, resource.natural_key or "-", last_modified, extra)

    console.print(table)
    console.print(f"\n[dim]Showing {len(found)} {resource_type} resource(s)[/dim]")


@resources_cli.command("show")
@click.argument("resource_id")
@click.option("--type", "-t", "resource_type", type=click.Choice([t.value for t in ResourceType]), default=ResourceType.USER.value, help="Resource type")
@async_command
async def show_resource(resource_id: str, resource_type: str):
    """Show one resource as SCIM JSON."""
    provider, schema = _provider(resource_type)

    try:
        resource = await provider.retrieve(ResourceRetrievalParameters(schema_identifier=schema.value, resource_identifier=resource_id))
    except SCIMException as e:
        console.print(f"[red]✗[/red] Error: {e.detail}")
        raise click.Abort()

    console.print(Panel(
        resource.model_dump_json(by_alias=True, exclude_none=True, indent=2),
        title=f"{resource_type} {resource_id}",
        border_style="green"
    ))
