import os
import sys
import asyncio
import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from .resources import resources_cli

console = Console()


@click.group()
@click.version_option(version="1.0.0", prog_name="scimcore")
def cli():
    """scimcore - SCIM 2.0 provisioning service CLI"""
    pass


cli.add_command(resources_cli, name="resources")


@cli.group()
def run():
    """Run the SCIM server"""
    pass


@run.command()
@click.option('--host', '-h', default='0.0.0.0', help='Host to bind to')
@click.option('--port', '-p', default=8000, type=int, help='Port to bind to')
@click.option('--reload/--no-reload', default=True, help='Enable auto-reload')
def dev(host: str, port: int, reload: bool):
    """Run server in development mode"""
    from scimcore.config import settings

    console.print(Panel.fit(
        f"[bold green]Starting scimcore Development Server[/bold green]\n\n"
        f"[yellow]Host:[/yellow] {host}:{port}\n"
        f"[yellow]Docs:[/yellow] http://localhost:{port}/docs\n"
        f"[yellow]API:[/yellow]  http://localhost:{port}{settings.api_prefix}\n"
        f"[yellow]Backend:[/yellow] {settings.repository_backend}\n\n"
        f"[dim]Press CTRL+C to stop[/dim]",
        title="scimcore Dev Server"
    ))

    import uvicorn
    uvicorn.run(
        "scimcore.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
        access_log=True
    )


@run.command()
@click.option('--host', '-h', default='0.0.0.0', help='Host to bind to')
@click.option('--port', '-p', default=8000, type=int, help='Port to bind to')
@click.option('--workers', '-w', default=1, type=int, help='Number of worker processes')
def prod(host: str, port: int, workers: int):
    """Run server in production mode"""
    from scimcore.config import settings

    if workers > 1 and settings.repository_backend == "memory":
        console.print("[yellow]⚠[/yellow]  The memory backend is per process; workers will not share resources")

    console.print(Panel.fit(
        f"[bold green]Starting scimcore Production Server[/bold green]\n\n"
        f"[yellow]Host:[/yellow] {host}:{port}\n"
        f"[yellow]Workers:[/yellow] {workers}\n"
        f"[yellow]API:[/yellow]  http://{host}:{port}{settings.api_prefix}\n\n"
        f"[dim]Press CTRL+C to stop[/dim]",
        title="scimcore Production Server"
    ))

    import uvicorn
    uvicorn.run(
        "scimcore.main:app",
        host=host,
        port=port,
        workers=workers,
        log_level="info",
        access_log=True
    )


@cli.command()
@click.option('--show-values', is_flag=True, help='Show actual configuration values')
def config(show_values: bool):
    """Display current configuration"""
    from scimcore.config import settings

    console.print("\n[bold]scimcore Configuration[/bold]\n")

    env_file = os.path.join(os.getcwd(), '.env')
    if os.path.exists(env_file):
        console.print(f"[green]✓[/green] Environment file: {env_file}")
    else:
        console.print(f"[yellow]⚠[/yellow]  No .env file found at: {env_file}")

    table = Table(title="Server Information")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    base_url = f"http://localhost:{settings.port}" if settings.host in ['0.0.0.0', '127.0.0.1'] else f"http://{settings.host}:{settings.port}"

    table.add_row("SCIM Base URL", f"{base_url}{settings.api_prefix}")
    table.add_row("Environment", settings.environment)
    table.add_row("Repository Backend", settings.repository_backend)
    table.add_row("Debug Mode", "On" if settings.debug else "Off")

    console.print(table)

    if show_values:
        console.print("\n[bold]Detailed Configuration:[/bold]\n")

        config_table = Table()
        config_table.add_column("Setting", style="cyan")
        config_table.add_column("Value")
        config_table.add_column("Description", style="dim")

        settings_groups = {
            "Server": [
                ("host", settings.host, "Server host"),
                ("port", settings.port, "Server port"),
                ("api_prefix", settings.api_prefix, "API route prefix"),
            ],
            "Persistence": [
                ("repository_backend", settings.repository_backend, "Resource store"),
                ("database_url", settings.database_url, "Tortoise connection"),
                ("repository_timeout", settings.repository_timeout, "Seconds per repository call"),
            ],
            "Application": [
                ("app_name", settings.app_name, "Application name"),
                ("environment", settings.environment, "Current environment"),
                ("debug", settings.debug, "Debug mode"),
                ("log_level", settings.log_level, "Logging level"),
            ],
            "Limits": [
                ("max_page_size", settings.max_page_size, "Largest count per query"),
            ],
        }

        for group_name, group_settings in settings_groups.items():
            config_table.add_row(f"[bold]{group_name}[/bold]", "", "")
            for setting_name, value, desc in group_settings:
                config_table.add_row(f"  {setting_name}", str(value), desc)

        console.print(config_table)

    console.print("\n[dim]Tip: Use --show-values to see all configuration values[/dim]")
    console.print("[dim]Tip: Create a .env file (SCIM_ prefixed variables) to override default settings[/dim]\n")


@cli.group()
def db():
    """Database management commands"""
    pass


@db.command()
def init():
    """Initialize the database schema"""
    async def _init():
        from tortoise import Tortoise
        from tortoise.exceptions import BaseORMException
        from scimcore.config import settings

        console.print("[yellow]Initializing database...[/yellow]")

        try:
            await Tortoise.init(config=settings.tortoise_orm_config)
            await Tortoise.generate_schemas()

            console.print("[green]✓ Database initialized successfully![/green]")
            console.print(f"[dim]Connected to: {settings.database_url.split('@')[1] if '@' in settings.database_url else settings.database_url}[/dim]")

        except (BaseORMException, OSError) as e:
            console.print(f"[red]✗ Failed to initialize database: {e}[/red]")
            sys.exit(1)
        finally:
            await Tortoise.close_connections()

    asyncio.run(_init())


@db.command()
def status():
    """Check database connection status"""
    async def _status():
        from tortoise import Tortoise
        from tortoise.exceptions import BaseORMException
        from scimcore.config import settings
        from scimcore.models import ResourceRecord
        from scimcore.schemas import ResourceType

        console.print("[yellow]Checking database connection...[/yellow]")

        try:
            await Tortoise.init(config=settings.tortoise_orm_config)

            table = Table(title="Database Status")
            table.add_column("Resource", style="cyan")
            table.add_column("Count", style="green")

            for resource_type in ResourceType:
                count = await ResourceRecord.filter(resource_type=resource_type.value).count()
                table.add_row(f"{resource_type.value}s", str(count))

            console.print("[green]✓ Database connection successful![/green]\n")
            console.print(table)

        except (BaseORMException, OSError) as e:
            console.print(f"[red]✗ Database connection failed: {e}[/red]")
            console.print("[yellow]Check SCIM_DATABASE_URL in .env[/yellow]")
            sys.exit(1)
        finally:
            await Tortoise.close_connections()

    asyncio.run(_status())


if __name__ == '__main__':
    cli()
