"""hotline CLI — run the gateway, file reports, inspect configuration."""

import logging
import platform
from pathlib import Path
from typing import Annotated

import httpx
import typer
import uvicorn
from rich import print as rprint
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from hotline.client import DirectClient, ProxyClient
from hotline.errors import ProxyError
from hotline.server import create_app
from hotline.settings import CONFIG_PATH, get_settings

app = typer.Typer(help="hotline: file bug reports to Linear through a key-holding gateway", no_args_is_help=True)

ConfigOpt = Annotated[
    Path | None,
    typer.Option("--config", "-c", help=f"TOML config file (default {CONFIG_PATH})"),
]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _system_info() -> list[tuple[str, str]]:
    return [("OS", platform.system().lower()), ("Arch", platform.machine())]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("serve")
def serve(
    config: ConfigOpt = None,
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Bind port")] = None,
) -> None:
    """Run the gateway."""
    settings = get_settings(config)
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
        log_level=settings.log_level.lower(),
    )


@app.command("report")
def report(
    title: Annotated[str, typer.Argument(help="Short summary of the bug")],
    description: Annotated[str | None, typer.Option("--description", "-d", help="Detailed description")] = None,
    proxy_url: Annotated[
        str | None, typer.Option("--proxy-url", envvar="HOTLINE_PROXY_URL", help="Gateway URL")
    ] = None,
    proxy_token: Annotated[
        str | None, typer.Option("--proxy-token", envvar="HOTLINE_PROXY_TOKEN", help="Bearer token for the gateway")
    ] = None,
    api_key: Annotated[
        str | None, typer.Option("--api-key", envvar="HOTLINE_API_KEY", help="Linear API key (direct mode)")
    ] = None,
    team_id: Annotated[
        str | None, typer.Option("--team-id", envvar="HOTLINE_TEAM_ID", help="Linear team ID (direct mode)")
    ] = None,
    project_id: Annotated[
        str | None, typer.Option("--project-id", envvar="HOTLINE_PROJECT_ID", help="Linear project ID (direct mode)")
    ] = None,
) -> None:
    """File a bug report, through the gateway or straight to Linear."""
    if not proxy_url and not api_key:
        rprint("[red]Provide either --proxy-url / HOTLINE_PROXY_URL or --api-key / HOTLINE_API_KEY[/red]")
        raise typer.Exit(1)
    if not proxy_url and (not team_id or not project_id):
        rprint("[red]--team-id and --project-id are required for direct mode[/red]")
        raise typer.Exit(1)

    try:
        if proxy_url:
            url = ProxyClient(proxy_url, token=proxy_token).create_issue(title, description, _system_info())
        else:
            url = DirectClient(api_key, team_id, project_id).create_issue(  # type: ignore[arg-type]
                title, description, _system_info()
            )
    except (RuntimeError, ProxyError, httpx.HTTPError) as exc:
        rprint(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    typer.echo(url)


@app.command("config-show")
def config_show(config: ConfigOpt = None) -> None:
    """Show resolved gateway configuration (masks credentials)."""
    settings = get_settings(config)

    def mask(val: str | None, prefix: str = "") -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"{prefix}...{val[-5:]}"

    def secret(field: str, prefix: str = "") -> str:
        value = getattr(settings, field)
        return mask(value.get_secret_value() if value else None, prefix=prefix)

    def plain(val: object) -> str:
        return "[dim](not set)[/dim]" if val is None else str(val)

    table = Table(title="hotline configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("linear_api_key", secret("linear_api_key", prefix="lin_api_"))
    table.add_row("linear_team_id", plain(settings.linear_team_id))
    table.add_row("linear_project_id", plain(settings.linear_project_id))
    table.add_row("linear_endpoint", settings.linear_endpoint)
    table.add_row("auth_token", secret("auth_token"))
    table.add_row("rate_limit_strategy", settings.rate_limit_strategy)
    table.add_row("rate_limit_max", str(settings.rate_limit_max))
    table.add_row("rate_limit_window", f"{settings.rate_limit_window:g}s")
    table.add_row("redis_url", "[dim](set)[/dim]" if settings.redis_url else "[dim](not set)[/dim]")
    table.add_row("client_ip_header", plain(settings.client_ip_header))
    table.add_row("reject_unidentified", str(settings.reject_unidentified))

    missing = settings.missing_linear_fields()
    if missing:
        table.add_row("[yellow]status[/yellow]", f"[yellow]missing {', '.join(missing)}[/yellow]")

    rprint(table)
