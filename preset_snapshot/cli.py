"""preset-snapshot CLI — Typer app with fetch and viewer subcommands."""

from __future__ import annotations

import logging
import sys
import traceback
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from preset_snapshot import __version__
from preset_snapshot.core.settings import DEFAULT_OUTPUT_DIR

console = Console(stderr=True)

app = typer.Typer(
    name="preset-snapshot",
    help=(
        "Preset snapshot — fetch team rosters and audit logs once, browse them offline.\n\n"
        "Exit codes: 0=OK, 1=ERROR (missing credentials, unreadable snapshot, unhandled error)."
    ),
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog=(
        "Quick start:\n"
        "  export PRESET_API_TOKEN=... PRESET_API_SECRET=...\n"
        "  preset-snapshot fetch --out public/data\n"
        "  preset-snapshot members --data-dir public/data\n"
        "  preset-snapshot analytics --range month --workspace Production\n\n"
        f"preset-snapshot v{__version__}"
    ),
)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
        stream=sys.stderr,
    )


def _version_callback(value: bool) -> None:
    if value:
        from rich.panel import Panel
        c = Console()
        c.print(Panel(f"[bold]preset-snapshot[/bold] v{__version__}", border_style="blue"))
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit.",
        callback=_version_callback, is_eager=True,
    ),
) -> None:
    """Preset snapshot — static team and audit-log dashboard."""
    pass


def _dashboard(data_dir: str, site_url: Optional[str], base_path: str):
    from preset_snapshot.core.loader import Dashboard, HttpSnapshotLoader, LocalSnapshotLoader

    if site_url:
        loader = HttpSnapshotLoader(site_url, base_path=base_path)
    else:
        loader = LocalSnapshotLoader(data_dir)
    return Dashboard(loader)


def _view(show, data_dir: str, site_url: Optional[str], base_path: str, *args, **kwargs):
    with _dashboard(data_dir, site_url, base_path) as dashboard:
        return show(dashboard, *args, **kwargs)


_DATA_DIR = typer.Option(DEFAULT_OUTPUT_DIR, "--data-dir", "-d", help="Snapshot directory written by fetch.")
_SITE_URL = typer.Option(None, "--site-url", help="Read the snapshot from a published site instead.")
_BASE_PATH = typer.Option("/", "--base-path", help="Site base path the dashboard is served under.")
_QUERY = typer.Option("", "--query", "-q", help="Case-insensitive free-text filter.")
_VERBOSE = typer.Option(False, "--verbose", help="Enable DEBUG logging and full tracebacks.")


# ── fetch ────────────────────────────────────────────────────────

@app.command()
def fetch(
    out: str = typer.Option(DEFAULT_OUTPUT_DIR, "--out", "-o", help="Output directory for the JSON files."),
    verbose: bool = _VERBOSE,
) -> None:
    """Fetch teams, members, audit logs (and optionally users/roles) from the Preset API.

    Credentials come from PRESET_API_TOKEN / PRESET_API_SECRET.

    Example:
      preset-snapshot fetch
      PRESET_FETCH_USERS=1 preset-snapshot fetch --out site/data
    """
    _setup_logging(verbose)
    _run_safe(lambda: _fetch_impl(out), verbose=verbose)


def _fetch_impl(out: str) -> None:
    from preset_snapshot.commands.fetch import print_result, run
    from preset_snapshot.core.settings import load_settings

    result = run(load_settings(output_dir=out))
    print_result(result)


# ── summary ──────────────────────────────────────────────────────

@app.command()
def summary(
    data_dir: str = _DATA_DIR,
    site_url: Optional[str] = _SITE_URL,
    base_path: str = _BASE_PATH,
    verbose: bool = _VERBOSE,
) -> None:
    """Show per-resource counts from summary.json."""
    _setup_logging(verbose)
    _run_safe(lambda: _summary_impl(data_dir, site_url, base_path), verbose=verbose)


def _summary_impl(data_dir: str, site_url: Optional[str], base_path: str) -> None:
    from rich.table import Table

    with _dashboard(data_dir, site_url, base_path) as dashboard:
        data = dashboard.summary()
    if not data:
        Console().print("[dim]No summary.json found.[/dim]")
        return
    table = Table(title="Snapshot summary")
    for col in ("Resource", "Count", "Generated", "Sample"):
        table.add_column(col)
    for name, entry in data.items():
        if not isinstance(entry, dict):
            continue
        sample = ", ".join(str(s) for s in entry.get("data", []))
        table.add_row(name, str(entry.get("count", 0)), str(entry.get("generated_at", "")), sample)
    Console().print(table)


# ── rosters ──────────────────────────────────────────────────────

@app.command()
def teams(
    query: str = _QUERY,
    data_dir: str = _DATA_DIR,
    site_url: Optional[str] = _SITE_URL,
    base_path: str = _BASE_PATH,
    verbose: bool = _VERBOSE,
) -> None:
    """List teams with member counts."""
    from preset_snapshot.commands.teams import show_teams

    _setup_logging(verbose)
    _run_safe(lambda: _view(show_teams, data_dir, site_url, base_path, query), verbose=verbose)


@app.command()
def members(
    query: str = _QUERY,
    data_dir: str = _DATA_DIR,
    site_url: Optional[str] = _SITE_URL,
    base_path: str = _BASE_PATH,
    verbose: bool = _VERBOSE,
) -> None:
    """List flattened team members."""
    from preset_snapshot.commands.teams import show_members

    _setup_logging(verbose)
    _run_safe(lambda: _view(show_members, data_dir, site_url, base_path, query), verbose=verbose)


@app.command()
def users(
    query: str = _QUERY,
    data_dir: str = _DATA_DIR,
    site_url: Optional[str] = _SITE_URL,
    base_path: str = _BASE_PATH,
    verbose: bool = _VERBOSE,
) -> None:
    """List users (fetched, or derived from team members)."""
    from preset_snapshot.commands.teams import show_users

    _setup_logging(verbose)
    _run_safe(lambda: _view(show_users, data_dir, site_url, base_path, query), verbose=verbose)


@app.command()
def roles(
    query: str = _QUERY,
    data_dir: str = _DATA_DIR,
    site_url: Optional[str] = _SITE_URL,
    base_path: str = _BASE_PATH,
    verbose: bool = _VERBOSE,
) -> None:
    """List roles (fetched, or derived from team role names)."""
    from preset_snapshot.commands.teams import show_roles

    _setup_logging(verbose)
    _run_safe(lambda: _view(show_roles, data_dir, site_url, base_path, query), verbose=verbose)


@app.command()
def export(
    view: str = typer.Argument(..., help="teams or members"),
    fmt: str = typer.Option("csv", "--format", "-f", help="csv or yaml"),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Output file path."),
    query: str = _QUERY,
    data_dir: str = _DATA_DIR,
    site_url: Optional[str] = _SITE_URL,
    base_path: str = _BASE_PATH,
    verbose: bool = _VERBOSE,
) -> None:
    """Export the teams or members view to CSV or YAML.

    Example:
      preset-snapshot export members --format csv --query analyst
    """
    from preset_snapshot.commands.teams import export_rows

    _setup_logging(verbose)
    _run_safe(
        lambda: _view(export_rows, data_dir, site_url, base_path, view, out=out, fmt=fmt, query=query),
        verbose=verbose,
    )


# ── audit ────────────────────────────────────────────────────────

@app.command()
def audit(
    query: str = _QUERY,
    data_dir: str = _DATA_DIR,
    site_url: Optional[str] = _SITE_URL,
    base_path: str = _BASE_PATH,
    verbose: bool = _VERBOSE,
) -> None:
    """List audit-log events."""
    from preset_snapshot.commands.audit import show_audit

    _setup_logging(verbose)
    _run_safe(lambda: _view(show_audit, data_dir, site_url, base_path, query), verbose=verbose)


@app.command()
def inspect(
    index: int = typer.Argument(..., help="Row number from the audit table."),
    expand: bool = typer.Option(False, "--expand", "-e", help="Expand params/query_context payloads."),
    query: str = _QUERY,
    data_dir: str = _DATA_DIR,
    site_url: Optional[str] = _SITE_URL,
    base_path: str = _BASE_PATH,
    verbose: bool = _VERBOSE,
) -> None:
    """Show every field of one audit event.

    Example:
      preset-snapshot inspect 3 --expand
    """
    from preset_snapshot.commands.audit import inspect_event

    _setup_logging(verbose)

    def _impl() -> None:
        if _view(inspect_event, data_dir, site_url, base_path, index, query=query, expand=expand) is None:
            raise SystemExit(1)

    _run_safe(_impl, verbose=verbose)


# ── analytics ────────────────────────────────────────────────────

@app.command()
def analytics(
    range_name: str = typer.Option("week", "--range", "-r", help="week, month or year."),
    workspace: str = typer.Option("ALL", "--workspace", "-w", help="Workspace name, or ALL."),
    top: int = typer.Option(10, "--top", "-n", help="Bars per chart."),
    json_out: bool = typer.Option(False, "--json", help="Print the report as JSON."),
    query: str = _QUERY,
    data_dir: str = _DATA_DIR,
    site_url: Optional[str] = _SITE_URL,
    base_path: str = _BASE_PATH,
    verbose: bool = _VERBOSE,
) -> None:
    """Top chart views, dashboard views, active users and actions.

    Example:
      preset-snapshot analytics --range month --workspace Production
      preset-snapshot analytics --json
    """
    _setup_logging(verbose)
    _run_safe(
        lambda: _analytics_impl(range_name, workspace, top, json_out, query, data_dir, site_url, base_path),
        verbose=verbose,
    )


def _analytics_impl(
    range_name: str,
    workspace: str,
    top: int,
    json_out: bool,
    query: str,
    data_dir: str,
    site_url: Optional[str],
    base_path: str,
) -> None:
    from preset_snapshot.commands.analytics import analytics_report, show_analytics

    with _dashboard(data_dir, site_url, base_path) as dashboard:
        if json_out:
            import json

            report = analytics_report(
                dashboard.audit_logs(), query=query, workspace=workspace, range_name=range_name, top=top
            )
            typer.echo(json.dumps(report, indent=2))
            return
        show_analytics(dashboard, query=query, workspace=workspace, range_name=range_name, top=top)


def _run_safe(fn, verbose: bool = False) -> None:
    """Run a function with clean error handling."""
    from preset_sdk.errors import ConfigError
    from preset_snapshot.core.loader import SnapshotLoadError

    try:
        fn()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        raise SystemExit(130)
    except ConfigError as e:
        console.print(f"[red bold]Configuration error:[/red bold] {escape(str(e))}")
        raise SystemExit(1)
    except SnapshotLoadError as e:
        console.print(f"[red bold]Error:[/red bold] {escape(str(e))}", highlight=False)
        console.print("[dim]Run `preset-snapshot fetch` first or check --data-dir / --site-url.[/dim]")
        raise SystemExit(1)
    except Exception as e:
        console.print(f"\n[red bold]Error:[/red bold] {escape(str(e))}")
        if verbose:
            console.print(traceback.format_exc(), markup=False)
        else:
            console.print("[dim]Run with --verbose for full traceback.[/dim]")
        raise SystemExit(1)
