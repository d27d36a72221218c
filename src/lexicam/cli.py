"""lexicam CLI entry point.

Commands:
    add        Record a recognized object and its translations
    list       Show learning records, newest first
    stats      Show record counts
    remove     Delete a record by id
    sync       Cloud sync (status, now, enable, disable)
    model      Show the selected local recognition model
    languages  List supported language codes
    config     View/edit configuration
"""

import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import click
from rich.console import Console
from rich.table import Table

from lexicam import __version__
from lexicam.app_config import AppConfig
from lexicam.constants import (
    DEFAULT_LEARNING_LANGUAGE,
    DEFAULT_NATIVE_LANGUAGE,
    SUPPORTED_LANGUAGES,
    ExitCode,
)
from lexicam.exceptions import ConfigError, LexicamError
from lexicam.models import LearningRecord
from lexicam.services import Services, build_services
from lexicam.sync.status import SyncPhase, SyncStatus
from lexicam.utils.config import get_value, load_config, save_config, set_value

console = Console()


def _validate_language(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    """Validate a language code is supported."""
    if value is not None and value not in SUPPORTED_LANGUAGES:
        raise click.BadParameter(
            f"Language must be one of {', '.join(SUPPORTED_LANGUAGES)}"
        )
    return value


@click.group()
@click.version_option(version=__version__, prog_name="lexicam")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="LEXICAM_DATA_DIR",
    help="Data directory (default: ~/.lexicam)",
)
@click.pass_context
def main(ctx: click.Context, debug: bool, data_dir: Path | None) -> None:
    """lexicam - Learn words from the objects around you."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["paths"] = AppConfig(base_dir=data_dir)

    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("lexicam").setLevel(logging.DEBUG if debug else logging.WARNING)


@contextmanager
def _services(ctx: click.Context) -> Iterator[tuple[dict, Services]]:
    """Load config and build services; settle remote work on exit."""
    try:
        cfg = load_config()
        services = build_services(cfg, ctx.obj["paths"])
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(ExitCode.INVALID_INPUT)

    try:
        services.settle()
        yield cfg, services
        if not services.settle():
            console.print("[yellow]Remote work still pending; it may not have completed[/yellow]")
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(ExitCode.KEYBOARD_INTERRUPT)
    finally:
        services.close()


def _record_table(records: list[LearningRecord], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Object", style="cyan")
    table.add_column("Native")
    table.add_column("Learning")
    table.add_column("Languages")
    table.add_column("Captured")

    for record in records:
        table.add_row(
            str(record.id)[:8],
            record.object_name,
            record.native_translation,
            record.learning_translation,
            f"{record.native_language_code} → {record.learning_language_code}",
            record.created_at.astimezone().strftime("%Y-%m-%d %H:%M"),
        )
    return table


def _print_status(status: SyncStatus) -> None:
    table = Table(title="Cloud Sync")
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    table.add_row("Enabled", "yes" if status.is_enabled else "no")
    table.add_row("Network", "reachable" if status.network_reachable else "[red]unreachable[/red]")
    table.add_row("Account", status.account_state.description)
    table.add_row("State", status.sync_state.description)
    last_sync = status.last_sync_date.astimezone().strftime("%Y-%m-%d %H:%M:%S") if status.last_sync_date else "never"
    table.add_row("Last sync", last_sync)
    table.add_row("Can sync", "[green]yes[/green]" if status.can_sync else "[yellow]no[/yellow]")
    console.print(table)

    for message in status.warning_messages:
        console.print(f"[yellow]⚠ {message}[/yellow]")


# ============================================================================
# RECORD COMMANDS
# ============================================================================


@main.command()
@click.argument("object_name")
@click.option("-n", "--native", "native_translation", help="Translation in the native language")
@click.option("-l", "--learning", "learning_translation", help="Translation in the learning language")
@click.option("--native-lang", callback=_validate_language, help="Native language code")
@click.option("--learning-lang", callback=_validate_language, help="Learning language code")
@click.pass_context
def add(
    ctx: click.Context,
    object_name: str,
    native_translation: str | None,
    learning_translation: str | None,
    native_lang: str | None,
    learning_lang: str | None,
) -> None:
    """Record a recognized object.

    Repeating the newest object within three minutes refreshes it
    instead of adding a duplicate.

    Examples:

        lexicam add apple -n 苹果 -l Apple

        lexicam add cup --native-lang en --learning-lang fr -l Tasse
    """
    with _services(ctx) as (cfg, services):
        store = services.store
        before = store.total_entries
        record = store.add_record(
            object_name,
            native_translation or object_name.strip(),
            learning_translation or object_name.strip(),
            native_lang or get_value(cfg, "general.native_language", DEFAULT_NATIVE_LANGUAGE),
            learning_lang or get_value(cfg, "general.learning_language", DEFAULT_LEARNING_LANGUAGE),
        )

        if record is None:
            console.print("[yellow]Nothing recorded: object name is empty[/yellow]")
            sys.exit(ExitCode.INVALID_INPUT)

        verb = "Added" if store.total_entries > before else "Refreshed"
        console.print(f"[green]{verb}[/green] {record.object_name} [dim]({record.id})[/dim]")


@main.command("list")
@click.option("--limit", type=click.IntRange(min=1), help="Show at most N records")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def list_records(ctx: click.Context, limit: int | None, as_json: bool) -> None:
    """Show learning records, newest first."""
    with _services(ctx) as (_, services):
        records = list(services.store.records)
        if limit:
            records = records[:limit]

        if as_json:
            click.echo(json.dumps([r.to_dict() for r in records], ensure_ascii=False, indent=2))
            return

        if not records:
            console.print("[dim]No records yet[/dim]")
            return
        console.print(_record_table(records, f"Learning Records ({services.store.total_entries})"))


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def stats(ctx: click.Context, as_json: bool) -> None:
    """Show record counts and the most recent entries."""
    with _services(ctx) as (_, services):
        store = services.store
        recent = store.recent_records()

        if as_json:
            data = {
                "total_entries": store.total_entries,
                "unique_items": store.unique_items,
                "recent": [r.to_dict() for r in recent],
            }
            click.echo(json.dumps(data, ensure_ascii=False, indent=2))
            return

        console.print(f"Total entries: {store.total_entries}")
        console.print(f"Unique items: {store.unique_items}")
        if recent:
            console.print(_record_table(recent, "Recent"))


@main.command()
@click.argument("record_id")
@click.pass_context
def remove(ctx: click.Context, record_id: str) -> None:
    """Delete a record.

    RECORD_ID is the full id or a unique prefix (as shown by `list`).
    """
    with _services(ctx) as (_, services):
        matches = services.store.match_id(record_id)
        if not matches:
            console.print(f"[red]No record with id {record_id}[/red]")
            sys.exit(ExitCode.NOT_FOUND)
        if len(matches) > 1:
            console.print(f"[red]Id prefix {record_id} matches {len(matches)} records[/red]")
            sys.exit(ExitCode.INVALID_INPUT)

        record = matches[0]
        services.store.remove(record)
        console.print(f"[green]Removed[/green] {record.object_name} [dim]({record.id})[/dim]")


# ============================================================================
# SYNC COMMANDS
# ============================================================================


@main.group()
def sync() -> None:
    """Cloud sync."""
    pass


@sync.command("status")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def sync_status(ctx: click.Context, as_json: bool) -> None:
    """Show sync health."""
    with _services(ctx) as (_, services):
        status = services.monitor.status
        if as_json:
            click.echo(json.dumps(status.to_dict(), ensure_ascii=False, indent=2))
        else:
            _print_status(status)


@sync.command("now")
@click.pass_context
def sync_now(ctx: click.Context) -> None:
    """Upload every local record now."""
    with _services(ctx) as (_, services):
        if not services.store.is_cloud_sync_enabled:
            console.print("[yellow]Cloud sync is disabled. Run: lexicam sync enable[/yellow]")
            sys.exit(ExitCode.SYNC_ERROR)

        services.store.sync_with_cloud()
        services.settle()
        status = services.monitor.status
        _print_status(status)
        if status.sync_state.phase is SyncPhase.FAILURE:
            sys.exit(ExitCode.SYNC_ERROR)


@sync.command("enable")
@click.pass_context
def sync_enable(ctx: click.Context) -> None:
    """Turn cloud sync on, merge remote records and upload."""
    with _services(ctx) as (_, services):
        if services.gateway is None:
            console.print("[yellow]No sync backend configured (set sync.backend)[/yellow]")
        services.store.set_cloud_sync_enabled(True)
        services.settle()
        _print_status(services.monitor.status)


@sync.command("disable")
@click.pass_context
def sync_disable(ctx: click.Context) -> None:
    """Turn cloud sync off. Remote records are kept."""
    with _services(ctx) as (_, services):
        services.store.set_cloud_sync_enabled(False)
        console.print("Cloud sync disabled")


# ============================================================================
# MODEL / LANGUAGES
# ============================================================================


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def model(ctx: click.Context, as_json: bool) -> None:
    """Show which local recognition model would be used."""
    with _services(ctx) as (_, services):
        selection = services.model_selector.preferred_model()
        if as_json:
            click.echo(json.dumps(selection.to_dict(), indent=2))
            return

        console.print(f"[bold]{selection.source.display_name}[/bold]")
        console.print(f"[dim]{selection.source.detail}[/dim]")
        if selection.path:
            console.print(f"Path: {selection.path}")


@main.command()
def languages() -> None:
    """List supported language codes."""
    table = Table(title="Languages")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    for code, name in SUPPORTED_LANGUAGES.items():
        table.add_row(code, name)
    console.print(table)


# ============================================================================
# CONFIG COMMAND
# ============================================================================


@main.group()
def config() -> None:
    """View and edit configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Show current configuration."""
    from lexicam.utils.config import get_config_path

    try:
        cfg = load_config()
    except LexicamError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(ExitCode.GENERAL_ERROR)
    console.print(f"[dim]Config file: {get_config_path()}[/dim]\n")
    console.print_json(json.dumps(cfg, indent=2))


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set a configuration value.

    KEY is a dot-separated path (e.g., sync.backend)
    VALUE is the new value
    """
    cfg = load_config()

    # Try to parse as JSON for complex values
    try:
        parsed_value = json.loads(value)
    except json.JSONDecodeError:
        parsed_value = value

    set_value(cfg, key, parsed_value)
    save_config(cfg)
    console.print(f"[green]Set {key} = {parsed_value}[/green]")


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Get a configuration value.

    KEY is a dot-separated path (e.g., general.native_language)
    """
    cfg = load_config()
    value = get_value(cfg, key)

    if value is None:
        console.print(f"[yellow]Key '{key}' not found[/yellow]")
        sys.exit(ExitCode.NOT_FOUND)

    console.print(f"{key} = {json.dumps(value, ensure_ascii=False)}")


if __name__ == "__main__":
    main()
