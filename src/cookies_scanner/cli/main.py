"""CLI entry point — the `cookies-scanner` command."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from cookies_scanner.core.base import Diagnostic, Initiator, InitiatorType, MergedCookie
from cookies_scanner.core.canonical import Canonicalizer
from cookies_scanner.core.config import (
    ConfigError,
    get_extra_canonical_rules,
    get_first_party_domain,
    load_config,
)
from cookies_scanner.core.events import CookieCollector
from cookies_scanner.core.parser import CookieParser
from cookies_scanner.core.pipeline import build_browser_cookies, build_result_cookies
from cookies_scanner.core.report import DEFAULT_FIELDS, FORMATS, render

# Tables and logs go to stderr, machine-readable output to stdout
console = Console(stderr=True)


def _read_json(source: str) -> Any:
    text = sys.stdin.read() if source == "-" else Path(source).read_text()
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {source}: {e}") from e


def _load_settings(config_path: str | None, first_party: str | None) -> tuple[str, Canonicalizer]:
    try:
        config = load_config(Path(config_path) if config_path else None)
        rules = get_extra_canonical_rules(config)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    domain = first_party.lower() if first_party else get_first_party_domain(config)
    if not domain:
        raise click.ClickException(
            "No first-party domain. Use --first-party, COOKIES_SCANNER_FIRST_PARTY "
            "or first_party_domain in the config file."
        )
    return domain, Canonicalizer.default(rules)


def _render_table(title: str, cookies: list[MergedCookie]) -> None:
    table = Table(title=title)
    table.add_column("Name", style="bold")
    table.add_column("Host")
    table.add_column("Path", style="dim")
    table.add_column("Session")
    table.add_column("Third party")
    table.add_column("Lifespan (days)", justify="right")

    for cookie in cookies:
        table.add_row(
            cookie.name,
            cookie.host,
            cookie.path,
            "yes" if cookie.is_session else "no",
            "[red]yes[/red]" if cookie.is_third_party else "no",
            str(cookie.life_span),
        )
    console.print(table)


def _emit(cookies: list[MergedCookie], output_format: str, output: str | None, title: str) -> None:
    if output_format == "rich":
        _render_table(title, cookies)
        return

    content = render(cookies, output_format)
    if output:
        Path(output).write_text(content)
        console.print(f"[green]Report saved to {output}[/green]")
    else:
        click.echo(content, nl=False)


@click.group()
@click.version_option(package_name="cookies-scanner")
@click.option("--verbose", "-v", is_flag=True, help="Log debug messages.")
def cli(verbose: bool) -> None:
    """cookies-scanner — Parse, classify and merge the cookies a site sets."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@cli.command()
@click.argument("cookie")
@click.option("--url", required=True, help="URL of the response or document setting the cookie.")
@click.option(
    "--type",
    "initiator_type",
    type=click.Choice([t.value for t in InitiatorType]),
    default=InitiatorType.NETWORK.value,
    show_default=True,
)
@click.option("--timestamp", type=int, default=None, help="Creation time, ms since the epoch.")
def parse(cookie: str, url: str, initiator_type: str, timestamp: int | None) -> None:
    """Parse one raw cookie string and print the resulting records as JSON."""
    parser = CookieParser()
    records = parser.parse(
        cookie,
        initiator=Initiator(type=InitiatorType(initiator_type), url=url),
        creation_time=timestamp,
    )
    click.echo(json.dumps([r.model_dump(mode="json") for r in records], indent=2))


@cli.command()
@click.argument("events_file", default="-")
@click.option("--first-party", "-f", help="First-party domain of the scanned site.")
@click.option("--config", "config_path", type=click.Path(exists=True), default=None)
@click.option(
    "--format", "output_format", type=click.Choice(["rich", *FORMATS]), default="json"
)
@click.option("--output", "-o", type=click.Path(), default=None, help="Output file path.")
def scan(
    events_file: str,
    first_party: str | None,
    config_path: str | None,
    output_format: str,
    output: str | None,
) -> None:
    """Turn recorded cookie events (a JSON array) into merged report rows."""
    domain, canonicalizer = _load_settings(config_path, first_party)
    events = _read_json(events_file)
    if not isinstance(events, list):
        raise click.ClickException("Expected a JSON array of cookie events.")

    diagnostics: list[Diagnostic] = []
    collector = CookieCollector(on_diagnostic=diagnostics.append)
    for index, event in enumerate(events):
        try:
            collector.handle(event)
        except ValidationError as e:
            console.print(f"[yellow]Skipping event #{index}: {e.error_count()} invalid fields[/yellow]")

    cookies = build_result_cookies(collector.records, domain, canonicalizer)
    _emit(cookies, output_format, output, title=f"Cookies set on {domain}")

    if diagnostics:
        console.print(
            Panel(
                f"{len(diagnostics)} cookie attributes or cookies were ignored. "
                "Run with --verbose for details.",
                style="yellow",
            )
        )


@cli.command()
@click.argument("snapshot_file", default="-")
@click.option("--first-party", "-f", help="First-party domain of the scanned site.")
@click.option("--config", "config_path", type=click.Path(exists=True), default=None)
@click.option(
    "--format", "output_format", type=click.Choice(["rich", *FORMATS]), default="json"
)
@click.option("--output", "-o", type=click.Path(), default=None, help="Output file path.")
def store(
    snapshot_file: str,
    first_party: str | None,
    config_path: str | None,
    output_format: str,
    output: str | None,
) -> None:
    """Normalize a cookie store snapshot (Network.getAllCookies) into report rows."""
    domain, canonicalizer = _load_settings(config_path, first_party)
    snapshot = _read_json(snapshot_file)
    stored = snapshot.get("cookies", []) if isinstance(snapshot, dict) else snapshot
    if not isinstance(stored, list):
        raise click.ClickException("Expected a JSON array of cookies.")

    cookies = build_browser_cookies(stored, domain, canonicalizer)
    _emit(cookies, output_format, output, title=f"Browser cookies for {domain}")


@cli.command()
@click.option("--format", "output_format", type=click.Choice(FORMATS), default="csv")
@click.option(
    "--fields",
    default=",".join(DEFAULT_FIELDS),
    show_default=True,
    help="Comma-separated list of fields to output.",
)
def convert(output_format: str, fields: str) -> None:
    """Render report rows (JSON on stdin) as CSV, HTML or JSON."""
    rows = _read_json("-")
    if not isinstance(rows, list):
        raise click.ClickException("Expected a JSON array of cookies.")
    field_list = [f.strip() for f in fields.split(",") if f.strip()]
    click.echo(render(rows, output_format, field_list), nl=False)


if __name__ == "__main__":
    cli()
