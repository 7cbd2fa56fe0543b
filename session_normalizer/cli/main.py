#!/usr/bin/env python3
"""
Command-line interface for session-normalizer.

Provides commands to normalize a provider session log, report which format
a log is in, and list the registered providers.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal, TypeGuard

import typer

from session_normalizer.config import settings
from session_normalizer.exceptions import SessionNormalizerError
from session_normalizer.registry import parser_registry
from session_normalizer.schemas.messages import ParsedSession

app = typer.Typer(
    name='session-normalizer',
    help='Normalize AI coding-assistant session logs into one canonical message stream',
    add_completion=False,
)

OutputFormat = Literal['json', 'summary']


def _is_output_format(value: str) -> TypeGuard[OutputFormat]:
    return value in ('json', 'summary')


def _validate_output_format(value: str) -> OutputFormat:
    """Validate and narrow output format for typer callback."""
    if _is_output_format(value):
        return value
    raise typer.BadParameter("Must be 'json' or 'summary'")


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.getLevelNamesMapping()[settings.LOG_LEVEL]
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')


def _read_log(file: Path) -> str:
    try:
        return file.read_text(encoding='utf-8')
    except OSError as e:
        typer.secho(f'Error: Cannot read {file}: {e.strerror}', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


def _print_summary(session: ParsedSession) -> None:
    typer.secho(f'Session {session.session_id}', bold=True)
    typer.echo(f'  Provider: {session.provider}')
    typer.echo(f'  Start: {session.start_time.isoformat()}')
    typer.echo(f'  End: {session.end_time.isoformat()}')
    typer.echo(f'  Duration: {session.duration:,} ms')
    typer.echo(f'  Lines: {session.metadata.line_count:,}')
    typer.echo(f'  Messages: {session.metadata.message_count:,}')

    counts: dict[str, int] = {}
    for message in session.messages:
        counts[message.type] = counts.get(message.type, 0) + 1
    for message_type, count in sorted(counts.items()):
        typer.echo(f'    {message_type}: {count:,}')


@app.command()
def parse(
    file: Path = typer.Argument(..., help='Session log (JSONL)'),
    provider: str | None = typer.Option(None, '--provider', '-p', help='Provider hint (e.g. claude, codex, gemini)'),
    format: str = typer.Option(
        'json', '--format', '-f', help='Output format: json or summary', callback=_validate_output_format
    ),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Parse a session log and print the normalized session."""
    _configure_logging(verbose)
    content = _read_log(file)

    try:
        session = parser_registry.parse_session(content, provider)
    except SessionNormalizerError as e:
        typer.secho(f'Error: {e}', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if format == 'summary':
        _print_summary(session)
    else:
        typer.echo(json.dumps(session.to_json_dict(), indent=2, ensure_ascii=False))


@app.command()
def detect(
    file: Path = typer.Argument(..., help='Session log (JSONL)'),
) -> None:
    """Report which provider format a session log is in."""
    content = _read_log(file)
    parser = parser_registry.detect_parser(content)
    if parser is None:
        typer.secho('No known format detected', fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(1)
    typer.echo(parser.provider_name)


@app.command()
def providers() -> None:
    """List registered providers in detection order."""
    for name in parser_registry.registered_providers():
        typer.echo(name)


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == '__main__':
    main()
