"""Lead sheet CLI entry point."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from leadsheet import __version__
from leadsheet.assembler import assemble_book, assemble_song
from leadsheet.chord_resolver import JAZZ_EXCEPTIONS, ExceptionsTable, build_exceptions_table
from leadsheet.config import TRANSPOSITIONS, AssemblyConfig, load_exceptions_table, transposition_for
from leadsheet.errors import LeadSheetError
from leadsheet.event_stream import load_song
from leadsheet.logger_config import configure_logging
from leadsheet.sheet_exporter import SheetExporter
from leadsheet.sheet_models import SongInput
from leadsheet.structure_expander import ExpansionMode


def _merge_tables(*tables: ExceptionsTable) -> ExceptionsTable:
    """Later tables override earlier ones."""
    merged: dict[Any, str] = {}
    for table in tables:
        merged.update(table)
    return build_exceptions_table(
        (quality, extensions, symbol) for (quality, extensions), symbol in merged.items()
    )


def _build_config(
    transpose: str,
    interval: int | None,
    exceptions: str | None,
    jazz_names: bool,
    no_chord_changes: bool,
    brackets: bool,
) -> AssemblyConfig:
    preset = transposition_for(transpose)
    tables: list[ExceptionsTable] = []
    if jazz_names:
        tables.append(JAZZ_EXCEPTIONS)
    if exceptions is not None:
        tables.append(load_exceptions_table(exceptions))

    return AssemblyConfig(
        exceptions_table=_merge_tables(*tables),
        change_suppression=not no_chord_changes,
        transpose_interval=preset.interval if interval is None else interval,
        transposition_text=preset.display_text if interval is None else f"{interval:+d}",
        expansion=ExpansionMode.BRACKETS if brackets else ExpansionMode.UNROLL,
    )


def _assembly_options(func: Callable[..., None]) -> Callable[..., None]:
    """Options shared by every subcommand that assembles songs."""
    options = [
        click.option(
            "--transpose",
            type=click.Choice(sorted(TRANSPOSITIONS), case_sensitive=False),
            default="c",
            show_default=True,
            help="Instrument preset: concert pitch, Bb, Eb or the F testing book.",
        ),
        click.option(
            "--interval",
            type=click.IntRange(-11, 11),
            default=None,
            metavar="SEMITONES",
            help="Transpose by an explicit signed interval (overrides --transpose).",
        ),
        click.option(
            "--exceptions",
            type=click.Path(exists=True, dir_okay=False, readable=True),
            default=None,
            metavar="PATH",
            help="JSON chord naming exceptions table.",
        ),
        click.option(
            "--jazz-names",
            is_flag=True,
            help="Use jazz spellings (-7, Δ7, ø7, °7) before any --exceptions file.",
        ),
        click.option(
            "--no-chord-changes",
            is_flag=True,
            help="Print every chord symbol, even when it repeats the previous one.",
        ),
        click.option(
            "--brackets",
            is_flag=True,
            help="Keep written order and report repeats as brackets instead of unrolling.",
        ),
        click.option(
            "--format",
            "output_format",
            type=click.Choice(["json", "text"], case_sensitive=False),
            default="json",
            show_default=True,
            help="Output: JSON payload for a layout backend, or a plain-text chart.",
        ),
        click.option("--verbose", "-v", is_flag=True, help="Log assembly details to stderr."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="leadsheet")
def main() -> None:
    """Lead sheet assembler: aligned chords, melody and lyrics from event streams."""


# ── render subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("song_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination file. Defaults to <song>.sheet.json or <song>.sheet.txt next to the song.",
)
@_assembly_options
def render(
    song_file: str,
    output: str | None,
    transpose: str,
    interval: int | None,
    exceptions: str | None,
    jazz_names: bool,
    no_chord_changes: bool,
    brackets: bool,
    output_format: str,
    verbose: bool,
) -> None:
    """
    Assemble one song's event stream into a renderable lead sheet.

    SONG_FILE is a JSON event stream produced by the parser.

    \b
    Examples:
      leadsheet render all_of_me.json
      leadsheet render all_of_me.json --transpose bb --format text
      leadsheet render all_of_me.json --jazz-names --brackets -o chart.json
    """
    configure_logging(verbose)
    try:
        config = _build_config(transpose, interval, exceptions, jazz_names, no_chord_changes, brackets)
    except (OSError, ValueError) as exc:
        click.echo(f"  ERROR: Could not load configuration: {exc}", err=True)
        sys.exit(1)

    exporter = SheetExporter(output_format=output_format)
    song_path = Path(song_file)
    resolved_output = output if output is not None else str(
        song_path.with_name(f"{song_path.stem}.sheet{exporter.default_extension}")
    )
    if Path(resolved_output).resolve() == song_path.resolve():
        click.echo(f"  ERROR: Output '{resolved_output}' would overwrite the song file.", err=True)
        sys.exit(1)

    click.echo(f"leadsheet v{__version__}")
    click.echo(f"  Song      : {song_file}")
    click.echo(f"  Transpose : {config.transposition_text}")
    click.echo(f"  Output    : {resolved_output}")
    click.echo()

    try:
        song = load_song(song_path)
        sheet = assemble_song(song, config)
    except LeadSheetError as exc:
        click.echo(f"  ERROR: {type(exc).__name__}: {exc}", err=True)
        sys.exit(1)

    for warning in sheet.warnings:
        click.echo(f"  WARNING: {warning.message}", err=True)

    try:
        exporter.export(sheet, resolved_output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output file: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Done!  Wrote '{sheet.title}' to '{resolved_output}'.")


# ── book subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.argument("songs_dir", type=click.Path(exists=True, file_okay=False, readable=True))
@click.option(
    "--output-dir",
    "-o",
    default=None,
    metavar="DIR",
    help="Directory for the rendered songs. Defaults to SONGS_DIR/out-<transpose>.",
)
@_assembly_options
def book(
    songs_dir: str,
    output_dir: str | None,
    transpose: str,
    interval: int | None,
    exceptions: str | None,
    jazz_names: bool,
    no_chord_changes: bool,
    brackets: bool,
    output_format: str,
    verbose: bool,
) -> None:
    """
    Assemble every song in a directory, in title order.

    A song that fails is reported and skipped; the others are still written.
    The exit status is 1 if any song failed.
    """
    configure_logging(verbose)
    try:
        config = _build_config(transpose, interval, exceptions, jazz_names, no_chord_changes, brackets)
    except (OSError, ValueError) as exc:
        click.echo(f"  ERROR: Could not load configuration: {exc}", err=True)
        sys.exit(1)

    exporter = SheetExporter(output_format=output_format)
    target = Path(output_dir) if output_dir is not None else Path(songs_dir) / f"out-{transpose.lower()}"

    failures: list[str] = []
    songs: list[SongInput] = []
    for path in sorted(Path(songs_dir).glob("*.json")):
        try:
            songs.append(load_song(path))
        except LeadSheetError as exc:
            failures.append(path.name)
            click.echo(f"  ERROR: {path.name}: {exc}", err=True)

    click.echo(f"leadsheet v{__version__}")
    click.echo(f"  Songs     : {len(songs)} in {songs_dir}")
    click.echo(f"  Transpose : {config.transposition_text}")
    click.echo(f"  Output    : {target}")
    click.echo()

    target.mkdir(parents=True, exist_ok=True)
    written: set[Path] = set()
    for entry in assemble_book(songs, config):
        if entry.sheet is None:
            failures.append(entry.title)
            click.echo(f"  ERROR: {entry.title}: {type(entry.error).__name__}: {entry.error}", err=True)
            continue
        click.echo(f"Handling {entry.title}")
        for warning in entry.sheet.warnings:
            click.echo(f"  WARNING: {warning.message}", err=True)
        out_path = exporter.output_path_for(entry.title, target, written)
        if out_path != exporter.output_path_for(entry.title, target):
            click.echo(f"  WARNING: File name already used, writing '{out_path.name}'.", err=True)
        try:
            exporter.export(entry.sheet, out_path)
            written.add(out_path)
        except OSError as exc:
            failures.append(entry.title)
            click.echo(f"  ERROR: Could not write '{entry.title}': {exc}", err=True)

    click.echo()
    if failures:
        click.echo(f"{len(failures)} song(s) failed: {', '.join(failures)}", err=True)
        sys.exit(1)
    click.echo(f"Done!  Wrote {len(songs)} song(s) to '{target}'.")
