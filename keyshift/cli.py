"""keyshift CLI entry point."""

import re
import sys
from typing import NoReturn

import click

from keyshift import __version__
from keyshift.click_exporter import ClickTrackExporter
from keyshift.metronome import DEFAULT_BPM, MAX_BPM, MIN_BPM, clamp_bpm, parse_tempo
from keyshift.sheet_exporter import SheetExporter
from keyshift.song_library import find_song, load_songs, search_songs
from keyshift.song_models import Song
from keyshift.transposer import (
    UnknownKeyError,
    compute_display_key,
    format_offset,
    transpose_sheet,
)

MAX_BARS = 999
MAX_BEATS_PER_BAR = 16


def _title_to_filename(title: str) -> str:
    """Convert a song title to a safe filename stem.

    Strips characters that are invalid in filenames and collapses whitespace
    to underscores.
    """
    sanitized = re.sub(r"[^\w\s-]", "", title)
    sanitized = re.sub(r"\s+", "_", sanitized.strip())
    return sanitized or "output"


def _fail(message: str) -> NoReturn:
    click.echo(f"  ERROR: {message}", err=True)
    sys.exit(1)


def _offset_option(func):
    return click.option(
        "--offset",
        "-t",
        type=int,
        default=0,
        show_default=True,
        metavar="SEMITONES",
        help="Semitones to transpose by; negative values transpose down.",
    )(func)


def _select_song(songs: list[Song], title: str | None) -> Song:
    if title is not None:
        return find_song(songs, title)
    if len(songs) == 1:
        return songs[0]
    if not songs:
        raise ValueError("The song file contains no songs.")
    raise ValueError(f"The song file holds {len(songs)} songs; choose one with --song.")


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(
    context_settings={
        "help_option_names": ["-h", "--help"],
        "auto_envvar_prefix": "KEYSHIFT",
    }
)
@click.version_option(version=__version__, prog_name="keyshift")
def main() -> None:
    """keyshift — transpose chord sheets and prepare rehearsal material."""


# ── transpose subcommand ───────────────────────────────────────────────────────

@main.command()
@click.argument("sheet", type=click.File("r", encoding="utf-8"))
@_offset_option
@click.option(
    "--key",
    "-k",
    "original_key",
    default=None,
    metavar="KEY",
    help="Original key of the sheet; the resulting key is reported on stderr.",
)
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Write the transposed sheet here instead of standard output.",
)
def transpose(sheet, offset: int, original_key: str | None, output: str | None) -> None:
    """
    Transpose every chord in a lyrics-and-chords sheet.

    SHEET is a text file, or - to read standard input. Lyrics, section
    labels and spacing are left exactly as written.

    \b
    Examples:
      keyshift transpose amazing_grace.txt --offset 2
      keyshift transpose amazing_grace.txt --offset=-3 --key G
      cat sheet.txt | keyshift transpose - -t 5 -o sheet_in_F.txt
    """
    if original_key is not None:
        try:
            display_key = compute_display_key(original_key, offset)
        except UnknownKeyError as exc:
            _fail(str(exc))
        click.echo(f"Key: {display_key} ({format_offset(offset)})", err=True)

    result = transpose_sheet(sheet.read(), offset)

    if output is None:
        click.echo(result, nl=not result.endswith("\n"))
        return

    try:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(result)
    except OSError as exc:
        _fail(f"Could not write output file — {exc}")
    click.echo(f"Wrote transposed sheet → '{output}'.")


# ── key subcommand ─────────────────────────────────────────────────────────────

@main.command(name="key")
@click.argument("original_key")
@_offset_option
def key_command(original_key: str, offset: int) -> None:
    """
    Show the key a song lands in after transposing.

    \b
    Examples:
      keyshift key C --offset 2        # D
      keyshift key Bb --offset=-1      # A
    """
    try:
        click.echo(compute_display_key(original_key, offset))
    except UnknownKeyError as exc:
        _fail(str(exc))


# ── songs subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("songs_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--query",
    "-q",
    default="",
    metavar="TEXT",
    help="Only list songs whose title, category or key contains TEXT.",
)
def songs(songs_file: str, query: str) -> None:
    """
    List the songs in a JSON song file.

    \b
    Examples:
      keyshift songs library.json
      keyshift songs library.json -q choir
    """
    try:
        library = load_songs(songs_file)
    except (OSError, ValueError) as exc:
        _fail(f"Could not read songs — {exc}")

    matches = search_songs(library, query)
    if not matches:
        click.echo("  WARNING: No songs match.", err=True)
        return

    for song in matches:
        tempo = f"{song.bpm} BPM" if song.tempo else ""
        click.echo(f"  {song.title:<32}  {song.original_key:<4}  {song.category:<8}  {tempo}".rstrip())


# ── sheet subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("songs_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--song",
    "-s",
    "song_title",
    default=None,
    metavar="TITLE",
    help="Song to export when the file holds more than one.",
)
@_offset_option
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["html", "md", "txt"], case_sensitive=False),
    default="html",
    show_default=True,
    help="Printable HTML, Markdown, or plain text.",
)
@click.option(
    "--title",
    default=None,
    metavar="TEXT",
    help="Title shown in the output header. Defaults to the song title.",
)
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination file path. Defaults to <song-title> plus the format's extension.",
)
def sheet(
    songs_file: str,
    song_title: str | None,
    offset: int,
    output_format: str,
    title: str | None,
    output: str | None,
) -> None:
    """
    Export a song's transposed performance sheet.

    SONGS_FILE is a JSON file holding one song or a list of songs.

    \b
    Examples:
      keyshift sheet king_of_kings.json --offset 2
      keyshift sheet library.json -s "How Great Thou Art" --format md -o hgta.md
    """
    try:
        library = load_songs(songs_file)
    except (OSError, ValueError) as exc:
        _fail(f"Could not read songs — {exc}")

    try:
        song = _select_song(library, song_title)
    except KeyError:
        _fail(f"No song titled '{song_title}' in '{songs_file}'.")
    except ValueError as exc:
        _fail(str(exc))

    exporter = SheetExporter(output_format=output_format, title=title)
    resolved_output = output or f"{_title_to_filename(song.title)}{exporter.renderer.default_extension}"

    click.echo(f"keyshift v{__version__}")
    click.echo(f"  Song   : {song.title}")
    click.echo(f"  Offset : {format_offset(offset)}")
    click.echo(f"  Format : {exporter.output_format}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()

    try:
        exporter.export(song, offset, resolved_output)
    except OSError as exc:
        _fail(f"Could not write output file — {exc}")
    except ValueError as exc:
        _fail(f"Could not render sheet — {exc}")

    click.echo(f"Done!  Key {compute_display_key(song.original_key, offset)}, written to '{resolved_output}'.")


# ── click subcommand ───────────────────────────────────────────────────────────

@main.command(name="click")
@click.option(
    "--tempo",
    default=str(DEFAULT_BPM),
    show_default=True,
    metavar="TEXT",
    help=f"Tempo such as '76' or '76 BPM'; clamped to {MIN_BPM}–{MAX_BPM}.",
)
@click.option(
    "--bars",
    type=click.IntRange(1, MAX_BARS),
    default=8,
    show_default=True,
    help="Number of bars to write.",
)
@click.option(
    "--beats",
    type=click.IntRange(1, MAX_BEATS_PER_BAR),
    default=4,
    show_default=True,
    help="Beats per bar; the first beat of each bar is accented.",
)
@click.option(
    "--output",
    "-o",
    default="click.mid",
    show_default=True,
    metavar="PATH",
    help="Destination MIDI file path.",
)
def click_track(tempo: str, bars: int, beats: int, output: str) -> None:
    """
    Write a metronome click track as a MIDI file.

    \b
    Examples:
      keyshift click --tempo "76 BPM" --bars 16
      keyshift click --tempo 90 --beats 6 -o six_eight.mid
    """
    requested = parse_tempo(tempo)
    bpm = clamp_bpm(requested)
    if bpm != requested:
        click.echo(f"  WARNING: Tempo {requested} BPM is out of range; using {bpm} BPM.", err=True)

    exporter = ClickTrackExporter(tempo=bpm, beats_per_bar=beats)
    try:
        exporter.export(bars, output)
    except OSError as exc:
        _fail(f"Could not write MIDI file — {exc}")

    click.echo(f"Done!  {bars} bar(s) of {beats} at {bpm} BPM → '{output}'.")


# ── tempo subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("source")
def tempo(source: str) -> None:
    """
    Detect the tempo of a reference recording.

    SOURCE is a local audio file or a URL (wrap in quotes if it contains &).

    \b
    Examples:
      keyshift tempo rehearsal.wav
      keyshift tempo "https://youtu.be/dQw4w9WgXcQ"
    """
    from keyshift.audio_processor import AudioProcessor

    click.echo("Detecting tempo...")
    with AudioProcessor() as processor:
        try:
            report = processor.process(source)
        except FileNotFoundError as exc:
            _fail(str(exc))
        except Exception as exc:
            _fail(f"Could not analyse audio — {exc}")

    click.echo(f"  Recording : {report.title}")
    if report.bpm is None:
        click.echo("  WARNING: No steady pulse detected.", err=True)
        sys.exit(1)

    click.echo(f"Detected tempo: {report.bpm} BPM")
