"""Unit tests for chord, sheet and key transposition."""

import pytest

from keyshift.pitch import NOTE_NAMES, resolve_pitch_class
from keyshift.transposer import (
    UnknownKeyError,
    compute_display_key,
    find_chord_tokens,
    format_offset,
    transpose_chord_symbol,
    transpose_line,
    transpose_sheet,
)

KING_SHEET = "G        Em7\nThe splendor of the King"


# ---------------------------------------------------------------------------
# transpose_chord_symbol
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "symbol, offset, expected",
    [
        ("Cmaj7", 2, "Dmaj7"),
        ("C/G", 2, "D/A"),
        ("C", -1, "B"),
        ("C", -13, "B"),
        ("B", 1, "C"),
        ("Am7b5", 3, "Cm7b5"),
        ("Gsus4", 5, "Csus4"),
        ("Bb/D", 1, "B/D#"),
        ("F#m", 12, "F#m"),
        ("Ebadd9", -2, "C#add9"),
    ],
)
def test_transpose_chord_symbol(symbol: str, offset: int, expected: str) -> None:
    assert transpose_chord_symbol(symbol, offset) == expected


def test_zero_offset_normalises_flats() -> None:
    assert transpose_chord_symbol("Bb", 0) == "A#"
    assert transpose_chord_symbol("A#", 0) == "A#"
    assert transpose_chord_symbol("Bb", 0) == transpose_chord_symbol("A#", 0)


@pytest.mark.parametrize("symbol", ["H7", "x", "", "[CHORUS]", "n.c."])
def test_unrecognised_root_is_unchanged(symbol: str) -> None:
    assert transpose_chord_symbol(symbol, 5) == symbol


def test_unrecognised_slash_bass_left_as_written() -> None:
    assert transpose_chord_symbol("C/x", 2) == "D/x"


def test_slash_root_inside_suffix_moves_with_chord() -> None:
    assert transpose_chord_symbol("C/G7", 2) == "D/A7"
    assert transpose_chord_symbol("Am7/Eb/Bb", 2) == "Bm7/F/C"


def test_every_pitch_class_closes_under_offset() -> None:
    for index, name in enumerate(NOTE_NAMES):
        for offset in range(-25, 26):
            shifted = transpose_chord_symbol(name, offset)
            assert resolve_pitch_class(shifted) == (index + offset) % 12


# ---------------------------------------------------------------------------
# find_chord_tokens
# ---------------------------------------------------------------------------

def test_find_tokens_reports_spans() -> None:
    tokens = find_chord_tokens("G        Em7")
    assert [t.symbol for t in tokens] == ["G", "Em7"]
    assert (tokens[0].start, tokens[0].end) == (0, 1)
    assert (tokens[1].root, tokens[1].quality, tokens[1].bass) == ("E", "m7", None)
    assert (tokens[1].start, tokens[1].end) == (9, 12)


def test_find_tokens_slash_and_accidentals() -> None:
    tokens = find_chord_tokens("C#m7  Bb/D  F#sus4")
    assert [t.symbol for t in tokens] == ["C#m7", "Bb/D", "F#sus4"]
    assert tokens[1].bass == "D"


@pytest.mark.parametrize(
    "line",
    ["Be still my soul", "Emmanuel, God with us", "Abide with me", "[CHORUS]", "[BRIDGE]"],
)
def test_find_tokens_ignores_words(line: str) -> None:
    assert find_chord_tokens(line) == []


def test_transpose_line_keeps_spacing() -> None:
    assert transpose_line("C    G/B   Am", 2) == "D    A/C#   Bm"


# ---------------------------------------------------------------------------
# transpose_sheet
# ---------------------------------------------------------------------------

def test_sheet_end_to_end() -> None:
    assert transpose_sheet(KING_SHEET, 2) == "A        F#m7\nThe splendor of the King"
    assert compute_display_key("C", 2) == "D"


def test_sheet_zero_offset_is_verbatim() -> None:
    sheet = "Bb      Eb/G\nPraise the Lord\n\n[VERSE 2]\nAb  Db"
    assert transpose_sheet(sheet, 0) == sheet


@pytest.mark.parametrize("text", [None, ""])
def test_sheet_empty_input(text: str | None) -> None:
    assert transpose_sheet(text, 3) == ""


def test_sheet_preserves_labels_and_line_count() -> None:
    sheet = "[VERSE 1]\nC       F\nAmazing grace\n\n[CHORUS]\nG"
    result = transpose_sheet(sheet, 2)
    assert result == "[VERSE 1]\nD       G\nAmazing grace\n\n[CHORUS]\nA"
    assert result.count("\n") == sheet.count("\n")


def test_sheet_keeps_carriage_returns() -> None:
    assert transpose_sheet("G\r\nlyrics\r\n", 2) == "A\r\nlyrics\r\n"


@pytest.mark.parametrize("offset", [-7, -1, 1, 5, 11, 13])
def test_sheet_without_chords_is_unchanged(offset: int) -> None:
    lyrics = "How great Thou art\nhallelujah, hallelujah\n(repeat x2)"
    assert transpose_sheet(lyrics, offset) == lyrics


@pytest.mark.parametrize("offset", range(-13, 14))
def test_sharp_sheet_round_trips(offset: int) -> None:
    sheet = "C#m7  F#/A#  B\nholy, holy\nG#    E     D#m"
    assert transpose_sheet(transpose_sheet(sheet, offset), -offset) == sheet


def test_flat_sheet_round_trips_only_enharmonically() -> None:
    # The first transposition respells flats as sharps, so string equality
    # is lost but every root lands on the same pitch class.
    sheet = "Bb  Eb"
    back = transpose_sheet(transpose_sheet(sheet, 2), -2)
    assert back == "A#  D#"
    original = [resolve_pitch_class(t.root) for t in find_chord_tokens(sheet)]
    restored = [resolve_pitch_class(t.root) for t in find_chord_tokens(back)]
    assert original == restored


# ---------------------------------------------------------------------------
# compute_display_key / format_offset
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "key, offset, expected",
    [
        ("C", 2, "D"),
        ("C", -13, "B"),
        ("Bb", -1, "A"),
        ("Eb", 0, "D#"),
        (" G ", 0, "G"),
        ("Am", 2, "Bm"),
        ("C minor", 3, "D# minor"),
    ],
)
def test_display_key(key: str, offset: int, expected: str) -> None:
    assert compute_display_key(key, offset) == expected


@pytest.mark.parametrize("key", ["H", "", None, "Gx", "do"])
def test_display_key_unknown_raises(key: str | None) -> None:
    with pytest.raises(UnknownKeyError) as excinfo:
        compute_display_key(key, 1)
    assert excinfo.value.key == key
    assert isinstance(excinfo.value, ValueError)


def test_format_offset() -> None:
    assert format_offset(2) == "+2"
    assert format_offset(-1) == "-1"
    assert format_offset(0) == "0"
