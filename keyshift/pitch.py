"""Pitch-class tables and enharmonic resolution of chord roots."""

from typing import Final

SEMITONES_PER_OCTAVE = 12

# Chromatic pitch class names (index 0 = C)
NOTE_NAMES: Final[list[str]] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

#: Flat spellings accepted as chord roots, mapped to their canonical sharp name.
FLAT_ALIASES: Final[dict[str, str]] = {
    "Bb": "A#",
    "Eb": "D#",
    "Ab": "G#",
    "Db": "C#",
    "Gb": "F#",
    "Cb": "B",
    "Fb": "E",
}

#: Sharp spellings that fall on a natural note.
SHARP_ALIASES: Final[dict[str, str]] = {
    "E#": "F",
    "B#": "C",
}


def resolve_pitch_class(root: str) -> int | None:
    """
    Map a root spelling to its pitch class index.

    Args:
        root: A canonical sharp name ("C#") or a known alias ("Db", "E#").

    Returns:
        0=C, 1=C#, ..., 11=B, or None when the spelling is not recognised.
    """
    canonical = FLAT_ALIASES.get(root) or SHARP_ALIASES.get(root) or root
    try:
        return NOTE_NAMES.index(canonical)
    except ValueError:
        return None


def shift_pitch_class(index: int, offset: int) -> int:
    """Shift a pitch class by ``offset`` semitones, wrapping into 0-11."""
    return (index + offset) % SEMITONES_PER_OCTAVE


def pitch_name(index: int) -> str:
    """Canonical sharp-based name for a pitch class index."""
    return NOTE_NAMES[index % SEMITONES_PER_OCTAVE]
