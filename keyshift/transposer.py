"""Transposer: shifts chord symbols, performance sheets and key labels by semitones."""

import re
from dataclasses import dataclass
from typing import Final

from keyshift.pitch import pitch_name, resolve_pitch_class, shift_pitch_class

ROOT_PATTERN: Final[str] = r"[A-G][b#]?"

# Quality / extension tokens recognised after a root. Longer spellings come
# first so that "maj" wins over "m" and "13" over a bare digit.
QUALITY_PATTERN: Final[str] = r"(?:maj|min|aug|dim|sus|add|m|13|11|[b#](?:13|11|9|5)|[245679])"

CHORD_RE: Final[re.Pattern[str]] = re.compile(
    rf"(?<![\w#])"
    rf"(?P<root>{ROOT_PATTERN})"
    rf"(?P<quality>{QUALITY_PATTERN}*)"
    rf"(?:/(?P<bass>{ROOT_PATTERN}))?"
    rf"(?![\w#])"
)

_LEADING_ROOT_RE: Final[re.Pattern[str]] = re.compile(ROOT_PATTERN)
_SLASH_BASS_RE: Final[re.Pattern[str]] = re.compile(rf"/(?P<bass>{ROOT_PATTERN})")
_KEY_RE: Final[re.Pattern[str]] = re.compile(
    rf"(?P<root>{ROOT_PATTERN})(?P<mode>\s*(?:minor|major|min|maj|m))?"
)


class UnknownKeyError(ValueError):
    """Raised when a song's key cannot be resolved to a pitch class."""

    def __init__(self, key: str | None) -> None:
        self.key = key
        super().__init__(f"Unrecognised key '{key}'.")


@dataclass(frozen=True)
class ChordToken:
    """
    A chord symbol found inside a line of a performance sheet.

    Attributes:
        root:    Root spelling as written, e.g. "Bb".
        quality: Quality/extension text following the root ("" if none).
        bass:    Slash-chord bass root, or None.
        start:   Index of the first character in the scanned line.
        end:     Index one past the last character.
    """

    root: str
    quality: str
    bass: str | None
    start: int
    end: int

    @property
    def symbol(self) -> str:
        """The chord text exactly as it appears in the line."""
        slash = f"/{self.bass}" if self.bass is not None else ""
        return f"{self.root}{self.quality}{slash}"


def _shift_root(root: str, offset: int) -> str | None:
    index = resolve_pitch_class(root)
    if index is None:
        return None
    return pitch_name(shift_pitch_class(index, offset))


def transpose_chord_symbol(symbol: str, offset: int) -> str:
    """
    Shift a single chord symbol by ``offset`` semitones.

    The leading root is replaced by its canonical sharp spelling; the suffix
    is kept as written, except that every root following a "/" moves with
    the chord ("C/G7" +2 -> "D/A7"). Flats are normalised to sharps even
    when ``offset`` is 0.

    Args:
        symbol: Chord text beginning with a root, e.g. "Bbmaj7" or "C/G".
        offset: Semitones to shift; any integer, wraps modulo 12.

    Returns:
        The transposed chord, or ``symbol`` unchanged if its root is not
        recognised.
    """
    match = _LEADING_ROOT_RE.match(symbol)
    if match is None:
        return symbol

    new_root = _shift_root(match.group(), offset)
    if new_root is None:
        return symbol

    def shift_bass(bass_match: re.Match[str]) -> str:
        new_bass = _shift_root(bass_match.group("bass"), offset)
        return bass_match.group() if new_bass is None else f"/{new_bass}"

    suffix = _SLASH_BASS_RE.sub(shift_bass, symbol[match.end():])
    return new_root + suffix


def find_chord_tokens(line: str) -> list[ChordToken]:
    """Return every chord symbol in ``line``, ordered by position."""
    return [
        ChordToken(
            root=match.group("root"),
            quality=match.group("quality"),
            bass=match.group("bass"),
            start=match.start(),
            end=match.end(),
        )
        for match in CHORD_RE.finditer(line)
    ]


def transpose_line(line: str, offset: int) -> str:
    """Transpose the chord symbols in one line, leaving all other text in place."""
    return CHORD_RE.sub(lambda match: transpose_chord_symbol(match.group(), offset), line)


def transpose_sheet(text: str | None, offset: int) -> str:
    """
    Transpose every chord in a multi-line performance sheet.

    An offset of exactly 0 returns the sheet verbatim, flat spellings
    included. Otherwise each line is scanned independently; lyrics, section
    labels and whitespace are never modified and the line count is kept.

    Args:
        text:   Lyrics-and-chords text. None is treated as "".
        offset: Semitones to shift.

    Returns:
        The transposed sheet.
    """
    if not text:
        return ""
    if offset == 0:
        return text
    return "\n".join(transpose_line(line, offset) for line in text.split("\n"))


def compute_display_key(original_key: str | None, offset: int) -> str:
    """
    Compute the key label for a song played ``offset`` semitones from its original key.

    A mode suffix is carried over as written ("Am" + 2 -> "Bm").

    Raises:
        UnknownKeyError: If ``original_key`` does not start with a known root
                         or carries an unrecognised suffix.
    """
    key = (original_key or "").strip()
    match = _KEY_RE.fullmatch(key)
    if match is None:
        raise UnknownKeyError(original_key)

    root = _shift_root(match.group("root"), offset)
    if root is None:
        raise UnknownKeyError(original_key)
    return root + (match.group("mode") or "")


def format_offset(offset: int) -> str:
    """Signed offset label as shown next to the transpose buttons, e.g. "+2"."""
    return f"+{offset}" if offset > 0 else str(offset)
