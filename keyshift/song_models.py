"""Data models for songs and transposed sheet documents."""

from dataclasses import dataclass
from typing import Any, Final

from keyshift.metronome import parse_tempo
from keyshift.transposer import ChordToken

CATEGORIES: Final[tuple[str, ...]] = ("Worship", "Choir", "Special")
DEFAULT_CATEGORY: Final[str] = "Worship"


def _pick(data: dict[str, Any], *keys: str) -> Any:
    """Return the first present, non-None value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _text(value: Any, field_name: str) -> str | None:
    """Coerce a JSON scalar to text; numbers become strings, other types are rejected."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"Song field '{field_name}' must be text, got {type(value).__name__}.")


@dataclass(frozen=True)
class Song:
    """
    A song from the ministry's library.

    Attributes:
        title:         Display title.
        original_key:  Key the sheet is written in, e.g. "G" or "Bb".
        category:      One of CATEGORIES.
        tempo:         Free-text tempo such as "76 BPM".
        lyrics:        Performance sheet (lyrics with chord lines).
        reference_url: Link to a reference recording.
        id:            Identifier from the backing store, if any.
    """

    title: str
    original_key: str
    category: str = DEFAULT_CATEGORY
    tempo: str | None = None
    lyrics: str | None = None
    reference_url: str | None = None
    id: str | None = None

    @property
    def bpm(self) -> int:
        """Numeric tempo for the metronome."""
        return parse_tempo(self.tempo)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Song":
        """
        Build a Song from a record using either snake_case or camelCase keys.

        Raises:
            ValueError: If the title or key is missing, the category is unknown,
                or a text field holds something other than a string or number.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Song record must be an object, got {type(data).__name__}.")

        title = (_text(data.get("title"), "title") or "").strip()
        if not title:
            raise ValueError("Song record is missing a title.")

        original_key = (_text(_pick(data, "original_key", "originalKey"), "original_key") or "").strip()
        if not original_key:
            raise ValueError(f"Song '{title}' is missing an original key.")

        category = _text(data.get("category"), "category") or DEFAULT_CATEGORY
        if category not in CATEGORIES:
            supported = ", ".join(CATEGORIES)
            raise ValueError(f"Song '{title}' has unknown category '{category}'. Use one of: {supported}.")

        song_id = data.get("id")
        return cls(
            title=title,
            original_key=original_key,
            category=category,
            tempo=_text(data.get("tempo"), "tempo") or None,
            lyrics=_text(data.get("lyrics"), "lyrics"),
            reference_url=_text(_pick(data, "reference_url", "referenceUrl"), "reference_url") or None,
            id=str(song_id) if song_id is not None else None,
        )


@dataclass(frozen=True)
class SheetLine:
    """One line of a transposed sheet and the chord symbols found in it."""

    text: str
    chords: list[ChordToken]


@dataclass(frozen=True)
class SheetDocument:
    """Neutral transposed-sheet representation consumed by the renderers."""

    title: str
    original_key: str
    display_key: str
    offset: int
    bpm: int
    category: str
    reference_url: str | None
    lines: list[SheetLine]

    @property
    def text(self) -> str:
        """The transposed sheet as plain text."""
        return "\n".join(line.text for line in self.lines)
