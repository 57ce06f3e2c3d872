"""Loading and searching song collections stored as JSON."""

import json
from pathlib import Path
from typing import Any

from keyshift.song_models import Song


def _song_records(payload: Any) -> list[Any]:
    if isinstance(payload, dict) and "songs" in payload:
        payload = payload["songs"]
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        return payload
    raise ValueError("Expected a song object, a list of songs, or {\"songs\": [...]}.")


def load_songs(path: str | Path) -> list[Song]:
    """
    Read songs from a JSON file.

    The file may hold a single song object, a list of song objects, or an
    object with a "songs" list.

    Raises:
        ValueError: If the file is not valid JSON or a record is malformed.
        OSError:    If the file cannot be read.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"'{path}' is not valid JSON: {exc.msg} (line {exc.lineno}).") from exc

    return [Song.from_dict(record) for record in _song_records(payload)]


def search_songs(songs: list[Song], query: str) -> list[Song]:
    """Case-insensitive match of ``query`` against title, category or original key."""
    needle = query.strip().lower()
    if not needle:
        return list(songs)
    return [
        song
        for song in songs
        if needle in song.title.lower()
        or needle in song.category.lower()
        or needle in song.original_key.lower()
    ]


def find_song(songs: list[Song], title: str) -> Song:
    """
    Return the song whose title matches ``title`` (case-insensitive).

    Raises:
        KeyError: If no song has that title.
    """
    wanted = title.strip().lower()
    for song in songs:
        if song.title.lower() == wanted:
            return song
    raise KeyError(title)
