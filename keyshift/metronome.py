"""Metronome: tempo parsing, tap tempo, click scheduling and peak-based tempo detection."""

import re
from collections import deque
from dataclasses import dataclass, field

import numpy as np

MIN_BPM = 20
MAX_BPM = 300
DEFAULT_BPM = 120

LOOKAHEAD_MS = 25.0            # how often a driver loop should call due_clicks()
SCHEDULE_AHEAD_SECONDS = 0.1   # how far ahead clicks are handed out
START_DELAY_SECONDS = 0.05     # gap between start() and the first click

TAP_TIMEOUT_MS = 2000


def parse_tempo(tempo: str | None) -> int:
    """
    Extract a numeric BPM from a free-text tempo, e.g. "76 BPM" -> 76.

    Returns:
        The first run of digits as an int, or DEFAULT_BPM if there is none.
    """
    if not tempo:
        return DEFAULT_BPM
    match = re.search(r"\d+", tempo)
    return int(match.group()) if match else DEFAULT_BPM


def clamp_bpm(value: int) -> int:
    """Clamp a BPM value into [MIN_BPM, MAX_BPM]."""
    return min(max(value, MIN_BPM), MAX_BPM)


def parse_bpm_input(text: str, current: int) -> int:
    """Apply a typed BPM entry: integers are clamped, anything else keeps ``current``."""
    try:
        return clamp_bpm(int(text.strip()))
    except ValueError:
        return current


class TapTempo:
    """
    Derive a BPM from the gap between two consecutive taps.

    A gap of TAP_TIMEOUT_MS or more is treated as the start of a new
    measurement rather than a very slow tempo.
    """

    def __init__(self) -> None:
        self._last_tap_ms: float | None = None

    def tap(self, now_ms: float) -> int | None:
        """
        Register a tap.

        Args:
            now_ms: Tap timestamp in milliseconds (any monotonic clock).

        Returns:
            The clamped BPM implied by the previous tap, or None.
        """
        bpm = None
        if self._last_tap_ms is not None:
            diff = now_ms - self._last_tap_ms
            if 0 < diff < TAP_TIMEOUT_MS:
                bpm = clamp_bpm(round(60000 / diff))
        self._last_tap_ms = now_ms
        return bpm


class ClickScheduler:
    """
    Look-ahead scheduler for metronome clicks.

    A driver loop calls ``due_clicks(now)`` roughly every LOOKAHEAD_MS and
    hands the returned times to an audio clock, so click timing does not
    depend on how punctually the loop itself runs:

        scheduler = ClickScheduler(bpm=76)
        scheduler.start(clock.now())
        while scheduler.is_playing:
            for t in scheduler.due_clicks(clock.now()):
                play_click(t)
            sleep(LOOKAHEAD_MS / 1000)

    The beat length is read for every click, so a tempo change takes effect
    from the next unscheduled beat.
    """

    def __init__(
        self,
        bpm: int = DEFAULT_BPM,
        schedule_ahead: float = SCHEDULE_AHEAD_SECONDS,
    ) -> None:
        self._bpm = clamp_bpm(bpm)
        self.schedule_ahead = schedule_ahead
        self.next_note_time = 0.0
        self.is_playing = False

    @property
    def bpm(self) -> int:
        return self._bpm

    @bpm.setter
    def bpm(self, value: int) -> None:
        self._bpm = clamp_bpm(value)

    @property
    def seconds_per_beat(self) -> float:
        return 60.0 / self._bpm

    def start(self, now: float) -> None:
        """Begin playing; the first click lands START_DELAY_SECONDS after ``now``."""
        self.next_note_time = now + START_DELAY_SECONDS
        self.is_playing = True

    def stop(self) -> None:
        self.is_playing = False

    def due_clicks(self, now: float) -> list[float]:
        """Return the click times falling inside the look-ahead window and advance past them."""
        if not self.is_playing:
            return []

        due: list[float] = []
        while self.next_note_time < now + self.schedule_ahead:
            due.append(self.next_note_time)
            self.next_note_time += self.seconds_per_beat
        return due


@dataclass
class PeakTempoDetector:
    """
    Estimate tempo from loud peaks in a stream of time-domain frames.

    Frames are unsigned 8-bit samples where 128 is silence, as produced by
    an analyser node or by ``AudioProcessor.load_frames``.

    Algorithm
    ---------
    1. A frame is a peak when its largest deviation from 128 exceeds
       ``threshold`` and at least ``min_gap_ms`` have passed since the last peak.
    2. The most recent ``max_peaks`` peak times are kept.
    3. Once ``min_peaks`` are held, BPM = 60000 / mean(inter-peak interval).
       Estimates outside (min_bpm, max_bpm) are ignored.
    """

    threshold: int = 45
    min_gap_ms: float = 200.0
    max_peaks: int = 8
    min_peaks: int = 4
    min_bpm: int = 40
    max_bpm: int = 250
    detected_bpm: int | None = None
    _peaks: deque[float] = field(default_factory=deque, repr=False)

    def reset(self) -> None:
        self._peaks.clear()
        self.detected_bpm = None

    def feed(self, frame: np.ndarray, now_ms: float) -> int | None:
        """
        Process one frame.

        Args:
            frame:  1-D uint8 array of time-domain samples.
            now_ms: Frame timestamp in milliseconds.

        Returns:
            The current accepted estimate (may be from an earlier frame), or None.
        """
        if frame.size == 0:
            return self.detected_bpm

        level = int(np.max(np.abs(frame.astype(np.int16) - 128)))
        if level <= self.threshold:
            return self.detected_bpm

        if self._peaks and now_ms - self._peaks[-1] <= self.min_gap_ms:
            return self.detected_bpm

        self._peaks.append(now_ms)
        if len(self._peaks) > self.max_peaks:
            self._peaks.popleft()

        if len(self._peaks) >= self.min_peaks:
            avg_interval = float(np.mean(np.diff(np.asarray(self._peaks))))
            estimate = round(60000 / avg_interval)
            if self.min_bpm < estimate < self.max_bpm:
                self.detected_bpm = estimate

        return self.detected_bpm
