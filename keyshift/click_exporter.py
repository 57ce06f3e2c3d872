"""ClickTrackExporter: Writes a metronome click track as a MIDI file."""

from midiutil import MIDIFile

from keyshift.metronome import DEFAULT_BPM, clamp_bpm

# In Format 1, midiutil writes tempo and time signature to its own conductor
# track and numbers note tracks from 0 after it.
TRACK_CLICK = 0

# General MIDI reserves channel 10 (index 9) for percussion.
CHANNEL_PERCUSSION = 9

HI_WOOD_BLOCK = 76  # downbeat
LOW_WOOD_BLOCK = 77  # other beats

# midiutil encodes the time-signature denominator as a power of two.
QUARTER_NOTE_DENOMINATOR = 2


class ClickTrackExporter:
    """
    Writes a click track that musicians can rehearse against.

    Track layout (Format 1)
    -----------------------
    Track 0 — conductor track (tempo and time signature, no notes)

    Track 1 — "Click" on the GM percussion channel
        One short wood-block hit per beat. The first beat of every bar uses
        the higher, louder block so the bar line can be heard.

    Timing
    ------
    Beats are quarter notes and clicks are placed on whole beats, so the
    file plays at ``tempo`` BPM in any MIDI player.
    """

    ACCENT_VELOCITY = 110
    BEAT_VELOCITY = 80
    CLICK_DURATION = 0.25  # beats

    def __init__(self, tempo: int = DEFAULT_BPM, beats_per_bar: int = 4) -> None:
        """
        Args:
            tempo:         Click tempo in BPM; clamped to the metronome range.
            beats_per_bar: Number of quarter-note beats in each bar.

        Raises:
            ValueError: If beats_per_bar is less than 1.
        """
        if beats_per_bar < 1:
            raise ValueError(f"beats_per_bar must be at least 1, got {beats_per_bar}.")
        self.tempo = clamp_bpm(tempo)
        self.beats_per_bar = beats_per_bar

    def export(self, bars: int, output_path: str) -> None:
        """
        Render ``bars`` bars of clicks to a Standard MIDI File.

        Args:
            bars:        Number of bars to write.
            output_path: Destination file path (e.g. "click.mid").

        Raises:
            ValueError: If bars is less than 1.
            OSError:    If the output file cannot be opened for writing.
        """
        if bars < 1:
            raise ValueError(f"bars must be at least 1, got {bars}.")

        midi = MIDIFile(numTracks=1, removeDuplicates=False, deinterleave=False)

        midi.addTempo(TRACK_CLICK, 0, self.tempo)
        midi.addTimeSignature(TRACK_CLICK, 0, self.beats_per_bar, QUARTER_NOTE_DENOMINATOR, 24)
        midi.addTrackName(TRACK_CLICK, 0, "Click")

        for beat in range(bars * self.beats_per_bar):
            downbeat = beat % self.beats_per_bar == 0
            midi.addNote(
                track=TRACK_CLICK,
                channel=CHANNEL_PERCUSSION,
                pitch=HI_WOOD_BLOCK if downbeat else LOW_WOOD_BLOCK,
                time=beat,
                duration=self.CLICK_DURATION,
                volume=self.ACCENT_VELOCITY if downbeat else self.BEAT_VELOCITY,
            )

        with open(output_path, "wb") as f:
            midi.writeFile(f)
