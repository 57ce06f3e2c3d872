"""AudioProcessor: Fetches reference recordings and detects their tempo."""

import os
import shutil
import tempfile
from dataclasses import dataclass

import librosa
import numpy as np
import yt_dlp

from keyshift.metronome import PeakTempoDetector


@dataclass(frozen=True)
class TempoReport:
    """Tempo analysis of one recording; ``bpm`` is None when no steady pulse was found."""

    title: str
    bpm: int | None


def is_url(source: str) -> bool:
    """True if ``source`` looks like an http(s) URL rather than a local path."""
    return source.startswith(("http://", "https://"))


class AudioProcessor:
    """
    Downloads reference audio with yt-dlp, loads it with librosa and runs the
    metronome's peak detector over it to suggest a tempo for a song.

    Usage as a context manager ensures all temporary files are cleaned up:

        with AudioProcessor() as processor:
            report = processor.process(song.reference_url)
    """

    def __init__(self, hop_length: int = 512, frame_length: int = 2048) -> None:
        """
        Args:
            hop_length:   Samples between consecutive analysis frames.
            frame_length: Samples per analysis frame.
        """
        self.hop_length = hop_length
        self.frame_length = frame_length
        self._temp_dirs: list[str] = []

    def download_audio(self, url: str) -> tuple[str, str]:
        """
        Fetch a reference recording and convert it to WAV in one yt-dlp pass.

        Returns:
            A 2-tuple of the WAV path and the recording's title (the URL
            itself when the extractor reports no title).

        Raises:
            FileNotFoundError: If no WAV file was produced (usually a missing ffmpeg).
            yt_dlp.utils.DownloadError: If yt-dlp cannot retrieve the recording.
        """
        temp_dir = tempfile.mkdtemp(prefix="keyshift_")
        self._temp_dirs.append(temp_dir)
        stem = os.path.join(temp_dir, "reference")

        options = {
            "format": "bestaudio/best",
            "outtmpl": f"{stem}.%(ext)s",
            "noplaylist": True,
            "postprocessors": [{"key": "FFmpegExtractAudio", "preferredcodec": "wav"}],
            "quiet": True,
            "no_warnings": True,
        }
        with yt_dlp.YoutubeDL(options) as ydl:
            info = ydl.extract_info(url, download=True)

        wav_path = f"{stem}.wav"
        if not os.path.exists(wav_path):
            raise FileNotFoundError(f"No WAV file was produced for '{url}'; is ffmpeg on your PATH?")

        title = info.get("title") if isinstance(info, dict) else None
        return wav_path, str(title or url)

    def to_byte_frames(self, y: np.ndarray) -> np.ndarray:
        """
        Slice a mono float signal into overlapping 8-bit time-domain frames.

        Samples in [-1, 1] are mapped to 0..255 with silence at 128, the
        format PeakTempoDetector expects.

        Returns:
            uint8 array of shape (n_frames, frame_length).
        """
        if len(y) < self.frame_length:
            y = np.pad(y, (0, self.frame_length - len(y)))

        frames = librosa.util.frame(y, frame_length=self.frame_length, hop_length=self.hop_length)
        scaled = np.clip(np.round(128 + frames * 128), 0, 255)
        return scaled.astype(np.uint8).T

    def load_frames(self, audio_path: str) -> tuple[np.ndarray, float]:
        """
        Load an audio file and cut it into 8-bit analysis frames.

        Returns:
            A 2-tuple:
              - frames (np.ndarray): shape (n_frames, frame_length), uint8.
              - hop_ms (float): milliseconds between frame starts.
        """
        y, sr = librosa.load(audio_path, mono=True)
        hop_ms = 1000.0 * self.hop_length / sr
        return self.to_byte_frames(y), hop_ms

    def detect_tempo_from_frames(self, frames: np.ndarray, hop_ms: float) -> int | None:
        """
        Run the peak detector over consecutive frames.

        Returns:
            BPM in the detector's accepted range, or None if no steady pulse
            was found.
        """
        detector = PeakTempoDetector()
        for index, frame in enumerate(frames):
            detector.feed(frame, index * hop_ms)
        return detector.detected_bpm

    def detect_tempo(self, audio_path: str) -> int | None:
        """Estimate the tempo of a local audio file."""
        frames, hop_ms = self.load_frames(audio_path)
        return self.detect_tempo_from_frames(frames, hop_ms)

    def process(self, source: str) -> TempoReport:
        """
        Full pipeline: download ``source`` first if it is a URL, then detect its tempo.

        Raises:
            FileNotFoundError: If a local ``source`` does not exist.
        """
        if is_url(source):
            audio_path, title = self.download_audio(source)
        else:
            if not os.path.exists(source):
                raise FileNotFoundError(f"Audio file not found: '{source}'.")
            audio_path, title = source, os.path.basename(source)
        return TempoReport(title=title, bpm=self.detect_tempo(audio_path))

    def cleanup(self) -> None:
        """Remove all temporary directories created during processing."""
        for temp_dir in self._temp_dirs:
            shutil.rmtree(temp_dir, ignore_errors=True)
        self._temp_dirs.clear()

    def __enter__(self) -> "AudioProcessor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()
