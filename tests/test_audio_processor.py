"""Unit tests for AudioProcessor framing and tempo detection (downloads are faked)."""

from pathlib import Path

import numpy as np
import pytest

from keyshift import audio_processor
from keyshift.audio_processor import AudioProcessor, TempoReport, is_url

SAMPLE_RATE = 22050


class _FakeYoutubeDL:
    """Stands in for yt_dlp.YoutubeDL: writes an empty WAV where the real one would."""

    title: str | None = "King of Kings (Live)"
    writes_wav = True

    def __init__(self, options: dict) -> None:
        self.options = options

    def __enter__(self) -> "_FakeYoutubeDL":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def extract_info(self, url: str, download: bool = True) -> dict:
        assert download
        if self.writes_wav:
            Path(self.options["outtmpl"].replace("%(ext)s", "wav")).write_bytes(b"RIFF")
        return {"title": self.title} if self.title else {}


def _pulse_train(bpm: int, seconds: float, first_beat: float = 1.0) -> np.ndarray:
    """Silence with a short loud burst on every beat."""
    y = np.zeros(int(SAMPLE_RATE * seconds), dtype=np.float32)
    step = int(SAMPLE_RATE * 60 / bpm)
    for start in range(int(SAMPLE_RATE * first_beat), len(y), step):
        y[start:start + 200] = 0.9
    return y


def test_is_url() -> None:
    assert is_url("https://youtu.be/abc")
    assert is_url("http://example.com/song.mp3")
    assert not is_url("rehearsal.wav")
    assert not is_url("/tmp/https.wav")


def test_short_signal_is_padded_to_one_silent_frame() -> None:
    frames = AudioProcessor().to_byte_frames(np.zeros(100, dtype=np.float32))
    assert frames.shape == (1, 2048)
    assert frames.dtype == np.uint8
    assert np.all(frames == 128)


def test_frames_overlap_by_hop_length() -> None:
    frames = AudioProcessor(hop_length=512, frame_length=2048).to_byte_frames(
        np.ones(4096, dtype=np.float32)
    )
    assert frames.shape == (5, 2048)
    assert np.all(frames == 255)


def test_detects_tempo_of_pulse_train() -> None:
    processor = AudioProcessor()
    frames = processor.to_byte_frames(_pulse_train(bpm=120, seconds=6.0))
    hop_ms = 1000.0 * processor.hop_length / SAMPLE_RATE
    bpm = processor.detect_tempo_from_frames(frames, hop_ms)
    assert bpm is not None
    assert abs(bpm - 120) <= 3


def test_silence_has_no_tempo() -> None:
    processor = AudioProcessor()
    frames = processor.to_byte_frames(np.zeros(SAMPLE_RATE * 3, dtype=np.float32))
    assert processor.detect_tempo_from_frames(frames, 23.2) is None


def test_process_missing_local_file(tmp_path: Path) -> None:
    with AudioProcessor() as processor:
        with pytest.raises(FileNotFoundError):
            processor.process(str(tmp_path / "absent.wav"))


def test_process_local_file_reports_file_name(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    audio = tmp_path / "rehearsal.wav"
    audio.write_bytes(b"")
    processor = AudioProcessor()
    monkeypatch.setattr(processor, "detect_tempo", lambda path: 76)
    assert processor.process(str(audio)) == TempoReport(title="rehearsal.wav", bpm=76)


def test_download_audio_returns_wav_and_title(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(audio_processor.yt_dlp, "YoutubeDL", _FakeYoutubeDL)
    with AudioProcessor() as processor:
        wav_path, title = processor.download_audio("https://youtu.be/abc")
        assert wav_path.endswith(".wav")
        assert Path(wav_path).exists()
        assert title == "King of Kings (Live)"
    assert not Path(wav_path).exists()


def test_download_audio_title_falls_back_to_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(_FakeYoutubeDL, "title", None)
    monkeypatch.setattr(audio_processor.yt_dlp, "YoutubeDL", _FakeYoutubeDL)
    with AudioProcessor() as processor:
        _, title = processor.download_audio("https://youtu.be/abc")
    assert title == "https://youtu.be/abc"


def test_download_audio_without_wav_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(_FakeYoutubeDL, "writes_wav", False)
    monkeypatch.setattr(audio_processor.yt_dlp, "YoutubeDL", _FakeYoutubeDL)
    with AudioProcessor() as processor:
        with pytest.raises(FileNotFoundError, match="ffmpeg"):
            processor.download_audio("https://youtu.be/abc")


def test_process_url_downloads_first(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(audio_processor.yt_dlp, "YoutubeDL", _FakeYoutubeDL)
    with AudioProcessor() as processor:
        monkeypatch.setattr(processor, "detect_tempo", lambda path: 68)
        report = processor.process("https://youtu.be/abc")
    assert report == TempoReport(title="King of Kings (Live)", bpm=68)


def test_cleanup_removes_temp_dirs(tmp_path: Path) -> None:
    temp_dir = tmp_path / "keyshift_dl"
    temp_dir.mkdir()
    processor = AudioProcessor()
    processor._temp_dirs.append(str(temp_dir))
    processor.cleanup()
    assert not temp_dir.exists()


@pytest.mark.integration
def test_process_url_smoke() -> None:
    """Downloads a real recording; needs network access and ffmpeg."""
    url = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    with AudioProcessor() as processor:
        report = processor.process(url)
    assert report.bpm is None or 40 < report.bpm < 250
