"""Tests for frame decoding and WAV loading."""
import numpy as np
import pytest
import soundfile as sf

from whisperwire.audio import SAMPLE_RATE, decode_frame, load_wav
from whisperwire.errors import EmptyAudioError, UnsupportedFormatError


def _frame(length: int) -> bytes:
    return bytes(i % 256 for i in range(length))


def test_decode_empty_frame_raises():
    with pytest.raises(EmptyAudioError, match="no audio data found"):
        decode_frame(b"")


def test_decode_single_byte_yields_no_samples():
    with pytest.raises(EmptyAudioError):
        decode_frame(b"\x80")


@pytest.mark.parametrize("length", [2, 3, 8, 161, 320, 1001])
def test_decode_returns_half_as_many_samples(length):
    samples = decode_frame(_frame(length))
    assert samples.dtype == np.float32
    assert len(samples) == length // 2


def test_decode_never_produces_negative_samples():
    samples = decode_frame(_frame(512))
    assert np.all(samples >= 0)


def test_decode_pins_sign_discarding_output():
    # The low byte of every shifted intermediate is zero, so each sample is
    # the negated zero branch.
    samples = decode_frame(bytes([0x00, 0xFF, 0x80, 0x7F, 0x01, 0xFE]))
    assert samples.tolist() == [0.0, 0.0, 0.0]
    assert np.all(np.signbit(samples))


def test_decode_accepts_bytearray_and_memoryview():
    data = _frame(10)
    assert len(decode_frame(bytearray(data))) == 5
    assert len(decode_frame(memoryview(data))) == 5


def test_load_wav_reads_mono_float32(tmp_path):
    path = tmp_path / "speech.wav"
    tone = (0.25 * np.sin(np.linspace(0, 20, SAMPLE_RATE))).astype(np.float32)
    sf.write(str(path), tone, SAMPLE_RATE)

    samples = load_wav(path)

    assert samples.dtype == np.float32
    assert len(samples) == SAMPLE_RATE
    assert samples == pytest.approx(tone, abs=1e-3)


def test_load_wav_rejects_wrong_sample_rate(tmp_path):
    path = tmp_path / "slow.wav"
    sf.write(str(path), np.zeros(800, dtype=np.float32), 8000)

    with pytest.raises(UnsupportedFormatError, match="unsupported sample rate: 8000"):
        load_wav(path)


def test_load_wav_rejects_stereo(tmp_path):
    path = tmp_path / "stereo.wav"
    sf.write(str(path), np.zeros((1600, 2), dtype=np.float32), SAMPLE_RATE)

    with pytest.raises(UnsupportedFormatError, match="unsupported number of channels: 2"):
        load_wav(path)


def test_load_wav_rejects_non_audio_file(tmp_path):
    path = tmp_path / "notes.wav"
    path.write_bytes(b"definitely not a RIFF header")

    with pytest.raises(UnsupportedFormatError, match="cannot decode"):
        load_wav(path)


def test_load_wav_empty_file_raises(tmp_path):
    path = tmp_path / "silent.wav"
    sf.write(str(path), np.zeros(0, dtype=np.float32), SAMPLE_RATE)

    with pytest.raises(EmptyAudioError):
        load_wav(path)
