"""Audio decoding: streamed companded frames and WAV files."""
from pathlib import Path
from typing import Union

import numpy as np
import soundfile as sf

from .errors import EmptyAudioError, UnsupportedFormatError

SAMPLE_RATE = 16000
_INT16_SCALE = float(2 ** 15)


def decode_frame(buffer: bytes) -> np.ndarray:
    """Convert one PCMU-like network frame into float32 samples.

    Every byte is re-centred and shifted into a 16-bit intermediate, then each
    pair of intermediates is re-read as a little-endian int16 from their low
    bytes. Non-positive values are negated, so no sample is ever negative.
    Returns floor(len(buffer) / 2) samples.

    Raises:
        EmptyAudioError: If the frame yields no samples.
    """
    raw = np.frombuffer(bytes(buffer), dtype=np.uint8)
    pcm = (raw.astype(np.int16) - 128) << 8

    count = len(pcm) // 2
    low = (pcm[: count * 2] & 0xFF).astype(np.uint16).reshape(-1, 2)
    words = (low[:, 0] | (low[:, 1] << 8)).astype(np.uint16).view(np.int16)

    scaled = words.astype(np.float32) / np.float32(_INT16_SCALE)
    samples = np.where(words > 0, scaled, -scaled).astype(np.float32)

    if len(samples) == 0:
        raise EmptyAudioError("no audio data found")
    return samples


def load_wav(path: Union[str, Path], sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Read a mono WAV file at the recognizer's sample rate.

    Raises:
        UnsupportedFormatError: Unreadable container, wrong rate or channels.
        EmptyAudioError: The file holds no samples.
    """
    try:
        with sf.SoundFile(str(path)) as fh:
            if fh.samplerate != sample_rate:
                raise UnsupportedFormatError(f"unsupported sample rate: {fh.samplerate}")
            if fh.channels != 1:
                raise UnsupportedFormatError(f"unsupported number of channels: {fh.channels}")
            data = fh.read(dtype="float32")
    except sf.LibsndfileError as e:
        raise UnsupportedFormatError(f"cannot decode {path}: {e}") from e

    if len(data) == 0:
        raise EmptyAudioError(f"no audio data found in {path}")
    return np.ascontiguousarray(data, dtype=np.float32)
