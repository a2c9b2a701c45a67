import io
import math

import numpy as np
import soundfile as sf

from scribe.errors import DecodeFailed


def samples_to_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """Encode mono float32 samples as a 16-bit PCM WAV file (Whisper-compatible).

    Samples are clipped to [-1, 1] first so loud input saturates instead of wrapping.
    """
    buf = io.BytesIO()
    clipped = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    sf.write(buf, clipped, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def decode_audio(data: bytes) -> tuple[np.ndarray, int]:
    """Decode an encoded audio file into ``(frames x channels, sample_rate)`` float32."""
    try:
        samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    except (RuntimeError, TypeError) as e:  # LibsndfileError is a RuntimeError
        raise DecodeFailed(f"Could not decode audio: {e}") from e
    return samples, sample_rate


def mix_to_mono(samples: np.ndarray) -> np.ndarray:
    """Average all channels. Accepts 1-D (already mono) or frames x channels."""
    if samples.ndim == 1:
        return samples.astype(np.float32, copy=False)
    return samples.mean(axis=1).astype(np.float32)


def resample_linear(samples: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """Resample mono samples by linear interpolation between neighbouring samples."""
    if source_rate == target_rate or len(samples) == 0:
        return samples
    ratio = source_rate / target_rate
    new_length = int(round(len(samples) / ratio))
    positions = np.arange(new_length) * ratio
    return np.interp(positions, np.arange(len(samples)), samples).astype(np.float32)


def split_samples(samples: np.ndarray, samples_per_piece: int) -> list[np.ndarray]:
    """Slice into consecutive windows of *samples_per_piece*; the last may be shorter."""
    return [
        samples[start:start + samples_per_piece]
        for start in range(0, len(samples), samples_per_piece)
    ]


def duration_seconds(num_samples: int, sample_rate: int) -> int:
    return math.ceil(num_samples / sample_rate)


def compute_chunk_boundaries(
    total_samples: int,
    last_chunk_end: int,
    samples_per_chunk: int,
) -> list[tuple[int, int]]:
    """Return (start, end) sample offsets for every complete chunk since *last_chunk_end*.

    Pure function.  The worker calls this every second;
    if fewer than *samples_per_chunk* new samples have accumulated, returns [].
    """
    boundaries: list[tuple[int, int]] = []
    pos = last_chunk_end
    while pos + samples_per_chunk <= total_samples:
        boundaries.append((pos, pos + samples_per_chunk))
        pos += samples_per_chunk
    return boundaries
