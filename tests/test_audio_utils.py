import io

import numpy as np
import soundfile as sf

from scribe.recording.audio_utils import (
    compute_chunk_boundaries,
    duration_seconds,
    mix_to_mono,
    resample_linear,
    samples_to_wav,
    split_samples,
)


def test_mix_to_mono_averages_channels() -> None:
    stereo = np.array([[1.0, 0.0], [0.5, 0.5], [-1.0, 1.0]], dtype=np.float32)
    np.testing.assert_allclose(mix_to_mono(stereo), [0.5, 0.5, 0.0])


def test_mix_to_mono_passes_mono_through() -> None:
    mono = np.array([0.1, 0.2], dtype=np.float32)
    np.testing.assert_allclose(mix_to_mono(mono), mono)


def test_resample_linear_interpolates_between_neighbours() -> None:
    samples = np.array([0.0, 1.0, 2.0, 3.0], dtype=np.float32)
    # 4 Hz -> 8 Hz doubles the length with midpoints in between
    out = resample_linear(samples, 4, 8)
    assert len(out) == 8
    np.testing.assert_allclose(out[:7], [0.0, 0.5, 1.0, 1.5, 2.0, 2.5, 3.0])


def test_resample_linear_downsamples_to_expected_length() -> None:
    samples = np.zeros(48000, dtype=np.float32)
    assert len(resample_linear(samples, 48000, 16000)) == 16000


def test_resample_linear_same_rate_is_identity() -> None:
    samples = np.array([0.3, -0.3], dtype=np.float32)
    assert resample_linear(samples, 16000, 16000) is samples


def test_split_samples_last_window_may_be_short() -> None:
    windows = split_samples(np.arange(10), 4)
    assert [len(w) for w in windows] == [4, 4, 2]
    np.testing.assert_array_equal(np.concatenate(windows), np.arange(10))


def test_duration_seconds_rounds_up() -> None:
    assert duration_seconds(16000, 16000) == 1
    assert duration_seconds(16001, 16000) == 2
    assert duration_seconds(0, 16000) == 0


def test_samples_to_wav_is_16bit_pcm_and_clips() -> None:
    samples = np.array([0.0, 0.5, 2.0, -2.0], dtype=np.float32)
    data = samples_to_wav(samples, 16000)

    assert data[:4] == b"RIFF"
    assert data[8:12] == b"WAVE"
    decoded, rate = sf.read(io.BytesIO(data), dtype="int16")
    assert rate == 16000
    assert decoded[2] >= 32766
    assert decoded[3] <= -32767


def test_compute_chunk_boundaries_only_complete_windows() -> None:
    assert compute_chunk_boundaries(100, 0, 40) == [(0, 40), (40, 80)]
    assert compute_chunk_boundaries(100, 80, 40) == []
    assert compute_chunk_boundaries(120, 80, 40) == [(80, 120)]
