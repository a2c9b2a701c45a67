"""Audio partitioning.

Two strategies coexist and are chosen by the caller:

``bytes``
    Mechanical byte slicing of the encoded file.  It does not look at
    container frames, so pieces after the first are usually fragments that
    only decode because the transcription service resyncs on them.  This is
    a known constraint of the strategy, not a bug to be patched here.

``duration``
    Decode, mix to mono, resample to ``settings.sample_rate`` and cut into
    fixed-length windows, each re-encoded as a standalone 16-bit PCM WAV.
"""

import os
from enum import Enum

from scribe.config import settings
from scribe.errors import PayloadTooLarge
from scribe.models import AudioPiece
from scribe.recording.audio_utils import (
    decode_audio,
    duration_seconds,
    mix_to_mono,
    resample_linear,
    samples_to_wav,
    split_samples,
)

MIME_TYPES = {
    "mp3": "audio/mpeg",
    "mp4": "audio/mp4",
    "m4a": "audio/mp4",
    "wav": "audio/wav",
    "webm": "audio/webm",
    "ogg": "audio/ogg",
    "flac": "audio/flac",
}


class SplitStrategy(str, Enum):
    BYTES = "bytes"
    DURATION = "duration"


def file_extension(filename: str, default: str = "webm") -> str:
    ext = os.path.splitext(filename)[1].lstrip(".").lower()
    return ext or default


def mime_type_for(filename: str) -> str:
    return MIME_TYPES.get(file_extension(filename, ""), "audio/webm")


def check_size(size: int, max_file_bytes: int | None = None) -> None:
    """Fail fast, before any network call, when the input is over the ceiling."""
    limit = max_file_bytes or settings.max_file_bytes
    if size > limit:
        raise PayloadTooLarge(
            f"File is too large ({size / 1024 / 1024:.0f}MB). "
            f"Maximum is {limit / 1024 / 1024:.0f}MB."
        )


def split_bytes(
    data: bytes,
    filename: str,
    *,
    max_piece_bytes: int | None = None,
    max_file_bytes: int | None = None,
) -> list[AudioPiece]:
    """Slice *data* into fixed-size byte ranges.

    A buffer at or below the piece ceiling comes back as a single piece with
    the original filename.  Concatenating the payloads of the returned pieces
    always reproduces *data* exactly.
    """
    check_size(len(data), max_file_bytes)
    piece_bytes = max_piece_bytes or settings.max_piece_bytes

    if len(data) <= piece_bytes:
        return [AudioPiece(data=data, index=0, total_pieces=1, filename=filename)]

    ext = file_extension(filename)
    pieces: list[AudioPiece] = []
    for index, offset in enumerate(range(0, len(data), piece_bytes)):
        pieces.append(
            AudioPiece(
                data=data[offset:offset + piece_bytes],
                index=index,
                total_pieces=0,  # filled in below
                filename=f"piece-{index}.{ext}",
            )
        )
    for piece in pieces:
        piece.total_pieces = len(pieces)
    return pieces


def split_duration(
    data: bytes,
    *,
    sample_rate: int | None = None,
    piece_seconds: int | None = None,
    max_file_bytes: int | None = None,
) -> list[AudioPiece]:
    """Decode and cut into ``piece_seconds`` windows of mono WAV at ``sample_rate``.

    CPU-bound; call through ``asyncio.to_thread`` from the event loop.
    Raises ``DecodeFailed`` if the container cannot be decoded.
    """
    check_size(len(data), max_file_bytes)
    rate = sample_rate or settings.sample_rate
    seconds = piece_seconds or settings.upload_piece_seconds

    raw, source_rate = decode_audio(data)
    mono = resample_linear(mix_to_mono(raw), source_rate, rate)
    windows = split_samples(mono, rate * seconds)

    return [
        AudioPiece(
            data=samples_to_wav(window, rate),
            index=index,
            total_pieces=len(windows),
            filename=f"piece-{index}.wav",
            duration_seconds=duration_seconds(len(window), rate),
        )
        for index, window in enumerate(windows)
    ]
