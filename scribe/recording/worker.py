import logging
import threading
from typing import Callable

import numpy as np

from scribe.config import settings
from scribe.models import AudioPiece
from scribe.recording.audio_utils import (
    compute_chunk_boundaries,
    duration_seconds,
    samples_to_wav,
)

logger = logging.getLogger(__name__)

PieceCallback = Callable[[AudioPiece], None]


class RecordingWorker:
    """Server-side microphone capture for one live session.

    Audio arrives on sounddevice's C thread and is only buffered there.  A
    daemon thread wakes once a second, cuts each full ``live_piece_seconds``
    window into a mono WAV piece and hands it to the ``on_piece`` callbacks.
    Callbacks therefore run on that daemon thread; the recording route uses
    ``asyncio.run_coroutine_threadsafe`` to get back onto the event loop.

    Piece indexes count up from 0 in capture order and are used as ``seq``.
    """

    def __init__(self, session_id: str, piece_seconds: int | None = None) -> None:
        self.session_id = session_id
        self.sample_rate = settings.sample_rate
        self.samples_per_piece = self.sample_rate * (piece_seconds or settings.live_piece_seconds)

        self._lock = threading.Lock()
        self._blocks: list[np.ndarray] = []
        self._captured = 0

        # absolute sample offsets; worker thread only.
        # _base is where the buffer starts; audio before _cut_at was emitted
        self._base = 0
        self._cut_at = 0
        self._next_index = 0

        self._stop = threading.Event()
        self._stream = None
        self._thread: threading.Thread | None = None
        self._callbacks: list[PieceCallback] = []

    def on_piece(self, fn: PieceCallback) -> None:
        self._callbacks.append(fn)

    def start(self) -> None:
        """Open the default input device and begin cutting pieces."""
        import sounddevice as sd  # needs PortAudio; only loaded when recording

        self._stream = sd.InputStream(
            samplerate=self.sample_rate,
            channels=1,
            dtype="float32",
            blocksize=1024,
            callback=self._audio_callback,
        )
        self._stream.start()
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._worker_loop, name=f"recording-{self.session_id}", daemon=True
        )
        self._thread.start()
        logger.info("Recording started for session %s", self.session_id)

    def stop(self) -> None:
        """Close the device, join the loop and emit the trailing partial piece."""
        self._stop.set()
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        if self._thread is not None:
            self._thread.join(timeout=10)
            self._thread = None
        self._flush_remaining()
        logger.info(
            "Recording stopped for session %s after %d piece(s)",
            self.session_id, self._next_index,
        )

    @property
    def is_running(self) -> bool:
        return self._thread is not None and not self._stop.is_set()

    @property
    def pieces_emitted(self) -> int:
        return self._next_index

    @property
    def total_duration_seconds(self) -> float:
        with self._lock:
            return self._captured / self.sample_rate

    def _audio_callback(self, indata: np.ndarray, frames: int, timeinfo, status) -> None:  # noqa: ANN001
        # C audio thread: buffer only
        with self._lock:
            self._blocks.append(indata.copy())
            self._captured += frames

    def _worker_loop(self) -> None:
        while not self._stop.wait(1.0):
            self._maybe_flush_pieces()

    def _buffered_audio(self) -> np.ndarray | None:
        """Samples from ``_base`` on, as one flat array. Caller holds the lock."""
        if not self._blocks:
            return None
        audio = np.concatenate([b.reshape(-1) for b in self._blocks])
        self._blocks = [audio]
        return audio

    def _captured_audio(self) -> np.ndarray | None:
        with self._lock:
            return self._buffered_audio()

    def _discard_emitted(self) -> None:
        with self._lock:
            audio = self._buffered_audio()
            if audio is None:
                return
            self._blocks = [audio[self._cut_at - self._base:]]
            self._base = self._cut_at

    def _maybe_flush_pieces(self) -> None:
        with self._lock:
            captured = self._captured

        windows = compute_chunk_boundaries(captured, self._cut_at, self.samples_per_piece)
        if not windows:
            return
        audio = self._captured_audio()
        if audio is None:
            return

        for start, end in windows:
            if end - self._base > len(audio):
                break
            self._emit(audio[start - self._base:end - self._base])
            self._cut_at = end
        self._discard_emitted()

    def _flush_remaining(self) -> None:
        audio = self._captured_audio()
        if audio is None:
            return
        tail = audio[self._cut_at - self._base:]
        if len(tail) < self.sample_rate:
            return  # under 1 second
        self._emit(tail)
        self._cut_at = self._base + len(audio)
        self._discard_emitted()

    def _emit(self, samples: np.ndarray) -> None:
        index = self._next_index
        self._next_index += 1
        piece = AudioPiece(
            data=samples_to_wav(samples, self.sample_rate),
            index=index,
            total_pieces=0,
            filename=f"piece-{index}.wav",
            duration_seconds=duration_seconds(len(samples), self.sample_rate),
        )
        for fn in self._callbacks:
            try:
                fn(piece)
            except Exception:
                logger.exception("Piece callback failed for session %s", self.session_id)
