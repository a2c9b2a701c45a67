from scribe.recording.worker import RecordingWorker

__all__ = ["RecordingWorker"]
