class ScribeError(Exception):
    """Base class for pipeline errors. ``status_code`` is used by the HTTP layer."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(ScribeError):
    status_code = 403


class NotFound(ScribeError):
    status_code = 404


class Conflict(ScribeError):
    status_code = 409


class DuplicateChunk(Conflict):
    pass


class PayloadTooLarge(ScribeError):
    status_code = 413


class DecodeFailed(ScribeError):
    status_code = 422


class TranscriptionFailed(ScribeError):
    status_code = 502


class SummarizationFailed(ScribeError):
    status_code = 502


class StoreError(ScribeError):
    status_code = 500
