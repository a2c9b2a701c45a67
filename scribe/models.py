from dataclasses import asdict, dataclass
from enum import Enum


class Profile(str, Enum):
    MEETING = "meeting"
    LECTURE = "lecture"
    INTERVIEW = "interview"
    FREEFORM = "freeform"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Session:
    id: str
    owner_id: str
    name: str
    profile: Profile
    status: SessionStatus
    final_summary: str | None
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row) -> "Session":
        data = dict(row)
        data["profile"] = Profile(data["profile"])
        data["status"] = SessionStatus(data["status"])
        return cls(**data)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["profile"] = self.profile.value
        data["status"] = self.status.value
        return data


@dataclass
class Chunk:
    id: str
    session_id: str
    seq: int
    transcript: str
    duration_seconds: int
    created_at: str

    @classmethod
    def from_row(cls, row) -> "Chunk":
        return cls(**dict(row))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Note:
    id: str
    session_id: str
    chunk_id: str | None  # informational only; survives chunk deletion
    content: str
    rolling_summary: str
    created_at: str

    @classmethod
    def from_row(cls, row) -> "Note":
        return cls(**dict(row))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ChunkResult:
    """Output of processing one audio piece. All fields empty when nothing was heard."""

    transcript: str = ""
    notes: str = ""
    rolling_summary: str = ""
    chunk_id: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.chunk_id

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AudioPiece:
    """One bounded unit of audio produced by a splitter or the live recorder."""

    data: bytes
    index: int
    total_pieces: int
    filename: str
    duration_seconds: int = 0
