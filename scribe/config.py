from pydantic_settings import BaseSettings

MiB = 1024 * 1024


class Settings(BaseSettings):
    # Groq
    groq_api_key: str = "gsk_placeholder"
    default_model: str = "llama-3.3-70b-versatile"
    transcription_model: str = "whisper-large-v3"

    # Transcription backend: "groq" (remote) or "local" (faster-whisper)
    transcription_backend: str = "groq"
    whisper_model: str = "small"
    whisper_device: str = "cpu"
    whisper_compute_type: str = "int8"

    # Language
    language: str = "is"
    output_language: str = "Icelandic"

    # Audio partitioning
    sample_rate: int = 16000
    upload_piece_seconds: int = 600
    live_piece_seconds: int = 20
    max_piece_bytes: int = 20 * MiB
    max_file_bytes: int = 200 * MiB
    direct_upload_max_bytes: int = 24 * MiB

    # Notes
    context_window: int = 2

    # Live stream
    stream_poll_seconds: float = 1.5

    # Storage
    database_path: str = "scribe.db"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
