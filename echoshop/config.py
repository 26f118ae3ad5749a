"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_DB_PATH = DATA_DIR / "echoshop.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_STT_URL = "https://api.groq.com/openai/v1/audio/transcriptions"


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _float_env(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    """Runtime settings read from the environment."""

    model: str = DEFAULT_MODEL
    api_host: str = "localhost"
    api_port: int = 8000
    stt_url: str = DEFAULT_STT_URL
    stt_api_key: str | None = None
    stt_model: str = "whisper-large-v3-turbo"
    tts_url: str | None = None
    tts_api_key: str | None = None
    task_wait_timeout: float = 10.0
    history_limit: int = 4
    task_retention_seconds: float | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (after load_dotenv)."""
        return cls(
            model=os.getenv("ANTHROPIC_MODEL", DEFAULT_MODEL),
            api_host=os.getenv("API_HOST", "localhost"),
            api_port=int(os.getenv("API_PORT", "8000")),
            stt_url=os.getenv("STT_URL", DEFAULT_STT_URL),
            stt_api_key=os.getenv("STT_API_KEY"),
            stt_model=os.getenv("STT_MODEL", "whisper-large-v3-turbo"),
            tts_url=os.getenv("TTS_URL") or None,
            tts_api_key=os.getenv("TTS_API_KEY"),
            task_wait_timeout=_float_env("TASK_WAIT_TIMEOUT", 10.0),
            history_limit=int(os.getenv("HISTORY_LIMIT", "4")),
            task_retention_seconds=_float_env("TASK_RETENTION_SECONDS", None),
        )
