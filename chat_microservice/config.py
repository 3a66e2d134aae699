import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env BEFORE accessing os.getenv()
load_dotenv()

DEFAULT_PUBLIC_DIR = str(Path(__file__).resolve().parent / "public")

LLM_MODES = ("mock", "stub", "openai")
PERSIST_MODES = ("background", "sync")


def _int_env(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}")


def _float_env(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Service configuration, read once at start-up."""

    database_url: str = "sqlite:///./chat_microservice.db"
    llm_mode: str = "mock"
    openai_api_key: Optional[str] = None
    openai_org_id: Optional[str] = None
    openai_model: str = "gpt-3.5-turbo"
    openai_timeout: float = 30.0
    persist_mode: str = "background"
    host: str = "0.0.0.0"
    port: int = 3000
    public_dir: str = DEFAULT_PUBLIC_DIR
    log_level: str = "INFO"
    app_env: str = "dev"

    def __post_init__(self):
        if self.llm_mode not in LLM_MODES:
            raise ValueError(f"LLM_MODE must be one of {LLM_MODES}, got {self.llm_mode!r}")
        if self.persist_mode not in PERSIST_MODES:
            raise ValueError(
                f"PERSIST_MODE must be one of {PERSIST_MODES}, got {self.persist_mode!r}"
            )
        if not 0 < self.port < 65536:
            raise ValueError(f"PORT must be between 1 and 65535, got {self.port}")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL") or cls.database_url,
            llm_mode=(os.getenv("LLM_MODE") or cls.llm_mode).lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_org_id=os.getenv("OPENAI_ORG_ID") or None,
            openai_model=os.getenv("OPENAI_MODEL") or cls.openai_model,
            openai_timeout=_float_env("OPENAI_TIMEOUT", cls.openai_timeout),
            persist_mode=(os.getenv("PERSIST_MODE") or cls.persist_mode).lower(),
            host=os.getenv("HOST") or cls.host,
            port=_int_env("PORT", cls.port),
            public_dir=os.getenv("PUBLIC_DIR") or DEFAULT_PUBLIC_DIR,
            log_level=(os.getenv("LOG_LEVEL") or cls.log_level).upper(),
            app_env=os.getenv("APP_ENV") or cls.app_env,
        )
