import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATA_DIR = "data/store"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


@dataclass(frozen=True)
class AppConfig:
    data_dir: str = DEFAULT_DATA_DIR
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    advice_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    @property
    def advice_enabled(self) -> bool:
        return bool(self.gemini_api_key)


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """Build the config from the environment, reading ``.env`` first if present."""
    load_dotenv(env_file)

    return AppConfig(
        data_dir=os.getenv("BUDGETBOOK_DATA_DIR", DEFAULT_DATA_DIR),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        advice_timeout_seconds=float(os.getenv("ADVICE_TIMEOUT_SECONDS", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
