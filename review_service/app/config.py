"""
config.py - process-wide settings, read from the environment once at startup.
"""
import os
from pathlib import Path

import soupsieve
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigError

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent.parent

PLACEHOLDER_API_KEY = "YOUR_GEMINI_API_KEY_GOES_HERE"
DEFAULT_REVIEW_SELECTOR = '[data-hook="review-body"] span'
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    gemini_api_key: str
    gemini_model: str = DEFAULT_GEMINI_MODEL
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)

    review_selector: str = DEFAULT_REVIEW_SELECTOR
    max_batch_size: int = Field(default=50, ge=1)

    fetch_timeout_seconds: float = Field(default=25.0, gt=0)
    model_timeout_seconds: float = Field(default=90.0, gt=0)
    # Caller deadline for each network stage of a run
    request_timeout_seconds: float = Field(default=120.0, gt=0)
    max_redirects: int = Field(default=5, ge=0)

    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    frontend_dist: Path = BASE_DIR / "frontend" / "dist"
    port: int = 5000

    @field_validator("review_selector")
    @classmethod
    def _selector_compiles(cls, value: str) -> str:
        try:
            soupsieve.compile(value)
        except soupsieve.SelectorSyntaxError as e:
            raise ValueError(f"invalid review selector {value!r}: {e}") from e
        return value

    @property
    def has_placeholder_key(self) -> bool:
        return self.gemini_api_key.strip() == PLACEHOLDER_API_KEY


def cors_origins_from_env(env: dict | None = None) -> list[str]:
    """CORS_ORIGINS split on commas, or the AppConfig default when unset."""
    env = os.environ if env is None else env
    origins = [o.strip() for o in (env.get("CORS_ORIGINS") or "").split(",") if o.strip()]
    return origins or list(AppConfig.model_fields["cors_origins"].default)


def load_config(env: dict | None = None) -> AppConfig:
    """
    Builds the AppConfig from environment variables (and .env).
    Raises ConfigError when GEMINI_API_KEY is missing or a value is invalid,
    so the service refuses to start instead of failing per request.
    """
    env = os.environ if env is None else env

    api_key = (env.get("GEMINI_API_KEY") or "").strip()
    if not api_key:
        raise ConfigError("GEMINI_API_KEY is missing. Check your .env or deployment env settings.")

    values: dict = {"gemini_api_key": api_key}
    optional = {
        "GEMINI_MODEL": "gemini_model",
        "GEMINI_TEMPERATURE": "temperature",
        "REVIEW_SELECTOR": "review_selector",
        "MAX_BATCH_SIZE": "max_batch_size",
        "FETCH_TIMEOUT_SECONDS": "fetch_timeout_seconds",
        "MODEL_TIMEOUT_SECONDS": "model_timeout_seconds",
        "REQUEST_TIMEOUT_SECONDS": "request_timeout_seconds",
        "MAX_REDIRECTS": "max_redirects",
        "FRONTEND_DIST": "frontend_dist",
        "PORT": "port",
    }
    for env_name, field in optional.items():
        raw = env.get(env_name)
        if raw is not None and raw.strip():
            values[field] = raw.strip()

    values["cors_origins"] = cors_origins_from_env(env)

    try:
        return AppConfig(**values)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
