"""
Configuration for the File Search Q&A service.

All tunables are read from the environment ONCE at startup into a
Settings object, which is then passed to every collaborator.
Nothing else in the code base reads os.environ.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ========== GENERATION ==========

DEFAULT_MODEL = "gemini-2.5-flash"

# Slide deck generation wants deterministic, well-formed JSON
SLIDES_TEMPERATURE = 0.1
SLIDES_MAX_OUTPUT_TOKENS = 4096


# ========== POLLING ==========

# File processing after upload: 1s x 30 = 30s ceiling
FILE_POLL_MAX_ATTEMPTS = 30
FILE_POLL_INTERVAL = 1.0

# Store import after upload: 5s x 30 = 150s ceiling
IMPORT_POLL_MAX_ATTEMPTS = 30
IMPORT_POLL_INTERVAL = 5.0


# ========== UPLOADS ==========

MAX_UPLOAD_MB = 100
DEFAULT_MIME_TYPE = "application/octet-stream"
DEFAULT_STORE_DISPLAY_NAME = "My Knowledge Base"


# ========== SLIDES EXPORT ==========

SLIDES_SCOPES = [
    "https://www.googleapis.com/auth/presentations",
    "https://www.googleapis.com/auth/drive",
]

SLIDES_PREVIEW_COUNT = 2


class Settings(BaseSettings):
    """
    Process-wide configuration, assembled once in the startup hook.

    The two poll budgets are independent on purpose: file processing
    is usually fast, store import is not.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Credential for outbound Gemini calls
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")

    # Service-endpoint override (unused in production)
    gemini_base_url: Optional[str] = Field(default=None, alias="GEMINI_BASE_URL")

    generation_model: str = Field(default=DEFAULT_MODEL, alias="GEMINI_MODEL")

    file_poll_max_attempts: int = Field(
        default=FILE_POLL_MAX_ATTEMPTS, ge=1, alias="FILE_POLL_MAX_ATTEMPTS"
    )
    file_poll_interval: float = Field(
        default=FILE_POLL_INTERVAL, ge=0, alias="FILE_POLL_INTERVAL"
    )

    import_poll_max_attempts: int = Field(
        default=IMPORT_POLL_MAX_ATTEMPTS, ge=1, alias="IMPORT_POLL_MAX_ATTEMPTS"
    )
    import_poll_interval: float = Field(
        default=IMPORT_POLL_INTERVAL, ge=0, alias="IMPORT_POLL_INTERVAL"
    )

    max_upload_mb: float = Field(default=MAX_UPLOAD_MB, gt=0, alias="MAX_UPLOAD_MB")

    default_store_display_name: str = DEFAULT_STORE_DISPLAY_NAME

    # Store used by POST /slides when the caller names none
    default_file_search_store: Optional[str] = Field(
        default=None, alias="GEMINI_FILE_SEARCH_STORE"
    )

    # Service-account key file for the Slides API
    google_application_credentials: Optional[str] = Field(
        default=None, alias="GOOGLE_APPLICATION_CREDENTIALS"
    )

    posthog_api_key: Optional[str] = Field(default=None, alias="POSTHOG_API_KEY")
    posthog_host: str = Field(default="https://app.posthog.com", alias="POSTHOG_HOST")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="LOG_DIR")

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, with keyword overrides for tests."""
    return Settings(**overrides)
