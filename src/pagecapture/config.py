"""Configuration system for pagecapture."""

import logging
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Public naming contract for flattened output
FLATTEN_ID_ATTRIBUTE = 'data-flatten-id'
WRAPPER_SUFFIX = '-flat'

DEFAULT_CLEANUP_SELECTORS = ['.ads', '.cookie', '.footer', 'footer']


def _split_selectors(value: str) -> list[str]:
    return [part.strip() for part in value.split(',') if part.strip()]


class EnvConfig(BaseSettings):
    """Capture defaults read from the environment or a .env file.

    Feeds CaptureSettings.from_env. Process-wide switches (logging level,
    debug) live on Config instead.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='allow'
    )

    # Flattening
    PAGECAPTURE_ID_PREFIX: str = Field(default='f')

    # Sanitizers
    PAGECAPTURE_CLEANUP_SELECTORS: str = Field(default=', '.join(DEFAULT_CLEANUP_SELECTORS))
    PAGECAPTURE_DEFAULT_LANG: str = Field(default='en')


class FlattenSettings(BaseModel):
    """Knobs for the shadow flattening pass.

    The defaults are the naming contract consumers rely on; override them only
    in tests or when a downstream stylesheet expects something else.
    """

    model_config = ConfigDict(frozen=True)

    id_attribute: str = FLATTEN_ID_ATTRIBUTE
    wrapper_suffix: str = WRAPPER_SUFFIX
    id_prefix: str = 'f'
    id_length: int = Field(default=12, ge=4, le=32)
    max_attempts: int = Field(default=16, ge=1)

    @field_validator('id_attribute', 'wrapper_suffix')
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError('must not be blank')
        return value


class CaptureSettings(BaseModel):
    """Which preprocessing steps run, and with what parameters."""

    cleanup_selectors: list[str] = Field(default_factory=lambda: list(DEFAULT_CLEANUP_SELECTORS))
    default_lang: str = 'en'
    prepare_images: bool = True
    flatten_shadow_dom: bool = True
    cleanup: bool = True
    code_style: bool = False
    refresh_icons: bool = True
    chapter_titles: bool = True
    flatten: FlattenSettings = Field(default_factory=FlattenSettings)

    @classmethod
    def from_env(cls) -> 'CaptureSettings':
        env = EnvConfig()
        return cls(
            cleanup_selectors=_split_selectors(env.PAGECAPTURE_CLEANUP_SELECTORS),
            default_lang=env.PAGECAPTURE_DEFAULT_LANG,
            flatten=FlattenSettings(id_prefix=env.PAGECAPTURE_ID_PREFIX),
        )


class Config:
    """Configuration class backed by the environment.

    Holds the process-wide switches (logging level, debug mode) and re-reads
    the environment on every access.
    """

    _instance: 'Config | None' = None

    def __new__(cls) -> 'Config':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def LOGGING_LEVEL(self) -> str:
        return os.getenv('PAGECAPTURE_LOGGING_LEVEL', 'info').lower()

    @property
    def DEBUG(self) -> bool:
        return os.getenv('PAGECAPTURE_DEBUG', '').lower() in ('1', 'true', 'yes', 'on')


CONFIG = Config()
