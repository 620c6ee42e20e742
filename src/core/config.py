from functools import lru_cache
import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists, for local development
# In production, environment variables should be set directly.
if os.path.exists(".env"):
    from dotenv import load_dotenv
    load_dotenv()


class AppSettings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./persona.db"
    database_echo: bool = False
    redis_url: str = "redis://localhost:6379/0"
    log_level: str = "INFO"
    password_pepper: str = ""
    assessment_cache_ttl: int = 3600
    assessment_file: str = "assets/mbti_assessment.yml"

    model_config = SettingsConfigDict(env_prefix='APP_')


class ScoringSettings(BaseSettings):
    closeness_threshold: float = Field(20, ge=0)
    max_alternatives: int = Field(2, ge=0, le=4)

    model_config = SettingsConfigDict(env_prefix='SCORING_')


@lru_cache
def get_app_settings() -> AppSettings:
    return AppSettings()


@lru_cache
def get_scoring_settings() -> ScoringSettings:
    return ScoringSettings()
