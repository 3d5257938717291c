# resume_revision/core/config.py
from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Record store backend: 'mongo' or 'memory'
    RECORD_STORE: str = "mongo"

    # MongoDB
    MONGODB_URI: Optional[str] = "mongodb://localhost:27017/resume_revision"
    MONGODB_DB: Optional[str] = "resume_revision"

    # LLM HTTP adapter
    LLM_TIMEOUT_SEC: int = 20
    LLM_RETRIES: int = 2
    LLM_BACKOFF_FACTOR: float = 0.5
    LLM_DEFAULT_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 800

    # Provider fan-out
    AI_MIN_REQUEST_INTERVAL_MS: int = 2000
    AI_MAX_PROVIDERS: int = 1
    # 'process' shares one throttle timestamp across every session,
    # 'session' gives each editing session its own
    AI_THROTTLE_SCOPE: str = "process"

    # editing sessions kept in memory by the HTTP layer
    SESSION_CACHE_SIZE: int = 256

    # ATS analysis
    ANALYSIS_MAX_TOKENS: int = 8000
    ANALYSIS_TEMPERATURE: float = 0.3

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

# single shared settings instance
settings = Settings()
