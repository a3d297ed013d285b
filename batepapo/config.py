"""
Application settings, read from the environment and an optional .env file.
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    DATABASE_URL: str = 'mongodb://localhost:27017/batepapo'
    # used when DATABASE_URL names no database
    DATABASE_NAME: str = 'batepapo'

    HOST: str = '0.0.0.0'
    PORT: int = 5000
    LOG_LEVEL: str = 'INFO'
    CORS_ORIGINS: List[str] = ['*']

    # Presence
    INACTIVITY_THRESHOLD_MS: int = 10_000
    SWEEP_INTERVAL_MS: int = 15_000
    SHUTDOWN_GRACE_S: float = 5.0
