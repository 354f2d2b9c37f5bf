"""Application settings, read from the environment and an optional .env file"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Lodging Reservation API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Security (override SECRET_KEY in production)
    SECRET_KEY: str = "your-secret-key-keep-it-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Reservation rules
    MAX_STAY_NIGHTS: int = 30
    MAX_ADVANCE_DAYS: int = 365

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100
    DEFAULT_RESERVATION_LIMIT: int = 10
    DEFAULT_RECENT_LIMIT: int = 10
    MAX_RECENT_LIMIT: int = 50

    # Reports
    DEFAULT_OCCUPANCY_DAYS: int = 30

    # Seed demo users and rooms on startup
    SEED_DEMO_DATA: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
