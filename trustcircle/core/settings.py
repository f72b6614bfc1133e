from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Core
    app_name: str = "Circle of Trust API"
    environment: str = "development"
    database_url: str = "sqlite:///./trustcircle.db"  # Override in production

    # Membership cache / store
    cache_ttl_seconds: float = 60
    store_timeout_seconds: float = 100

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Rate limiting
    rate_limit_default: str = "200/minute"

    # CORS
    cors_allow_origins: str = "http://localhost:8501,http://127.0.0.1:8501"
    cors_allow_methods: List[str] = ["GET", "POST", "OPTIONS"]
    cors_allow_headers: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False

settings = Settings()
