from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional

class Settings(BaseSettings):
    # Database settings
    database_url: str = "sqlite:///./callbudget.db"

    # "development" exposes raw storage errors in API responses
    environment: str = "development"

    # Receipt storage
    upload_dir: str = "./public/uploads"
    upload_url_prefix: str = "/uploads"
    max_receipt_size_bytes: int = 5 * 1024 * 1024
    allowed_receipt_types: List[str] = ["image/jpeg", "image/png", "application/pdf"]

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    # API client (dashboard)
    api_base_url: str = "http://localhost:8000/api/v1"
    client_max_attempts: int = 3
    client_backoff_seconds: float = 0.5

    @property
    def debug(self) -> bool:
        return self.environment.lower() == "development"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()
