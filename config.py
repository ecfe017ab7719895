"""Configuration and environment settings"""

from pydantic_settings import BaseSettings
from typing import Optional, List
from pathlib import Path


class Settings(BaseSettings):
    """Application configuration"""

    # Supabase
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # Remote calls are treated as failed after this many seconds
    REMOTE_TIMEOUT_SECONDS: float = 10.0

    # Local mirror (key-value JSON file standing in for browser localStorage)
    LOCAL_STORE_PATH: str = "./data/local_store.json"

    # Output
    OUTPUT_DIR: str = "./output"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Web API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    def supabase_key(self) -> Optional[str]:
        """Service role key when present, anon key otherwise"""
        return self.SUPABASE_SERVICE_ROLE_KEY or self.SUPABASE_ANON_KEY

    def remote_configured(self) -> bool:
        """Whether both a Supabase URL and a key are available"""
        return bool(self.SUPABASE_URL and self.supabase_key())

    def get_cors_origins(self) -> List[str]:
        """Get allowed CORS origins"""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def get_output_path(self, subdir: str = "") -> Path:
        """Get output directory path"""
        path = Path(self.OUTPUT_DIR) / subdir
        path.mkdir(parents=True, exist_ok=True)
        return path


settings = Settings()
