"""
Exam Cell Question Bank - Central Configuration Module
Pydantic V2 compatible
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    # ===== Exam Cell Backend (Configuration Provider) =====
    backend_base_url: str = "http://localhost:8080"
    configuration_path: str = "/questionbanks/configuration_details"
    backend_timeout: Optional[float] = None  # None = wait for the backend

    # ===== Image Host =====
    image_host_url: str = "https://api.cloudinary.com/v1_1"
    image_host_cloud_name: str = ""
    image_host_upload_preset: str = "Images_set"

    # ===== Database =====
    database_url: str = "sqlite:///data/examcell.db"

    # ===== JWT =====
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 480

    # ===== Builder Sessions =====
    session_ttl_seconds: int = 14400  # 4 hours of editing
    session_max_count: int = 500

    # ===== Structure Limits =====
    module_count_min: int = 1
    module_count_max: int = 10
    category_count_min: int = 1
    category_count_max: int = 10

    # ===== Question Paper Export =====
    paper_output_dir: str = "data/question_papers"
    institution_name: str = "Examination Cell"

    # ===== Rate Limiting =====
    rate_limit_enabled: bool = True

    # ===== Frontend URL (for CORS) =====
    frontend_url: str = "http://localhost:5173"

    # ===== Application =====
    debug: bool = False
    log_level: str = "INFO"

    # Pydantic V2 Modern Config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Don't error on extra env vars
    )


@lru_cache()
def get_settings() -> Settings:
    """Singleton settings instance"""
    return Settings()
