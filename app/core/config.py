# File: app/core/config.py

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class Settings(BaseModel):
    # Basic app info
    app_name: str = "Roomify API"

    PROJECT_NAME: str = "Roomify API"
    VERSION: str = "0.1.0"

    api_prefix: str = "/api"
    debug: bool = os.getenv("ROOMIFY_DEBUG", "false").lower() == "true"
    log_level: str = os.getenv("ROOMIFY_LOG_LEVEL", "INFO")

    # CORS
    backend_cors_origins: List[str] = Field(
        default=os.getenv("ROOMIFY_CORS_ORIGINS", "*"),
        validate_default=True,
    )

    # Database (users, tokens, key-value entries, hosted sites)
    database_url: str = os.getenv("ROOMIFY_DATABASE_URL", "sqlite:///./roomify.db")

    # Hosted files live under <storage_root>/<user uuid>/<hosting_root_dir>/...
    storage_root: str = os.getenv("ROOMIFY_STORAGE_ROOT", "storage")
    hosting_root_dir: str = "roomify-hosting"
    hosting_domain: str = os.getenv("ROOMIFY_HOSTING_DOMAIN", "puter.site")

    # Key-value keys
    hosting_config_key: str = "roomify_hosting_config"
    project_key_prefix: str = "roomify_project_"

    # Worker API used by the project store client
    worker_base_url: Optional[str] = os.getenv("ROOMIFY_WORKER_URL") or None

    # Image generation backend
    ai_api_url: Optional[str] = os.getenv("ROOMIFY_AI_API_URL") or None
    ai_api_key: Optional[str] = os.getenv("ROOMIFY_AI_API_KEY") or None
    render_dimension: int = 1024
    generation_timeout_seconds: float = float(os.getenv("ROOMIFY_GENERATION_TIMEOUT", "90"))
    http_timeout_seconds: float = 60.0

    @field_validator("backend_cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, list):
            return v
        return []


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
