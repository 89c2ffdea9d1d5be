from uuid import UUID

from pydantic_settings import BaseSettings, SettingsConfigDict

from edugate.domain.scope import UnassignedBranchPolicy


class Settings(BaseSettings):
    app_name: str = "Edugate School API"
    app_version: str = "0.1.0"
    environment: str = "development"
    frontend_url: str = "http://localhost:3000"
    database_url: str = "sqlite:///./local.db"
    redis_url: str = "redis://localhost:6379/0"

    log_level: str = "INFO"
    log_json: bool = False

    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24

    enable_rls: bool = True
    unassigned_branch_policy: UnassignedBranchPolicy = UnassignedBranchPolicy.all_branches

    demo_mode_enabled: bool = False
    demo_school_id: UUID = UUID("d0ff3e95-9b4c-4c12-989c-e5640d3cacd1")
    demo_password: str = "password123"

    cache_fresh_seconds: int = 5 * 60
    cache_retention_seconds: int = 24 * 60 * 60

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
