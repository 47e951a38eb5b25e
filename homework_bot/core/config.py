from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App configuration loaded from env and .env file."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Required
    GITLAB_TOKEN: str  # PAT with `api` scope
    GITLAB_TEMPLATE_NAMESPACE: str  # group holding the homework templates
    GITLAB_HOMEWORK_NAMESPACE: str  # namespace id the forks are created in

    # Optional
    GITLAB_BASE_URL: str = "https://gitlab.com/api/v4"
    GITLAB_PER_PAGE: int = 100
    REQUEST_TIMEOUT_S: float = 30.0

    # Polling of /projects/:id/import after a fork
    FORK_POLL_ATTEMPTS: int = 60
    FORK_POLL_INTERVAL_S: float = 2.0

    # Rewrite absolute GitLab redirects to relative ones so base_url is kept
    GITLAB_REWRITE_REDIRECTS: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"  # DEBUG/INFO/WARNING/ERROR
    GITLAB_LOG_LEVEL: str = "WARNING"  # level for HTTP calls to GitLab


settings = Settings()
