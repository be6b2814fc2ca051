from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Probe battery (read once at startup, absolute or relative to CWD)
    battery_path: str = "probes.yaml"

    # Result store: "sqlite" | "postgres"
    result_store: str = "sqlite"
    sqlite_path: str = ""  # empty = data/sanity.db next to the package
    database_url: str = "postgresql://localhost:5432/sanity_results_db"

    # Transport timeouts (the runner itself imposes none)
    probe_timeout_seconds: float = 30.0
    validator_connect_timeout: int = 10

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000

    # Logging
    log_level: str = "INFO"


settings = Settings()
