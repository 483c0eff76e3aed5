"""Engine settings via Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Validation engine settings."""

    model_config = SettingsConfigDict(env_prefix="CMA_")

    max_workers: int = 1
    evaluate_structurally_broken: bool = False
    lifecycle_checks: bool = True
