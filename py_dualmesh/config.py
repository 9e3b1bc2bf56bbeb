"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings, overridable with DUALMESH_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DUALMESH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format (json or console)")

    # Triangulation
    exact_predicates: bool = Field(
        default=False,
        description="Resolve near-collinear orientation tests exactly instead of raising",
    )
    max_points: int = Field(default=1_000_000, gt=0, description="Largest accepted point set")

    # Sampling
    default_seed: str = Field(default="default", description="Seed used when none is given")
    sampler_max_attempts: int = Field(
        default=4, gt=0, description="Candidates tried around a parent before it is retired"
    )
    sampler_epsilon: float = Field(
        default=1e-7, ge=0, description="Offset added to the radius of sampled candidates"
    )


settings = Settings()
