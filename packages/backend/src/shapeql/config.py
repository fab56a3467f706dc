"""
Configuration management for shapeql
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    # Logging
    debug: bool = False
    log_level: str = "INFO"

    # Errors
    value_repr_limit: int = 200  # chars of the unmatched value kept in UnresolvedTypeError
    mask_internal_errors: bool = False

    # Schema build
    check_discriminant_targets: bool = True

    class Config:
        env_file = ".env"
        env_prefix = "SHAPEQL_"
        case_sensitive = False


# Global settings instance
settings = Settings()
