"""
Application configuration using Pydantic settings.

All configurable values are loaded from environment variables with sensible defaults.
Scoring constants live here so that content authors can tune a recipe's
difficulty without touching the engine.
"""
from pathlib import Path
from typing import List, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the directory containing this config file (masala_chef/)
_PACKAGE_DIR = Path(__file__).parent.resolve()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App metadata
    app_name: str = "Masala Chef Engine"
    app_version: str = "0.1.0"
    debug: bool = False

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL

    # Recipe used when a session is created without an explicit key
    default_recipe: str = "aloo_bhujia"

    # Per-step scoring
    step_base_points: int = 10  # Awarded for every completed step
    preferred_option_bonus: int = 5  # Chosen option equals the preferred option
    order_penalty: int = 2  # Step completed out of canonical order
    quantity_penalty: int = 3  # Chosen option differs from the preferred option

    # End-of-session reconciliation
    missing_ingredient_penalty: int = 10  # Per required ingredient never added
    time_bonus_points_per_minute: int = 5  # Per minute under the expected duration

    # Configuration defects (unknown action / ingredient in an attempt) raise
    # instead of degrading to a generic rejection. Defaults to `debug`.
    strict_content_checks: Optional[bool] = None

    # HTTP session registry
    max_active_sessions: int = 1000  # 0 = unlimited

    # CORS - development defaults for the game client, override via CORS_ORIGINS env var for production
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    @model_validator(mode="after")
    def validate_scoring_constants(self) -> "Settings":
        """Scoring constants are magnitudes; the ledger applies the sign."""
        for name in (
            "step_base_points",
            "preferred_option_bonus",
            "order_penalty",
            "quantity_penalty",
            "missing_ingredient_penalty",
            "time_bonus_points_per_minute",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.strict_content_checks is None:
            self.strict_content_checks = self.debug
        return self

    model_config = SettingsConfigDict(
        env_file=_PACKAGE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


def get_settings(**overrides) -> Settings:
    """
    Factory function to create Settings instance.

    Useful for testing where you need to override specific values
    without modifying environment variables.

    Args:
        **overrides: Key-value pairs to override default settings

    Returns:
        Settings instance with overrides applied

    Example:
        test_settings = get_settings(debug=True, order_penalty=5)
    """
    return Settings(**overrides)


# Global settings instance (lazy initialization for testability)
# In tests, you can reload this module or use get_settings() directly
settings = get_settings()
