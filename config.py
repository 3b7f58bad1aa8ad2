"""
Configuration module for the doctor scheduling engine.
Loads environment variables and provides typed configuration.
"""

from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage backend
    store_backend: Literal["memory", "supabase"] = "memory"

    # Supabase (required when store_backend is "supabase")
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # Scheduling defaults applied to new doctor profiles
    timezone: str = "Europe/Prague"
    default_slot_duration_minutes: int = 30
    default_max_appointments_per_day: Optional[int] = 20

    # Booking
    booking_timeout_seconds: float = 5.0

    # Slot cache
    slot_cache_ttl_seconds: int = 300
    cache_cleanup_interval_minutes: int = 10

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    environment: str = "development"  # development, staging, production

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_all_required(self) -> None:
        """
        Validate that settings needed by the selected backend are present.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        missing = []
        if self.store_backend == "supabase":
            for field in ("supabase_url", "supabase_key"):
                value = getattr(self, field, None)
                if not value or str(value).lower().startswith("your_"):
                    missing.append(field)

        if self.default_slot_duration_minutes <= 0:
            missing.append("default_slot_duration_minutes")

        if missing:
            raise ValueError(
                f"Missing or invalid required configuration: "
                f"{', '.join(missing)}. "
                f"Please check your .env file and ensure all required "
                f"values are set."
            )


# Global settings instance
settings = Settings()
