from pathlib import Path

from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parents[2]

class Settings(BaseSettings):
    PROJECT_NAME: str = "Venue Booking Backend"
    API_V1_STR: str = "/api"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"

    # Security
    ADMIN_TOKEN: str = ""

    # Storage: "supabase" or "memory"
    STORAGE_BACKEND: str = "supabase"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    BOOKINGS_TABLE: str = "bookings"

    # Booking rules
    RATE_LIMIT_WINDOW_HOURS: int = 24
    DEFAULT_REJECTION_REASON: str = "The requested dates are not available for booking"

    # Venue
    VENUE_CONFIG_PATH: str = str(PROJECT_ROOT / "data" / "venue_config.json")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
