from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    PROJECT_NAME: str = "Voucher Sheets"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # Database
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    NEXT_PUBLIC_SUPABASE_URL: Optional[str] = None
    SHEETS_TABLE: str = "voucher_sheets"

    # Which sheet store backs the API: auto, memory or supabase
    SHEET_STORE: str = "auto"

    # Editing sessions with no unsaved edits are dropped after this many idle seconds
    SESSION_IDLE_SECONDS: int = 1800

    # Export
    EXPORT_FILENAME: str = "voucher-data.csv"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://localhost:8000",
        ]
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_JSON: bool = False
    LOG_TO_FILE: bool = True

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env


from dotenv import load_dotenv
load_dotenv()

settings = Settings()
