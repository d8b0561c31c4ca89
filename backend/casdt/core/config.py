from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    APP_NAME: str = "BARMM CASDT Screening Registry"
    VERSION: str = "1.0.0"
    SECRET_KEY: str = "change-me-in-production-use-strong-random-key"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    DATABASE_URL: str = "sqlite:///./casdt.db"

    # Record store backend: "sql" (SQLAlchemy) or "supabase" (hosted)
    STORE_BACKEND: str = "sql"
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None

    SEED_DEMO_DATA: bool = True
    LOG_LEVEL: str = "INFO"

    # Analytics
    TREND_MONTHS: int = 6
    # Calendar months for the registration trend are taken in this zone
    REPORT_TIMEZONE: str = "Asia/Manila"
    SEARCH_RESULT_LIMIT: int = 500

    class Config:
        env_file = ".env"


settings = Settings()
