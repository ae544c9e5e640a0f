from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "ShopFloor Planner API"
    # Comma-separated origins for CORS (e.g. tauri://localhost,http://localhost:1420). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    # Embedded store by default; the desktop shell points this at its app-data directory.
    DATABASE_URL: str = "sqlite:///./data/shopfloor.db"

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Some hosts hand out postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v

    SESSION_TTL_HOURS: int = 24
    MIN_PASSWORD_LENGTH: int = 8

    # Initial account created on first start when the users table is empty
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin12345"
    ADMIN_FULL_NAME: str = "System Administrator"


settings = Settings()
