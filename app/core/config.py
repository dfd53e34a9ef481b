# app/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore")

    APP_NAME: str = "Clinic Onboarding"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    JWT_SECRET: str = Field(...)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "clinic"
    DB_PASSWORD: str = ""
    DB_NAME: str = "clinic"
    # si está definido, pisa DB_* (sqlite en tests)
    DATABASE_URL: str | None = None

    BCRYPT_ROUNDS: int = 12
    PASSWORD_MIN_LENGTH: int = 6

    INVITE_CODE_BYTES: int = Field(16, ge=10)   # >= 80 bits
    INVITE_CODE_MAX_ATTEMPTS: int = 5

    # --- Geocoding (HERE) ---
    GEOCODE_API_URL: str = "https://discover.search.hereapi.com/v1/geocode"
    GEOCODE_API_KEY: str | None = None
    GEOCODE_COUNTRY: str = "BRA"
    GEOCODE_LIMIT: int = 5
    GEOCODE_TIMEOUT: float = 5.0

    @property
    def async_database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4")

    @property
    def geocoding_enabled(self) -> bool:
        return bool(self.GEOCODE_API_KEY)


settings = Settings()  # type: ignore[call-arg]
