from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "Banani Ledger API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Produce weighing entries, earnings and payment tracking API"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "banani"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # JWT
    JWT_SECRET: str = "change-this-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60 * 24

    # Weighing
    ROWS_PER_COLUMN: int = 10
    WEIGHT_UNIT_KG: int = 20
    CURRENCY: str = "INR"

    # SMTP
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = ""
    SMTP_SECURE: Optional[bool] = None  # None: implicit TLS only on port 465
    SMTP_IGNORE_TLS_ERRORS: bool = False
    SMTP_TIMEOUT_SECONDS: int = 20
    EMAIL_SENDER_NAME: str = "BananiExpense"

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

load_dotenv()

settings = Settings()
