from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Formation Lifecycle Engine"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    APP_URL: str = "http://localhost:8000"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./formations.db"
    TEST_DATABASE_URL: Optional[str] = None

    # Stripe
    STRIPE_SECRET_KEY: str = "sk_test_dummy_key"
    STRIPE_WEBHOOK_SECRET: str = ""
    DEFAULT_CURRENCY: str = "EUR"

    # Certificates
    CERTIFICATE_STORAGE_DIR: str = "storage/certificates"
    CERTIFICATE_NUMBER_PREFIX: str = "CERT-"
    CERTIFICATE_NUMBER_LENGTH: int = 12
    VERIFICATION_CODE_LENGTH: int = 8

    # Logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
