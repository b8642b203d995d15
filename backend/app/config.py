# app/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Game Tools Store License API"

    # CORS origins for the storefront frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Shared secret for the externally scheduled sweeper (Authorization: Bearer <secret>)
    # Empty means the cron endpoint rejects every call
    cron_secret: str = os.getenv("CRON_SECRET", "")

    # Signed download tokens
    download_token_secret: str = os.getenv("DOWNLOAD_TOKEN_SECRET", "dev-download-secret")
    download_token_ttl_minutes: int = int(os.getenv("DOWNLOAD_TOKEN_TTL_MINUTES", "60"))

    # Payment gateway callback verification
    payment_merchant_code: str = os.getenv("PAYMENT_MERCHANT_CODE", "")
    payment_api_key: str = os.getenv("PAYMENT_API_KEY", "")
    payment_success_code: str = "00"

    # Expiry warning lead times (days)
    expiry_warning_days: int = int(os.getenv("EXPIRY_WARNING_DAYS", "7"))
    expiry_urgent_days: int = int(os.getenv("EXPIRY_URGENT_DAYS", "1"))

    # SMTP settings (email is skipped when SMTP_HOST is empty)
    smtp_host: str | None = os.getenv("SMTP_HOST")
    smtp_port: int = int(os.getenv("SMTP_PORT", "465"))
    smtp_user: str | None = os.getenv("SMTP_USER")
    smtp_password: str | None = os.getenv("SMTP_PASSWORD")
    mail_from: str = os.getenv("MAIL_FROM", "Game Tools Store <no-reply@example.com>")

settings = Settings()  # Instantiate configuration
