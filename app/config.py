from pydantic_settings import BaseSettings, SettingsConfigDict


PAYMENT_SETTINGS = (
    "MPESA_CONSUMER_KEY",
    "MPESA_CONSUMER_SECRET",
    "MPESA_API_BASE_URL",
    "MPESA_SHORTCODE",
    "MPESA_PASSKEY",
    "MPESA_CALLBACK_URL",
)

MAIL_SETTINGS = ("EMAIL_USER", "EMAIL_PASS")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # M-Pesa Daraja
    MPESA_CONSUMER_KEY: str = ""
    MPESA_CONSUMER_SECRET: str = ""
    MPESA_API_BASE_URL: str = ""
    MPESA_SHORTCODE: str = ""
    MPESA_PASSKEY: str = ""
    MPESA_CALLBACK_URL: str = ""
    MPESA_TIMEOUT_SECONDS: float = 10.0

    # Outbound mail (SMTP relay, gmail by default)
    EMAIL_USER: str = ""
    EMAIL_PASS: str = ""
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_TIMEOUT_SECONDS: float = 10.0

    DATABASE_URL: str = "sqlite:///./tickets.db"
    DB_TIMEOUT_SECONDS: float = 5.0

    LOG_LEVEL: str = "INFO"
    PORT: int = 3000

    def missing_payment_settings(self) -> list:
        return [name for name in PAYMENT_SETTINGS if not getattr(self, name)]

    def missing_mail_settings(self) -> list:
        return [name for name in MAIL_SETTINGS if not getattr(self, name)]


settings = Settings()
