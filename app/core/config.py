from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Venue Booking API"
    LOG_LEVEL: str = "INFO"
    # Comma-separated origins for CORS (e.g. https://hall.example.com,https://admin.hall.example.com). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "events@venue.local"

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""

    CLIENT_BASE_URL: str = ""  # e.g. https://hall.example.com - used for manage-booking links
    ADMIN_NOTIFY_EMAIL: str = ""  # receives new-booking alerts; empty disables them

    # Seeded admin account
    ADMIN_EMAIL: str = "admin@venue.local"
    ADMIN_PASSWORD: str = "admin12345"

    # Stripe Checkout
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_SUCCESS_URL: str = ""
    STRIPE_CANCEL_URL: str = ""
    STRIPE_CURRENCY: str = "usd"

    # Venue and pricing (whole dollars, local wall-clock hours)
    VENUE_NAME: str = "Maple Court Hall"
    OPEN_HOUR: int = 8
    CLOSE_HOUR: int = 24
    WEEKDAY_RATE: int = 150
    WEEKEND_RATE: int = 175
    WEEKEND_MINIMUM_HOURS: int = 4
    EXTRA_SETUP_HOURLY: int = 100
    SECURITY_DEPOSIT: int = 200
    INCLUDED_SETUP_HOURS: int = 2
    MAX_GUESTS: int = 120

    # Manage links stay valid this many days after the event date
    MANAGEMENT_TOKEN_GRACE_DAYS: int = 30


settings = Settings()
