from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal, Optional


class ReminderSettings(BaseSettings):
    # Scheduling
    SCHEDULER_SCAN_INTERVAL_SECONDS: int = 300
    SCHEDULER_BATCH_SIZE: int = 500
    DISPATCH_LEASE_SECONDS: int = 600  # how long a pass holds a reminder while sending
    TARGET_HOUR: int = 9  # local wall-clock hour reminders fire at
    DEFAULT_CYCLE_DAYS: int = 28
    DEFAULT_OFFSET_DAYS: int = 7

    # Email delivery
    EMAIL_BACKEND: Literal["resend", "smtp"] = "resend"
    FROM_EMAIL: str = "BSE Tracker <onboarding@resend.dev>"
    EMAIL_SUBJECT: str = "Time for Your Breast Self-Exam"
    APP_URL: str = "http://localhost:3000"
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_URL: str = "https://api.resend.com/emails"
    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    HTTP_TIMEOUT_SECONDS: int = 10

    # Celery configuration
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: Optional[str] = None

    # Metrics
    METRICS_ENABLED: bool = True

    model_config = SettingsConfigDict(env_prefix="REMINDER_", env_file=".env", extra="ignore")


settings = ReminderSettings()
