from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_path: Path = Path.home() / "JobBoard"
    api_prefix: str = "/api/v1"
    host: str = "127.0.0.1"
    port: int = 8000

    # Outbound endpoints. Unset URLs make the matching operation fail with an
    # upstream error instead of posting somewhere unexpected.
    reminder_webhook_url: str | None = None
    service_due_webhook_url: str | None = None
    project_webhook_url: str | None = None
    customer_webhook_url: str | None = None
    invoice_analytics_url: str | None = None
    http_timeout_seconds: float = 30.0

    # Jobs scheduled before now + window are due for a reminder.
    reminder_window_minutes: int = 60
    # A dispatch claim older than this is treated as abandoned.
    reminder_claim_ttl_seconds: int = 600

    business_timezone: str = "America/Chicago"

    # When set, API routes require "Authorization: Bearer <service_key>".
    service_key: str | None = None

    @property
    def db_path(self) -> Path:
        return self.data_path / "jobboard.sqlite"

    model_config = {"env_prefix": "JOBBOARD_"}


settings = Settings()
