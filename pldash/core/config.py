from typing import List, Optional

from pydantic_settings import BaseSettings

from pldash.core.errors import ConfigurationError

class Settings(BaseSettings):
    # Google Sheets (service account)
    GOOGLE_SHEETS_ID: Optional[str] = None
    GOOGLE_SHEETS_CLIENT_EMAIL: Optional[str] = None
    GOOGLE_SHEETS_PRIVATE_KEY: Optional[str] = None

    # Monday.com
    MONDAY_API_TOKEN: Optional[str] = None
    MONDAY_API_URL: str = "https://api.monday.com/v2"
    MONDAY_API_VERSION: str = "2023-10"
    MONDAY_BOARD_ID: Optional[str] = None
    MONDAY_GROUP_NAME: str = "ANGE"

    # Slack incoming webhooks
    SLACK_WEBHOOK_URL: Optional[str] = None
    DAILY_UPDATES_WEBHOOK_URL: Optional[str] = None

    # Dashboard behaviour
    CACHE_TTL_SECONDS: int = 300  # 5 minutes
    PROJECTION_DAYS: int = 14
    CREDIT_CARD_MIN_PAYMENT_RATE: float = 0.03
    CREDIT_CARD_MIN_PAYMENT_FLOOR: float = 25.0
    SPEND_LOOKBACK_DAYS: int = 7

    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def google_private_key(self) -> Optional[str]:
        # Keys pasted into .env files carry literal "\n" sequences
        if not self.GOOGLE_SHEETS_PRIVATE_KEY:
            return None
        return self.GOOGLE_SHEETS_PRIVATE_KEY.replace("\\n", "\n")

    def require(self, *names: str) -> None:
        """Raise ConfigurationError for the first setting that is not set."""
        for name in names:
            if not getattr(self, name, None):
                raise ConfigurationError(name)

settings = Settings()
