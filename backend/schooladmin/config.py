from pydantic_settings import BaseSettings
from typing import List
import json


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./schooladmin.db"
    LOG_LEVEL: str = "INFO"
    API_PORT: int = 3000
    API_HOST: str = "0.0.0.0"
    CORS_ORIGINS: str = '["http://localhost:5173"]'
    PROVISION_ON_STARTUP: bool = True
    SMTP_TIMEOUT: float = 15.0
    SMS_TIMEOUT: float = 10.0
    TWILIO_API_BASE: str = "https://api.twilio.com/2010-04-01"

    @property
    def cors_origins_list(self) -> List[str]:
        return json.loads(self.CORS_ORIGINS)

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
