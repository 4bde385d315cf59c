from functools import lru_cache
import os
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    env: str = Field(default="dev", alias="ENV")
    timezone: str = Field(default="UTC", alias="TIMEZONE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str = Field(default="", alias="DATABASE_URL")
    postgres_db: str = Field(default="theraconnect", alias="POSTGRES_DB")
    postgres_user: str = Field(default="theraconnect", alias="POSTGRES_USER")
    postgres_password: str = Field(default="theraconnect", alias="POSTGRES_PASSWORD")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")

    jwt_secret: str = Field(default="secret", alias="JWT_SECRET")
    jwt_expire_min: int = Field(default=43200, alias="JWT_EXPIRE_MIN")

    default_admin_email: str = Field(default="admin@theraconnect.local", alias="DEFAULT_ADMIN_EMAIL")
    default_admin_password: str = Field(default="admin123", alias="DEFAULT_ADMIN_PASSWORD")

    notification_webhook_url: str = Field(default="", alias="NOTIFICATION_WEBHOOK_URL")
    notification_timeout_sec: float = Field(default=10, alias="NOTIFICATION_TIMEOUT_SEC")
    reminder_lead_hours: int = Field(default=24, alias="REMINDER_LEAD_HOURS")
    scheduler_enabled: bool = Field(default=True, alias="SCHEDULER_ENABLED")

    video_sdk_key: str = Field(default="", alias="VIDEO_SDK_KEY")
    video_sdk_secret: str = Field(default="", alias="VIDEO_SDK_SECRET")
    video_token_expire_min: int = Field(default=120, alias="VIDEO_TOKEN_EXPIRE_MIN")

    class Config:
        populate_by_name = True

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(override=False)
    return Settings(**os.environ)
