from functools import lru_cache
import os
from pydantic import BaseModel, Field


class Settings(BaseModel):
    env: str = Field(default="dev", alias="ENV")
    timezone: str = Field(default="Asia/Kolkata", alias="TIMEZONE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str = Field(default="", alias="DATABASE_URL")
    postgres_db: str = Field(default="fitstart", alias="POSTGRES_DB")
    postgres_user: str = Field(default="fitstart", alias="POSTGRES_USER")
    postgres_password: str = Field(default="fitstart", alias="POSTGRES_PASSWORD")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")

    jwt_secret: str = Field(default="secret", alias="JWT_SECRET")
    jwt_expire_min: int = Field(default=43200, alias="JWT_EXPIRE_MIN")

    payment_provider: str = Field(default="stub", alias="PAYMENT_PROVIDER")
    payment_api_url: str = Field(default="https://api.razorpay.com/v1", alias="PAYMENT_API_URL")
    payment_api_key: str = Field(default="", alias="PAYMENT_API_KEY")
    payment_api_secret: str = Field(default="", alias="PAYMENT_API_SECRET")
    payment_currency: str = Field(default="INR", alias="PAYMENT_CURRENCY")
    payment_timeout_sec: float = Field(default=10.0, alias="PAYMENT_TIMEOUT_SEC")

    fcm_project_id: str = Field(default="", alias="FCM_PROJECT_ID")
    fcm_access_token: str = Field(default="", alias="FCM_ACCESS_TOKEN")
    fcm_timeout_sec: float = Field(default=10.0, alias="FCM_TIMEOUT_SEC")

    cancellation_cutoff_hours: int = Field(default=24, alias="CANCELLATION_CUTOFF_HOURS")
    pending_payment_timeout_min: int = Field(default=30, alias="PENDING_PAYMENT_TIMEOUT_MIN")

    scheduler_enabled: bool = Field(default=False, alias="SCHEDULER_ENABLED")

    default_admin_email: str = Field(default="admin@fitstart.local", alias="DEFAULT_ADMIN_EMAIL")
    default_admin_password: str = Field(default="admin123", alias="DEFAULT_ADMIN_PASSWORD")

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
    return Settings(**os.environ)
