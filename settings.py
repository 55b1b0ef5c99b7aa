import logging
import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Service configuration.

    Values come from the process environment, with an optional `.env` file in
    the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(default="mongodb://localhost:27017", validation_alias="DATABASE_URL")
    database_name: str = Field(default="restaurant", validation_alias="DATABASE_NAME")

    # An unset key still signs tokens, it is only warned about at startup
    secret_key: str = Field(default="", validation_alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", validation_alias="ALGORITHM")
    access_token_expire_hours: int = Field(default=24, validation_alias="ACCESS_TOKEN_EXPIRE_HOURS")
    refresh_token_expire_hours: int = Field(default=168, validation_alias="REFRESH_TOKEN_EXPIRE_HOURS")

    request_timeout_seconds: int = Field(default=100, validation_alias="REQUEST_TIMEOUT_SECONDS")
    connect_timeout_seconds: int = Field(default=10, validation_alias="CONNECT_TIMEOUT_SECONDS")

    bcrypt_rounds: int = Field(default=14, validation_alias="BCRYPT_ROUNDS")

    cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")
    debug: bool = Field(default=False, validation_alias="DEBUG")
    port: int = Field(default=8000, validation_alias="PORT")

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level used unless DEBUG is enabled

    Returns:
        The application logger
    """
    if settings.debug:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)-14s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from the driver
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    return logging.getLogger("restaurant")
