from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatlog_rounds.cleaning import TurnMarkers
from chatlog_rounds.db import PostgresConfig
from chatlog_rounds.validation import DEFAULT_MAX_UPLOAD_BYTES


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    pg_dsn: str | None = Field(default=None, alias="PG_DSN")
    pg_schema: str = Field(default="public", alias="PG_SCHEMA")
    postgres_host: str | None = Field(default=None, alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")
    postgres_db: str | None = Field(default=None, alias="POSTGRES_DB")
    postgres_user: str | None = Field(default=None, alias="POSTGRES_USER")
    postgres_password: SecretStr | None = Field(default=None, alias="POSTGRES_PASSWORD")

    user_marker: str = Field(default="You said:", alias="USER_MARKER")
    assistant_marker: str = Field(default="ChatGPT said:", alias="ASSISTANT_MARKER")
    legacy_round_fallback: bool = Field(default=False, alias="LEGACY_ROUND_FALLBACK")
    max_upload_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, alias="MAX_UPLOAD_BYTES")

    def turn_markers(self) -> TurnMarkers:
        return TurnMarkers(user=self.user_marker, assistant=self.assistant_marker)

    def postgres_config(self) -> PostgresConfig:
        return PostgresConfig(
            dsn=self.pg_dsn,
            host=self.postgres_host,
            port=self.postgres_port,
            db=self.postgres_db,
            user=self.postgres_user,
            password=self.postgres_password,
            schema=self.pg_schema,
        )


def load_settings() -> Settings:
    return Settings()
