from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from urllib.parse import quote

import psycopg
from pydantic import SecretStr


@dataclass(frozen=True)
class PostgresConfig:
    dsn: str | None = None
    host: str | None = None
    port: int = 5432
    db: str | None = None
    user: str | None = None
    password: SecretStr | str | None = None
    schema: str = "public"

    def build_dsn(self) -> str:
        if self.dsn:
            return self.dsn
        missing = [
            name
            for name, value in (
                ("POSTGRES_HOST", self.host),
                ("POSTGRES_DB", self.db),
                ("POSTGRES_USER", self.user),
                ("POSTGRES_PASSWORD", self.password),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"Missing Postgres config: {', '.join(missing)} (or set PG_DSN)")
        password = (
            self.password.get_secret_value()
            if isinstance(self.password, SecretStr)
            else self.password
        )
        # credentials may contain URL delimiters such as '@' or ':'
        return (
            f"postgresql://{quote(self.user or '', safe='')}:{quote(password or '', safe='')}"
            f"@{self.host}:{self.port}/{self.db}"
        )


@contextmanager
def connect(dsn: str, *, schema: str = "public") -> Iterator[psycopg.Connection]:
    options = f"-c search_path={schema} -c timezone=UTC"
    with psycopg.connect(dsn, options=options) as conn:
        yield conn
