from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import psycopg
from psycopg import sql

from chatlog_rounds.db import PostgresConfig
from chatlog_rounds.errors import MigrationChecksumError
from chatlog_rounds.util import sha256_text

logger = logging.getLogger(__name__)

_SCHEMA_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


@dataclass(frozen=True)
class Migration:
    version: str
    path: Path

    def read_sql(self) -> str:
        return self.path.read_text(encoding="utf-8")

    @property
    def checksum(self) -> str:
        return sha256_text(self.read_sql())


@dataclass(frozen=True)
class MigrationStatus:
    schema: str
    applied: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        return not self.pending


def _migrations_dir() -> Path:
    return Path(__file__).resolve().parent / "sql"


def discover_migrations() -> list[Migration]:
    return [Migration(version=path.stem, path=path) for path in sorted(_migrations_dir().glob("*.sql"))]


def validate_schema_name(schema: str) -> str:
    """Lower-case unquoted Postgres identifiers only; the same name goes into search_path."""
    if not _SCHEMA_NAME_RE.match(schema or ""):
        raise ValueError(f"Invalid schema name: {schema!r}")
    return schema


def _use_schema(conn: psycopg.Connection, schema: str) -> None:
    conn.execute(sql.SQL("create schema if not exists {}").format(sql.Identifier(schema)))
    conn.execute(sql.SQL("set search_path to {}").format(sql.Identifier(schema)))


def _ensure_migrations_table(conn: psycopg.Connection) -> None:
    conn.execute(
        """
        create table if not exists schema_migrations (
          version text primary key,
          checksum text,
          applied_at timestamptz not null default now()
        )
        """
    )
    conn.execute("alter table schema_migrations add column if not exists checksum text")


def _recorded_checksums(conn: psycopg.Connection) -> dict[str, str | None]:
    rows = conn.execute("select version, checksum from schema_migrations").fetchall()
    return {r[0]: r[1] for r in rows}


def _check_drift(recorded: dict[str, str | None], migrations: list[Migration]) -> None:
    for mig in migrations:
        expected = recorded.get(mig.version)
        # rows written before checksums were tracked carry null
        if expected is not None and expected != mig.checksum:
            raise MigrationChecksumError(mig.version)


def migration_status(
    dsn: str,
    *,
    schema: str = "public",
    migrations: Iterable[Migration] | None = None,
) -> MigrationStatus:
    """Which bundled migrations a schema has recorded and which are still due."""
    schema = validate_schema_name(schema)
    known = list(migrations) if migrations is not None else discover_migrations()

    with psycopg.connect(dsn) as conn:
        exists = conn.execute(
            "select to_regclass(%s) is not null",
            (f"{schema}.schema_migrations",),
        ).fetchone()[0]
        recorded: dict[str, str | None] = {}
        if exists:
            rows = conn.execute(
                sql.SQL("select version, checksum from {}.schema_migrations").format(sql.Identifier(schema))
            ).fetchall()
            recorded = {r[0]: r[1] for r in rows}

    _check_drift(recorded, known)
    return MigrationStatus(
        schema=schema,
        applied=[m.version for m in known if m.version in recorded],
        pending=[m.version for m in known if m.version not in recorded],
    )


def apply_migrations(
    dsn: str,
    *,
    schema: str = "public",
    migrations: Iterable[Migration] | None = None,
) -> list[str]:
    """
    Bring the chat_logs / rounds / chapters tables in `schema` up to date.

    Each pending migration runs in its own transaction together with its
    schema_migrations row, so a failing file leaves earlier ones committed and
    itself unrecorded. A recorded migration whose file changed since it was
    applied raises MigrationChecksumError before any migration runs.
    """
    schema = validate_schema_name(schema)
    known = list(migrations) if migrations is not None else discover_migrations()

    applied: list[str] = []
    with psycopg.connect(dsn) as conn:
        conn.execute("set timezone to 'UTC'")
        _use_schema(conn, schema)
        _ensure_migrations_table(conn)
        conn.commit()

        recorded = _recorded_checksums(conn)
        conn.commit()
        _check_drift(recorded, known)

        for mig in known:
            if mig.version in recorded:
                logger.debug("Migration %s already applied to schema %s", mig.version, schema)
                continue
            with conn.transaction():
                conn.execute(mig.read_sql())
                conn.execute(
                    "insert into schema_migrations(version, checksum) values (%s, %s)",
                    (mig.version, mig.checksum),
                )
            logger.info("Applied migration %s to schema %s", mig.version, schema)
            applied.append(mig.version)

    return applied


def apply_configured_migrations(config: PostgresConfig) -> list[str]:
    """apply_migrations against the DSN and schema from PG_* / POSTGRES_* settings."""
    return apply_migrations(config.build_dsn(), schema=config.schema)
