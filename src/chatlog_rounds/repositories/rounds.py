from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

import psycopg

from chatlog_rounds.errors import ChatLogNotFoundError, RoundNotFoundError
from chatlog_rounds.models import Chapter, Round
from chatlog_rounds.rounds import TextRound
from chatlog_rounds.util import deterministic_round_id

logger = logging.getLogger(__name__)

_COLUMNS = """
  round_id::text, chat_log_id, round_number,
  start_line, end_line, line_count, character_count,
  content, created_at, updated_at
"""


def _row_to_round(row: tuple) -> Round:
    return Round(
        round_id=UUID(row[0]),
        chat_log_id=row[1],
        round_number=row[2],
        start_line=row[3],
        end_line=row[4],
        line_count=row[5],
        character_count=row[6],
        content=row[7],
        created_at=row[8],
        updated_at=row[9],
    )


class RoundRepository:
    def __init__(self, conn: psycopg.Connection):
        self._conn = conn

    def replace_rounds(self, *, chat_log_id: str, rounds: Iterable[TextRound]) -> list[Round]:
        """
        Replace-all semantics for a chat log's round set.

        The delete and the inserts share one transaction, so readers see either
        the old set or the new one. Chapters of deleted rounds cascade. The
        chat log row is locked for the duration, so concurrent replaces for the
        same log serialize.
        """
        stored: list[Round] = []
        with self._conn.transaction():
            owner = self._conn.execute(
                "select 1 from chat_logs where chat_log_id=%s for update",
                (chat_log_id,),
            ).fetchone()
            if not owner:
                raise ChatLogNotFoundError(chat_log_id)
            self._conn.execute("delete from rounds where chat_log_id=%s", (chat_log_id,))
            for r in rounds:
                row = self._conn.execute(
                    f"""
                    insert into rounds (
                      round_id, chat_log_id, round_number,
                      start_line, end_line, line_count, character_count,
                      content, updated_at
                    ) values (
                      %s::uuid, %s, %s,
                      %s, %s, %s, %s,
                      %s, now()
                    )
                    returning {_COLUMNS}
                    """,
                    (
                        str(deterministic_round_id(chat_log_id=chat_log_id, round_number=r.round_number)),
                        chat_log_id,
                        r.round_number,
                        r.start_line,
                        r.end_line,
                        r.line_count,
                        r.character_count,
                        r.text,
                    ),
                ).fetchone()
                stored.append(_row_to_round(row))
        self._conn.commit()
        logger.info("Replaced rounds for chat log %s (%d rounds)", chat_log_id, len(stored))
        return stored

    def list_rounds(self, chat_log_id: str) -> list[Round]:
        rows = self._conn.execute(
            f"""
            select {_COLUMNS}
            from rounds
            where chat_log_id=%s
            order by round_number asc, start_line asc
            """,
            (chat_log_id,),
        ).fetchall()
        return [_row_to_round(r) for r in rows]

    def get_round(self, round_id: UUID) -> Round | None:
        row = self._conn.execute(
            f"select {_COLUMNS} from rounds where round_id=%s::uuid",
            (str(round_id),),
        ).fetchone()
        if not row:
            return None
        return _row_to_round(row)

    def update_round(self, *, round_id: UUID, round_number: int, content: str) -> Round:
        """
        Manual correction. Ordering and contiguity across the set are not re-checked.
        """
        row = self._conn.execute(
            f"""
            update rounds
            set round_number=%s, content=%s, updated_at=now()
            where round_id=%s::uuid
            returning {_COLUMNS}
            """,
            (round_number, content, str(round_id)),
        ).fetchone()
        self._conn.commit()
        if not row:
            raise RoundNotFoundError(round_id)
        return _row_to_round(row)

    def delete_rounds(self, chat_log_id: str) -> int:
        cur = self._conn.execute("delete from rounds where chat_log_id=%s", (chat_log_id,))
        self._conn.commit()
        return cur.rowcount

    def add_chapter(self, chapter: Chapter) -> None:
        self._conn.execute(
            """
            insert into chapters(chapter_id, round_id, chapter_number, title, content)
            values (%s::uuid, %s::uuid, %s, %s, %s)
            on conflict (chapter_id) do update set
              chapter_number = excluded.chapter_number,
              title = excluded.title,
              content = excluded.content
            """,
            (
                str(chapter.chapter_id),
                str(chapter.round_id),
                chapter.chapter_number,
                chapter.title,
                chapter.content,
            ),
        )
        self._conn.commit()

    def list_chapters(self, chat_log_id: str) -> list[Chapter]:
        rows = self._conn.execute(
            """
            select c.chapter_id::text, c.round_id::text, c.chapter_number, c.title, c.content
            from chapters c
            join rounds r on r.round_id = c.round_id
            where r.chat_log_id=%s
            order by c.chapter_number, r.round_number
            """,
            (chat_log_id,),
        ).fetchall()
        return [
            Chapter(
                chapter_id=UUID(r[0]),
                round_id=UUID(r[1]),
                chapter_number=r[2],
                title=r[3],
                content=r[4],
            )
            for r in rows
        ]
