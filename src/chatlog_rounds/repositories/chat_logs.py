from __future__ import annotations

import logging

import psycopg

from chatlog_rounds.errors import ChatLogNotFoundError
from chatlog_rounds.models import ChatLog, WorkflowStep

logger = logging.getLogger(__name__)

_COLUMNS = """
  chat_log_id, filename, content, content_hash,
  content_type, size_bytes, last_step, cleaned_content,
  created_at, updated_at
"""


def _row_to_chat_log(row: tuple) -> ChatLog:
    return ChatLog(
        chat_log_id=row[0],
        filename=row[1],
        content=row[2],
        content_hash=row[3],
        content_type=row[4],
        size_bytes=row[5],
        last_step=WorkflowStep(row[6]),
        cleaned_content=row[7],
        created_at=row[8],
        updated_at=row[9],
    )


class ChatLogRepository:
    def __init__(self, conn: psycopg.Connection):
        self._conn = conn

    def add_chat_log(self, chat_log: ChatLog) -> ChatLog:
        """
        Insert a chat log. Content-equal uploads share a hash; the stored row wins.
        """
        row = self._conn.execute(
            f"""
            insert into chat_logs (
              chat_log_id, filename, content, content_hash,
              content_type, size_bytes, last_step, cleaned_content,
              updated_at
            ) values (
              %s, %s, %s, %s,
              %s, %s, %s, %s,
              now()
            )
            on conflict (content_hash) do update set
              content_hash = excluded.content_hash
            returning {_COLUMNS}
            """,
            (
                chat_log.chat_log_id,
                chat_log.filename,
                chat_log.content,
                chat_log.content_hash,
                chat_log.content_type,
                chat_log.size_bytes,
                int(chat_log.last_step),
                chat_log.cleaned_content,
            ),
        ).fetchone()
        self._conn.commit()
        return _row_to_chat_log(row)

    def get_chat_log(self, chat_log_id: str) -> ChatLog | None:
        row = self._conn.execute(
            f"select {_COLUMNS} from chat_logs where chat_log_id=%s",
            (chat_log_id,),
        ).fetchone()
        if not row:
            return None
        return _row_to_chat_log(row)

    def find_by_hash(self, content_hash: str) -> ChatLog | None:
        row = self._conn.execute(
            f"select {_COLUMNS} from chat_logs where content_hash=%s",
            (content_hash,),
        ).fetchone()
        if not row:
            return None
        return _row_to_chat_log(row)

    def list_chat_logs(self) -> list[ChatLog]:
        rows = self._conn.execute(
            f"select {_COLUMNS} from chat_logs order by updated_at desc, chat_log_id"
        ).fetchall()
        return [_row_to_chat_log(r) for r in rows]

    def save_cleaned_content(self, chat_log_id: str, content: str) -> ChatLog:
        row = self._conn.execute(
            f"""
            update chat_logs
            set cleaned_content=%s, last_step=%s, updated_at=now()
            where chat_log_id=%s
            returning {_COLUMNS}
            """,
            (content, int(WorkflowStep.CLEAN), chat_log_id),
        ).fetchone()
        self._conn.commit()
        if not row:
            raise ChatLogNotFoundError(chat_log_id)
        return _row_to_chat_log(row)

    def set_workflow_step(self, chat_log_id: str, step: WorkflowStep) -> ChatLog:
        row = self._conn.execute(
            f"""
            update chat_logs
            set last_step=%s, updated_at=now()
            where chat_log_id=%s
            returning {_COLUMNS}
            """,
            (int(step), chat_log_id),
        ).fetchone()
        self._conn.commit()
        if not row:
            raise ChatLogNotFoundError(chat_log_id)
        return _row_to_chat_log(row)

    def delete_chat_log(self, chat_log_id: str) -> bool:
        """
        Delete a chat log; rounds and their chapters go with it (FK cascade).
        """
        cur = self._conn.execute("delete from chat_logs where chat_log_id=%s", (chat_log_id,))
        self._conn.commit()
        deleted = cur.rowcount > 0
        if deleted:
            logger.info("Deleted chat log %s", chat_log_id)
        return deleted
