from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable
from uuid import UUID

from chatlog_rounds.errors import ChatLogNotFoundError, RoundNotFoundError
from chatlog_rounds.models import Chapter, ChatLog, Round, WorkflowStep
from chatlog_rounds.rounds import TextRound
from chatlog_rounds.util import deterministic_round_id


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore:
    """
    Process-local ChatLogStore and RoundStore.

    Every operation holds one lock, so a replace is never visible half-done and
    deletes cascade chat log -> rounds -> chapters like the SQL schema does.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._chat_logs: dict[str, ChatLog] = {}
        self._rounds: dict[UUID, Round] = {}
        self._chapters: dict[UUID, Chapter] = {}

    # chat logs

    def add_chat_log(self, chat_log: ChatLog) -> ChatLog:
        with self._lock:
            for existing in self._chat_logs.values():
                if existing.content_hash == chat_log.content_hash:
                    return existing
            now = _now()
            stored = replace(chat_log, created_at=now, updated_at=now)
            self._chat_logs[stored.chat_log_id] = stored
            return stored

    def get_chat_log(self, chat_log_id: str) -> ChatLog | None:
        with self._lock:
            return self._chat_logs.get(chat_log_id)

    def find_by_hash(self, content_hash: str) -> ChatLog | None:
        with self._lock:
            for chat_log in self._chat_logs.values():
                if chat_log.content_hash == content_hash:
                    return chat_log
            return None

    def list_chat_logs(self) -> list[ChatLog]:
        with self._lock:
            return sorted(
                self._chat_logs.values(),
                key=lambda c: c.updated_at or _now(),
                reverse=True,
            )

    def _update_chat_log(self, chat_log_id: str, **changes: object) -> ChatLog:
        current = self._chat_logs.get(chat_log_id)
        if current is None:
            raise ChatLogNotFoundError(chat_log_id)
        updated = replace(current, updated_at=_now(), **changes)
        self._chat_logs[chat_log_id] = updated
        return updated

    def save_cleaned_content(self, chat_log_id: str, content: str) -> ChatLog:
        with self._lock:
            return self._update_chat_log(
                chat_log_id, cleaned_content=content, last_step=WorkflowStep.CLEAN
            )

    def set_workflow_step(self, chat_log_id: str, step: WorkflowStep) -> ChatLog:
        with self._lock:
            return self._update_chat_log(chat_log_id, last_step=WorkflowStep(step))

    def delete_chat_log(self, chat_log_id: str) -> bool:
        with self._lock:
            if chat_log_id not in self._chat_logs:
                return False
            self._delete_rounds(chat_log_id)
            del self._chat_logs[chat_log_id]
            return True

    # rounds

    def _delete_rounds(self, chat_log_id: str) -> int:
        doomed = {rid for rid, r in self._rounds.items() if r.chat_log_id == chat_log_id}
        for cid in [cid for cid, c in self._chapters.items() if c.round_id in doomed]:
            del self._chapters[cid]
        for rid in doomed:
            del self._rounds[rid]
        return len(doomed)

    def replace_rounds(self, *, chat_log_id: str, rounds: Iterable[TextRound]) -> list[Round]:
        now = _now()
        # materialize before touching state so a failing iterable leaves the old set intact
        fresh = [
            Round(
                round_id=deterministic_round_id(chat_log_id=chat_log_id, round_number=r.round_number),
                chat_log_id=chat_log_id,
                round_number=r.round_number,
                start_line=r.start_line,
                end_line=r.end_line,
                line_count=r.line_count,
                character_count=r.character_count,
                content=r.text,
                created_at=now,
                updated_at=now,
            )
            for r in rounds
        ]
        with self._lock:
            # same outcome as the rounds.chat_log_id foreign key
            if chat_log_id not in self._chat_logs:
                raise ChatLogNotFoundError(chat_log_id)
            self._delete_rounds(chat_log_id)
            for r in fresh:
                self._rounds[r.round_id] = r
        return sorted(fresh, key=lambda r: r.round_number)

    def list_rounds(self, chat_log_id: str) -> list[Round]:
        with self._lock:
            return sorted(
                (r for r in self._rounds.values() if r.chat_log_id == chat_log_id),
                key=lambda r: (r.round_number, r.start_line),
            )

    def get_round(self, round_id: UUID) -> Round | None:
        with self._lock:
            return self._rounds.get(round_id)

    def update_round(self, *, round_id: UUID, round_number: int, content: str) -> Round:
        with self._lock:
            current = self._rounds.get(round_id)
            if current is None:
                raise RoundNotFoundError(round_id)
            updated = replace(current, round_number=round_number, content=content, updated_at=_now())
            self._rounds[round_id] = updated
            return updated

    def delete_rounds(self, chat_log_id: str) -> int:
        with self._lock:
            return self._delete_rounds(chat_log_id)

    # chapters

    def add_chapter(self, chapter: Chapter) -> None:
        with self._lock:
            if chapter.round_id not in self._rounds:
                raise RoundNotFoundError(chapter.round_id)
            self._chapters[chapter.chapter_id] = chapter

    def list_chapters(self, chat_log_id: str) -> list[Chapter]:
        with self._lock:
            round_ids = {rid for rid, r in self._rounds.items() if r.chat_log_id == chat_log_id}
            owned = [c for c in self._chapters.values() if c.round_id in round_ids]
            return sorted(owned, key=lambda c: (c.chapter_number, self._rounds[c.round_id].round_number))
