"""Store ports consumed by the workflow."""

from __future__ import annotations

from typing import Iterable, Protocol
from uuid import UUID

from chatlog_rounds.models import Chapter, ChatLog, Round, WorkflowStep
from chatlog_rounds.rounds import TextRound


class ChatLogStore(Protocol):
    def add_chat_log(self, chat_log: ChatLog) -> ChatLog: ...

    def get_chat_log(self, chat_log_id: str) -> ChatLog | None: ...

    def find_by_hash(self, content_hash: str) -> ChatLog | None: ...

    def list_chat_logs(self) -> list[ChatLog]: ...

    def save_cleaned_content(self, chat_log_id: str, content: str) -> ChatLog: ...

    def set_workflow_step(self, chat_log_id: str, step: WorkflowStep) -> ChatLog: ...

    def delete_chat_log(self, chat_log_id: str) -> bool: ...


class RoundStore(Protocol):
    def replace_rounds(self, *, chat_log_id: str, rounds: Iterable[TextRound]) -> list[Round]: ...

    def list_rounds(self, chat_log_id: str) -> list[Round]: ...

    def get_round(self, round_id: UUID) -> Round | None: ...

    def update_round(self, *, round_id: UUID, round_number: int, content: str) -> Round: ...

    def delete_rounds(self, chat_log_id: str) -> int: ...

    def add_chapter(self, chapter: Chapter) -> None: ...

    def list_chapters(self, chat_log_id: str) -> list[Chapter]: ...
