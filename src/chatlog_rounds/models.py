from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from uuid import UUID


class WorkflowStep(IntEnum):
    UPLOAD = 1
    CLEAN = 2
    ROUNDS = 3
    CHAPTERS = 4


@dataclass(frozen=True)
class ChatLog:
    chat_log_id: str
    filename: str
    content: str
    content_hash: str
    content_type: str = "text/plain"
    size_bytes: int = 0
    last_step: WorkflowStep = WorkflowStep.UPLOAD
    cleaned_content: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Round:
    round_id: UUID
    chat_log_id: str
    round_number: int
    start_line: int
    end_line: int
    line_count: int
    character_count: int
    content: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Chapter:
    chapter_id: UUID
    round_id: UUID
    chapter_number: int
    title: str
    content: str = ""
