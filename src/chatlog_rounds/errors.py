from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chatlog_rounds.validation import ValidationIssue


class ChatLogError(Exception):
    """Base exception for chatlog_rounds."""


class ChatLogNotFoundError(ChatLogError):
    def __init__(self, chat_log_id: str):
        super().__init__(f"Chat log not found: {chat_log_id}")
        self.chat_log_id = chat_log_id


class RoundNotFoundError(ChatLogError):
    def __init__(self, round_id: object):
        super().__init__(f"Round not found: {round_id}")
        self.round_id = round_id


class MissingCleanedContentError(ChatLogError):
    """Rounds were requested before the chat log was cleaned."""

    def __init__(self, chat_log_id: str):
        super().__init__(f"Chat log {chat_log_id} does not have cleaned content; run clean first")
        self.chat_log_id = chat_log_id


class InvalidUploadError(ChatLogError):
    def __init__(self, issues: list[ValidationIssue]):
        codes = ", ".join(i.code for i in issues)
        super().__init__(f"Invalid chat log upload: {codes}")
        self.issues = issues


class MigrationChecksumError(ChatLogError):
    """An applied migration file was edited after it ran."""

    def __init__(self, version: str):
        super().__init__(f"Migration {version} changed after it was applied; add a new migration instead")
        self.version = version
