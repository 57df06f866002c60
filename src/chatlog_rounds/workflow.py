from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from chatlog_rounds.cleaning import DEFAULT_MARKERS, CleaningReport, TurnMarkers, assess_cleaning, normalize
from chatlog_rounds.config import Settings
from chatlog_rounds.errors import ChatLogNotFoundError, InvalidUploadError, MissingCleanedContentError
from chatlog_rounds.models import ChatLog, Round, WorkflowStep
from chatlog_rounds.repositories.base import ChatLogStore, RoundStore
from chatlog_rounds.rounds import parse_rounds
from chatlog_rounds.schemas import ChatLogUpload, RoundUpdate
from chatlog_rounds.util import sha256_text, stable_chat_log_id
from chatlog_rounds.validation import DEFAULT_MAX_UPLOAD_BYTES, validate_chat_log_upload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanResult:
    chat_log: ChatLog
    report: CleaningReport


@dataclass(frozen=True)
class ParseRoundsResult:
    chat_log_id: str
    rounds: list[Round]

    @property
    def round_count(self) -> int:
        return len(self.rounds)

    @property
    def average_lines_per_round(self) -> float:
        if not self.rounds:
            return 0.0
        return sum(r.line_count for r in self.rounds) / len(self.rounds)


class ChatLogWorkflow:
    """
    Upload -> clean -> rounds, over injected stores.

    Store errors propagate unchanged. Re-running parse is safe since the round
    set is replaced wholesale; callers keep at most one parse per chat log in
    flight.
    """

    def __init__(
        self,
        chat_logs: ChatLogStore,
        rounds: RoundStore,
        *,
        markers: TurnMarkers = DEFAULT_MARKERS,
        legacy_fallback: bool = False,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ):
        self._chat_logs = chat_logs
        self._rounds = rounds
        self._markers = markers
        self._legacy_fallback = legacy_fallback
        self._max_upload_bytes = max_upload_bytes

    @classmethod
    def from_settings(cls, settings: Settings, chat_logs: ChatLogStore, rounds: RoundStore) -> ChatLogWorkflow:
        return cls(
            chat_logs,
            rounds,
            markers=settings.turn_markers(),
            legacy_fallback=settings.legacy_round_fallback,
            max_upload_bytes=settings.max_upload_bytes,
        )

    def _require(self, chat_log_id: str) -> ChatLog:
        chat_log = self._chat_logs.get_chat_log(chat_log_id)
        if chat_log is None:
            raise ChatLogNotFoundError(chat_log_id)
        return chat_log

    def get_chat_log(self, chat_log_id: str) -> ChatLog | None:
        return self._chat_logs.get_chat_log(chat_log_id)

    def list_chat_logs(self) -> list[ChatLog]:
        return self._chat_logs.list_chat_logs()

    def upload(self, upload: ChatLogUpload) -> ChatLog:
        issues = validate_chat_log_upload(
            filename=upload.filename,
            content=upload.content,
            content_type=upload.content_type,
            size_bytes=upload.size_bytes,
            content_hash=upload.content_hash,
            max_bytes=self._max_upload_bytes,
        )
        if issues:
            logger.warning(
                "Rejected upload %s: %s", upload.filename, ", ".join(i.code for i in issues)
            )
            raise InvalidUploadError(issues)

        content_hash = sha256_text(upload.content)
        existing = self._chat_logs.find_by_hash(content_hash)
        if existing is not None:
            logger.info("Upload %s matches existing chat log %s", upload.filename, existing.chat_log_id)
            return existing

        chat_log = self._chat_logs.add_chat_log(
            ChatLog(
                chat_log_id=stable_chat_log_id(content_hash),
                filename=upload.filename,
                content=upload.content,
                content_hash=content_hash,
                content_type=upload.content_type,
                size_bytes=len(upload.content.encode("utf-8")),
                last_step=WorkflowStep.UPLOAD,
            )
        )
        logger.info("Stored chat log %s (%s, %d bytes)", chat_log.chat_log_id, chat_log.filename, chat_log.size_bytes)
        return chat_log

    def clean(self, chat_log_id: str) -> CleanResult:
        chat_log = self._require(chat_log_id)
        cleaned = normalize(chat_log.content, markers=self._markers)
        report = assess_cleaning(chat_log.content, cleaned)
        saved = self._chat_logs.save_cleaned_content(chat_log_id, cleaned)
        logger.info(
            "Cleaned chat log %s: %d -> %d lines (%d%% smaller)",
            chat_log_id,
            report.original_lines,
            report.cleaned_lines,
            report.reduction_percent,
        )
        return CleanResult(chat_log=saved, report=report)

    def parse(self, chat_log_id: str) -> ParseRoundsResult:
        chat_log = self._require(chat_log_id)
        if not chat_log.cleaned_content:
            raise MissingCleanedContentError(chat_log_id)

        parsed = parse_rounds(chat_log.cleaned_content, legacy_fallback=self._legacy_fallback)
        stored = self._rounds.replace_rounds(chat_log_id=chat_log_id, rounds=parsed)
        self._chat_logs.set_workflow_step(chat_log_id, WorkflowStep.ROUNDS)

        result = ParseRoundsResult(chat_log_id=chat_log_id, rounds=stored)
        logger.info(
            "Parsed %d rounds for chat log %s (avg %.1f lines)",
            result.round_count,
            chat_log_id,
            result.average_lines_per_round,
        )
        return result

    def list_rounds(self, chat_log_id: str) -> list[Round]:
        return self._rounds.list_rounds(chat_log_id)

    def update_round(self, update: RoundUpdate) -> Round:
        return self._rounds.update_round(
            round_id=update.round_id,
            round_number=update.round_number,
            content=update.content,
        )

    def get_round(self, round_id: UUID) -> Round | None:
        return self._rounds.get_round(round_id)

    def delete(self, chat_log_id: str) -> bool:
        return self._chat_logs.delete_chat_log(chat_log_id)
