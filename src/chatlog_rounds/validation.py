from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from chatlog_rounds.util import sha256_text

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024

ACCEPTED_CONTENT_TYPES = frozenset({"text/plain", "text/markdown", "application/json"})
ACCEPTED_EXTENSIONS = frozenset({".txt", ".md", ".markdown", ".json"})


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    details: dict[str, object] | None = None


def _is_accepted_type(filename: str, content_type: str | None) -> bool:
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime in ACCEPTED_CONTENT_TYPES:
        return True
    return PurePosixPath(filename.replace("\\", "/")).suffix.lower() in ACCEPTED_EXTENSIONS


def validate_chat_log_upload(
    *,
    filename: str,
    content: str,
    content_type: str | None,
    size_bytes: int | None = None,
    content_hash: str | None = None,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    if not (content or "").strip():
        issues.append(ValidationIssue(code="upload_empty", message="Uploaded chat log is empty."))
        return issues

    actual_size = len(content.encode("utf-8"))
    if actual_size > max_bytes:
        issues.append(
            ValidationIssue(
                code="upload_too_large",
                message="Uploaded chat log is too large.",
                details={"bytes": actual_size, "max_bytes": max_bytes},
            )
        )

    if not _is_accepted_type(filename, content_type):
        issues.append(
            ValidationIssue(
                code="upload_unsupported_type",
                message="Only plain text, markdown and JSON chat logs are accepted.",
                details={"filename": filename, "content_type": content_type or None},
            )
        )

    if size_bytes is not None and size_bytes != actual_size:
        issues.append(
            ValidationIssue(
                code="upload_size_mismatch",
                message="Declared size does not match the content.",
                details={"declared": size_bytes, "actual": actual_size},
            )
        )

    if content_hash is not None and content_hash.lower() != sha256_text(content):
        issues.append(
            ValidationIssue(
                code="upload_hash_mismatch",
                message="Declared hash does not match the content.",
                details={"declared": content_hash},
            )
        )

    return issues
