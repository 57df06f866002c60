from __future__ import annotations

import hashlib
from uuid import NAMESPACE_URL, UUID, uuid5


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str) -> str:
    return sha256_bytes(text.encode("utf-8"))


def stable_chat_log_id(content_hash: str) -> str:
    """
    Deterministic chat_log_id derived from the content hash, so content-equal
    uploads map to the same id.
    """
    return str(uuid5(NAMESPACE_URL, f"chatlog:{content_hash}"))


def deterministic_round_id(*, chat_log_id: str, round_number: int) -> UUID:
    return uuid5(NAMESPACE_URL, f"{chat_log_id}:round:{round_number}")


def deterministic_chapter_id(*, round_id: UUID, chapter_number: int) -> UUID:
    return uuid5(NAMESPACE_URL, f"{round_id}:chapter:{chapter_number}")
