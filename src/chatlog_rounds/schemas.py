from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field


class ChatLogUpload(BaseModel):
    filename: str = Field(min_length=1)
    content: str
    content_type: str = Field(default="text/plain")
    size_bytes: int | None = Field(default=None, ge=0)
    content_hash: str | None = None


class RoundUpdate(BaseModel):
    round_id: UUID
    round_number: int = Field(ge=1)
    content: str
