from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class TagCreateRequest(BaseModel):
    path: str


class TagRenameRequest(BaseModel):
    src: str
    dst: str


class TagMoveRequest(BaseModel):
    src: str
    target_parent: str = Field(default="")


class TagReorderRequest(BaseModel):
    parent: str = Field(default="")
    name: str
    direction: Literal["up", "down"]


class WordCreateRequest(BaseModel):
    en: str = Field(min_length=1)
    zh: str = Field(default="")
    example_en: str | None = None
    example_zh: str | None = None
    phonetic: str | None = None
    note: str | None = None
    tags: list[str] = Field(default_factory=list)


class WordTagToggleRequest(BaseModel):
    tag: str
    enabled: bool = True


class WordStatusUpdateRequest(BaseModel):
    status: Literal["unknown", "learning", "mastered"]


class ReviewBumpRequest(BaseModel):
    window_ms: int = Field(default=120_000, ge=0)


class ReviewAnswerRequest(BaseModel):
    en: str
    correct: bool


class SrsLimitsUpdateRequest(BaseModel):
    daily_new_limit: int | None = None
    daily_review_limit: int | None = None


class FontSizeUpdateRequest(BaseModel):
    size: float


class BackupRestoreRequest(BaseModel):
    schemaVersion: int = Field(default=1)
    updatedAt: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
