from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TodoFilter(StrEnum):
    """Status predicate used by the list view."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    @property
    def label(self) -> tuple[str, str]:
        if self is TodoFilter.ALL:
            return ("すべて", "All")
        if self is TodoFilter.ACTIVE:
            return ("未完了", "Active")
        return ("完了", "Completed")


class TodoItem(BaseModel):
    """A single task row as stored remotely and held in the session."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    text: str
    completed: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        # PostgREST hands out integer identity columns as numbers.
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("created_at", mode="after")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class ChangeType(StrEnum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ChangeEvent(BaseModel):
    """Row change delivered by the change feed."""

    type: ChangeType
    record: Optional[TodoItem] = None
    old_id: Optional[str] = None


class AuthSession(BaseModel):
    """Signed-in identity as issued by the auth service."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    user_id: str
    email: Optional[str] = None
    user_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.user_name or self.email or self.user_id


class LevelInfo(BaseModel):
    """Derived gamification snapshot for a completed-task count."""

    model_config = ConfigDict(frozen=True)

    completed_count: int
    level: int
    title: str
    title_en: str
    progress_percent: int

    @property
    def title_label(self) -> tuple[str, str]:
        return (self.title, self.title_en)


class EffectKind(StrEnum):
    CONFETTI = "confetti"
    SOUND = "sound"
    TOAST = "toast"
    PRAISE = "praise"


class Effect(BaseModel):
    """Side effect intent produced by a state transition and executed by the UI shell."""

    model_config = ConfigDict(frozen=True)

    kind: EffectKind
    message: str | tuple[str, str] = ""
    icon: Optional[str] = None
    task_text: str = ""
    level_title: str = ""


class PraiseResult(BaseModel):
    message: str
    ok: bool
