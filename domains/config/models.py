from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from domains.chat.models import new_id, utcnow

LANGUAGES = ("zh", "en")
DEFAULT_LANGUAGE = "zh"


class UserConfig(SQLModel, table=True):
    """Per-installation overrides; at most one row is expected."""

    id: str = Field(default_factory=new_id, primary_key=True)
    openai_key: Optional[str] = Field(default=None)
    language: str = Field(default=DEFAULT_LANGUAGE)
    use_streaming: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class SystemConfig(SQLModel, table=True):
    """Operator-level defaults; at most one row is expected."""

    id: str = Field(default_factory=new_id, primary_key=True)
    openai_key: str = Field(default="")
    system_prompt: str = Field(default="")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
