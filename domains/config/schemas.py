from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CredentialPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    openai_key: Optional[str] = Field(default=None, alias="openaiKey")


class LanguagePayload(BaseModel):
    language: Optional[str] = None


class StreamingPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # left untyped so non-boolean values reach the route and get a 400
    use_streaming: Any = Field(default=None, alias="useStreaming")
