"""Pydantic models for typing APIs."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TypingIngestRequest(BaseModel):
    """Inbound typing notification. Every field is optional."""

    model_config = ConfigDict(populate_by_name=True)

    channel_key: Optional[str] = Field(default=None, alias="channelKey")
    user: Optional[str] = None
    typing: Optional[bool] = None

    @field_validator("channel_key", "user", mode="before")
    @classmethod
    def _text_or_missing(cls, value: Any) -> Optional[str]:
        if isinstance(value, str) and value.strip():
            return value
        return None

    @field_validator("typing", mode="before")
    @classmethod
    def _flag_or_missing(cls, value: Any) -> Optional[bool]:
        return value if isinstance(value, bool) else None

    @classmethod
    def from_body(cls, body: Any) -> "TypingIngestRequest":
        if not isinstance(body, dict):
            return cls()
        return cls.model_validate(body)


class IngestAck(BaseModel):
    ok: bool


class ChannelStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    channel_key: str = Field(alias="channelKey")
    subscribers: int
