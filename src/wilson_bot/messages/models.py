"""
Data models for Wilson Bot messages.

Messages are loaded once from a bundled JSON payload and never change
afterwards, so the models are frozen. BrokenMessage is the structured
notification a caller posts to the broken webhook; it never enters the
message set.
"""

from typing import Tuple

from pydantic import BaseModel, Field, validator


class Message(BaseModel):
    """
    A canned message from the message set.

    Attributes:
        id: Unique, non-empty identifier
        text: The text forwarded to the chat webhook
        sentiment: Free-form mood label (e.g. "positive")
        tags: Ordered labels attached to the message
    """

    id: str = Field(description="Unique message identifier")
    text: str = Field(description="Message text")
    sentiment: str = Field(default="", description="Mood label")
    tags: Tuple[str, ...] = Field(default=(), description="Ordered labels")

    @validator("id")
    def validate_id(cls, v: str) -> str:
        """Reject blank identifiers."""
        if not v.strip():
            raise ValueError("Message id cannot be empty")
        return v

    class Config:
        frozen = True
        extra = "ignore"


class BrokenMessage(BaseModel):
    """A caller-supplied notification that someone broke a streak."""

    id: str
    name: str
    motive: str
    time_since_broken: str
    day_of_breakage: str

    class Config:
        frozen = True
        extra = "ignore"
        str_strip_whitespace = True
