"""Conversation history passed along with a question."""

from pydantic import BaseModel, ConfigDict, Field


class HistoryTurn(BaseModel):
    """One earlier message in the conversation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content: str = Field(..., description="Message text")
    is_user: bool = Field(..., alias="isUser", description="True for user messages")
