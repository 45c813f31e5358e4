from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

MIN_MESSAGE_LENGTH = 5


class Turn(BaseModel):
    """A single prior exchange in the conversation history."""

    role: Literal["user", "model"]
    content: StrictStr


class ChatRequest(BaseModel):
    """Request body for ``POST /api/chat``."""

    model_config = ConfigDict(populate_by_name=True)

    message: StrictStr
    chat_history: list[Turn] = Field(default_factory=list, alias="chatHistory")

    @field_validator("message")
    @classmethod
    def message_min_length(cls, value: str) -> str:
        if len(value.strip()) < MIN_MESSAGE_LENGTH:
            raise ValueError(
                f"message must have at least {MIN_MESSAGE_LENGTH} characters"
            )
        return value


class ChatData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    timestamp: datetime
    model: str
    tokens_used: int | Literal["N/A"] = Field(alias="tokensUsed")


class ChatResponse(BaseModel):
    success: Literal[True] = True
    data: ChatData


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
    details: str | None = None
