"""Message domain schemas - Pydantic models for validation"""

from pydantic import BaseModel, Field


class MessageCreate(BaseModel):
    bookingId: int
    receiverId: int
    message: str = Field(..., min_length=1, max_length=5000)
    attachments: list[str] = Field(default_factory=list, max_length=10)
