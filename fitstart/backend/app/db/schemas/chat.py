from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field, field_validator
from ..models.chat import SenderRole


class ConversationStart(BaseModel):
    venue_id: int = Field(validation_alias=AliasChoices("venue_id", "venueId"))
    message: str | None = Field(
        default=None,
        max_length=2000,
        validation_alias=AliasChoices("message", "initialMessage"),
    )


class MessageCreate(BaseModel):
    message: str = Field(max_length=2000)

    @field_validator("message")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message cannot be empty")
        return value


class Message(BaseModel):
    id: int
    conversation_id: int
    sender_id: int | None = None
    sender_role: SenderRole
    body: str
    is_read: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class Conversation(BaseModel):
    id: int
    user_id: int
    user_name: str | None = None
    venue_id: int
    venue_name: str | None = None
    last_message: str
    last_message_at: datetime | None = None
    user_unread_count: int
    owner_unread_count: int

    class Config:
        from_attributes = True


class ConversationDetail(Conversation):
    messages: list[Message] = []
