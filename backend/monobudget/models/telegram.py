"""Telegram Bot API models (only the fields this service reads or writes)."""
from typing import List, Optional
from pydantic import BaseModel, Field


class User(BaseModel):
    id: int
    is_bot: bool = False
    first_name: str = ""
    username: Optional[str] = None


class Chat(BaseModel):
    id: int
    type: str = "private"


class MessageEntity(BaseModel):
    """Formatting entity; offset and length count UTF-16 code units."""

    type: str
    offset: int
    length: int


class InlineKeyboardButton(BaseModel):
    text: str
    callback_data: Optional[str] = None


class InlineKeyboardMarkup(BaseModel):
    inline_keyboard: List[List[InlineKeyboardButton]] = Field(default_factory=list)


class Message(BaseModel):
    """Chat message. `text` is plain text, markup is carried in `entities`."""

    message_id: int
    chat: Chat
    date: int = 0
    text: Optional[str] = None
    entities: List[MessageEntity] = Field(default_factory=list)
    reply_markup: Optional[InlineKeyboardMarkup] = None


class CallbackQuery(BaseModel):
    """Inline button press."""

    id: str
    from_user: User = Field(..., alias="from")
    message: Optional[Message] = None
    data: Optional[str] = None

    class Config:
        populate_by_name = True


class Update(BaseModel):
    update_id: int
    callback_query: Optional[CallbackQuery] = None


class RenderedMessage(BaseModel):
    """HTML text and keyboard of a transaction message."""

    text: str
    keyboard: InlineKeyboardMarkup


class MessageRef(BaseModel):
    """Where a sent message lives, for later edits."""

    chat_id: int
    message_id: int
