"""
Pydantic модели для вебхуков Telegram (только используемые поля).
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class Chat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: Optional[str] = None


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    is_bot: bool = False
    first_name: Optional[str] = ""
    username: Optional[str] = None


class Message(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: int = 0
    chat: Chat
    from_user: Optional[User] = Field(default=None, alias="from")
    text: Optional[str] = None
    caption: Optional[str] = None


class Update(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: Optional[int] = None
    message: Optional[Message] = None
