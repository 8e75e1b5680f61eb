from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class User:
    user_id: int
    username: str
    id: int | None = None


@dataclass(slots=True)
class Message:
    message_id: int
    chat_id: int
    user_id: int
    date: datetime | None = None
    id: int | None = None
