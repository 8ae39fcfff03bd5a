"""Chat-session data model."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_turn_id() -> str:
    return f"local-{uuid.uuid4().hex}"


class ChatTurn(BaseModel):
    """One conversational turn as displayed in the chat view."""

    id: str = Field(default_factory=local_turn_id)
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    remote_id: Optional[str] = None  # durable id, needed for deletion

    def as_history_entry(self) -> dict:
        return {"role": self.role, "content": self.content}


class UserSession(BaseModel):
    """Logged-in user, passed explicitly to everything that calls the gateway."""

    email: str
    name: str = ""
    token: Optional[str] = None
    login_time: datetime = Field(default_factory=utc_now)

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@")[0]


@dataclass
class PaginationCursor:
    """Continuation token for the next older page of history."""

    token: Optional[str] = None
    has_more: bool = False

    def reset(self) -> None:
        self.token = None
        self.has_more = False

    def advance(self, token: Optional[str]) -> None:
        self.token = token or None
        self.has_more = self.token is not None


@dataclass
class HistoryPage:
    """Normalized page of history returned by the remote."""

    turns: List[ChatTurn] = field(default_factory=list)
    continuation_token: Optional[str] = None
