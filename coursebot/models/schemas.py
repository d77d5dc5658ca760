"""
Pydantic request / response schemas for the API.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

CourseLevel = Literal["Beginner", "Intermediate", "Advanced"]
Sender = Literal["user", "bot"]


# ── Courses ──────────────────────────────────────────────
class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    instructor: Optional[str] = None
    duration: Optional[str] = None
    level: CourseLevel = "Beginner"


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    instructor: Optional[str] = None
    duration: Optional[str] = None
    level: Optional[CourseLevel] = None


class CourseResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    instructor: Optional[str] = None
    duration: Optional[str] = None
    level: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ── Chat ─────────────────────────────────────────────────
class MessageResponse(BaseModel):
    id: int
    message: str
    sender: str
    course_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    session_id: Optional[str] = None
    course_id: Optional[int] = None


class ChatResponse(BaseModel):
    session_id: str
    user_message: str
    ai_response: str
    provider: str
    user_message_id: Optional[int] = None
    bot_message_id: Optional[int] = None


class ProviderStatus(BaseModel):
    available: List[str]
    current: str
    fallback_mode: bool
    catalog: Dict[str, dict]


class ClearHistoryRequest(BaseModel):
    session_id: str
