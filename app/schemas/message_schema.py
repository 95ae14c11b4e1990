# app/schemas/message_schema.py

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from app.models.job import JobStatusEnum
from app.schemas.profile_schema import ParticipantProfileOut

class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    message_id: str
    conversation_id: str
    job_id: str
    sender_id: str
    recipient_id: str
    content: str
    read_at: Optional[datetime] = None
    created_at: datetime

class MessageIn(BaseModel):
    """
    送出訊息的請求體 (REST 或 WebSocket 皆使用)
    """
    content: str = Field(..., min_length=1, description="訊息內容")

class ConversationCreate(BaseModel):
    """
    建立 (或取得既有) 對話的請求體
    """
    job_id: str = Field(..., description="關聯的工作 ID")
    job_poster_id: str
    professional_id: str

class ConversationJobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    title: str
    status: JobStatusEnum

class ConversationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    conversation_id: str
    job_id: str
    job_poster_id: str
    professional_id: str
    last_message_at: Optional[datetime] = None
    created_at: datetime
    # Pydantic 會自動從 ORM 物件的 .job 屬性讀取
    job: Optional[ConversationJobOut] = None
    # 由 Service 填入「對方」的 Profile
    other_participant: Optional[ParticipantProfileOut] = None

class UnreadCountOut(BaseModel):
    job_id: str
    job_poster_id: str
    professional_id: str
    unread_count: int = 0

class MarkReadOut(BaseModel):
    conversation_id: str
    marked_count: int
