# app/schemas/profile_schema.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

class ProfileBase(BaseModel):
    full_name: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)

class ProfileUpdate(ProfileBase):
    pass # 更新時全為選填 (角色不可修改)

class ProfileOut(ProfileBase):
    model_config = ConfigDict(from_attributes=True)

    profile_id: str
    user_id: str
    email: str
    role: str | None = None # 讀取 Profile.role (來自 User)
    created_at: datetime | None = None
    updated_at: datetime | None = None

class ParticipantProfileOut(BaseModel):
    """對話列表中「對方」的精簡資料"""
    model_config = ConfigDict(from_attributes=True)

    full_name: str | None = None
    email: str = ""
