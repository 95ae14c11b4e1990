# app/schemas/professional_schema.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

class ProfessionalBase(BaseModel):
    name: str = Field(..., max_length=255)
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    location: str = Field(..., max_length=255)
    skills: List[str] = []
    experience_years: int = Field(0, ge=0)
    hourly_rate: Optional[int] = Field(None, ge=0, description="以「分」為單位")
    response_time: str = "Within 24 hours"
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=500)

# 專業人員自行刊登名錄
class ProfessionalCreate(ProfessionalBase):
    pass

class ProfessionalOut(ProfessionalBase):
    professional_id: str
    user_id: Optional[str] = None
    verified: bool = False
    rating: float = 0.0
    review_count: int = 0
    completed_jobs: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
