# app/models/professional.py
import uuid
from sqlalchemy import Column, String, TEXT, INT, DECIMAL, Boolean, JSON, TIMESTAMP, ForeignKey, CHAR, func
from app.core.database import Base

class Professional(Base):
    """專業人員名錄 (公開瀏覽用)"""
    __tablename__ = "professionals"

    professional_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # 早期的名錄資料沒有對應帳號，因此可為空
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True, unique=True, index=True)
    name = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(TEXT)
    location = Column(String(255), nullable=False)
    skills = Column(JSON, default=list)
    experience_years = Column(INT, default=0)
    hourly_rate = Column(INT) # 以「分」為單位
    response_time = Column(String(100), default="Within 24 hours")
    phone = Column(String(50))
    email = Column(String(255))
    avatar_url = Column(String(500))
    verified = Column(Boolean, default=False)
    rating = Column(DECIMAL(2, 1), default=0)
    review_count = Column(INT, default=0)
    completed_jobs = Column(INT, default=0)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
