# models/user.py
from sqlalchemy import Column, String, Boolean, Enum, CHAR
from app.core.database import Base
import enum
from sqlalchemy.orm import relationship

# 角色在註冊時決定，之後不可變更
class UserRoleEnum(str, enum.Enum):
    job_poster = "job_poster"
    professional = "professional"

class User(Base):
    __tablename__ = "users"

    # 基本欄位
    user_id = Column(CHAR(36), primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRoleEnum, name="user_role_enum", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False
    )
    is_active = Column(Boolean, default=True)

    # 關聯設定
    # 註冊時一併建立的 Profile (1-to-1)
    profile = relationship(
        "Profile", # <-- 使用字串
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan"
    )

    # 作為屋主刊登的工作
    jobs_owned = relationship(
        "Job",
        back_populates="owner"
    )

    # 作為專業人員送出的出價
    bids = relationship(
        "Bid",
        back_populates="bidder"
    )
