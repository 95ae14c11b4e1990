# app/models/profile.py
import uuid
from sqlalchemy import Column, String, ForeignKey, TIMESTAMP, CHAR, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class Profile(Base):
    __tablename__ = "profiles"

    profile_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False)
    full_name = Column(String(255))
    phone = Column(String(50))
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # 1-to-1 反向關聯到 User
    user = relationship("User", back_populates="profile", lazy="selectin")

    @property
    def role(self) -> str | None:
        # 角色存在 User 上，Profile 只是顯示用
        return self.user.role.value if self.user else None
