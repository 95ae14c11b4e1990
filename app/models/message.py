# app/models/message.py

import uuid
from sqlalchemy import Column, Text, ForeignKey, TIMESTAMP, CHAR, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class Conversation(Base):
    __tablename__ = "conversations"
    # 每個 (工作, 屋主, 專業人員) 組合只會有一個對話
    __table_args__ = (
        UniqueConstraint("job_id", "job_poster_id", "professional_id", name="uq_conversations_triple"),
    )

    conversation_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id = Column(CHAR(36), ForeignKey("jobs.job_id", ondelete="CASCADE"), nullable=False, index=True)
    job_poster_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    professional_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    last_message_at = Column(TIMESTAMP, server_default=func.now())
    created_at = Column(TIMESTAMP, server_default=func.now())

    job = relationship("Job", back_populates="conversations", lazy="selectin")
    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan"
    )

    def other_participant_id(self, user_id: str) -> str:
        return self.professional_id if user_id == self.job_poster_id else self.job_poster_id

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.job_poster_id, self.professional_id)

class Message(Base):
    __tablename__ = "messages"
    message_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    conversation_id = Column(CHAR(36), ForeignKey("conversations.conversation_id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(CHAR(36), ForeignKey("jobs.job_id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    # NULL 代表未讀
    read_at = Column(TIMESTAMP, nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    conversation = relationship("Conversation", back_populates="messages")
