# models/job.py
import enum
import uuid
from sqlalchemy import Column, String, TEXT, INT, Boolean, TIMESTAMP, ForeignKey, Enum, CHAR, func
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.utils.pricing import format_budget

class JobStatusEnum(str, enum.Enum):
    open = "open"
    in_progress = "in-progress"
    completed = "completed"
    cancelled = "cancelled"

class BudgetTypeEnum(str, enum.Enum):
    range = "range"
    fixed = "fixed"
    hourly = "hourly"

class Job(Base):
    # 屋主刊登的工作
    __tablename__ = "jobs"

    job_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # 刊登者 (屋主) 的帳號
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(TEXT, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    # 預算以「分」為單位的整數
    budget_min = Column(INT, nullable=True)
    budget_max = Column(INT, nullable=True)
    budget_type = Column(
        Enum(BudgetTypeEnum, name="budget_type_enum", values_callable=lambda obj: [e.value for e in obj]),
        default=BudgetTypeEnum.range
    )
    timeline = Column(String(255))
    status = Column(
        Enum(JobStatusEnum, name="job_status_enum", values_callable=lambda obj: [e.value for e in obj]),
        default=JobStatusEnum.open,
        nullable=False,
        index=True
    )
    # 顯示用的冗餘欄位 (刊登當下的屋主名稱)
    homeowner_name = Column(String(255), nullable=False)
    homeowner_verified = Column(Boolean, default=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="jobs_owned")

    # 刪除工作時，一併刪除關聯出價
    bids = relationship(
        "Bid",
        back_populates="job",
        cascade="all, delete-orphan"
    )

    conversations = relationship(
        "Conversation",
        back_populates="job",
        cascade="all, delete-orphan"
    )

    @property
    def budget_display(self) -> str:
        budget_type = getattr(self.budget_type, "value", self.budget_type)
        return format_budget(self.budget_min, self.budget_max, budget_type)
