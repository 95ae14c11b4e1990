# app/models/bid.py
import enum
import uuid
from sqlalchemy import Column, String, Text, INT, ForeignKey, TIMESTAMP, Enum, CHAR, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class BidStatusEnum(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"

class Bid(Base):
    __tablename__ = "bids"
    # 同一位專業人員對同一份工作只能出價一次
    __table_args__ = (
        UniqueConstraint("job_id", "bidder_id", name="uq_bids_job_bidder"),
    )

    bid_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    job_id = Column(CHAR(36), ForeignKey("jobs.job_id", ondelete="CASCADE"), nullable=False, index=True)
    # 唯一權威的出價者帳號
    bidder_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)

    # 聯絡資訊：出價當下的快照，只供顯示
    bidder_name = Column(String(255))
    bidder_email = Column(String(255))
    bidder_phone = Column(String(50))

    # 金額皆以「分」為單位
    amount = Column(INT, nullable=False)
    hourly_rate = Column(INT)
    estimated_hours = Column(INT)

    timeline = Column(String(255))
    message = Column(Text)
    status = Column(
        Enum(BidStatusEnum, name="bid_status_enum", values_callable=lambda obj: [e.value for e in obj]),
        default=BidStatusEnum.pending,
        nullable=False
    )

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # --- 建立關聯 (Relationships) ---
    job = relationship("Job", back_populates="bids")
    bidder = relationship("User", back_populates="bids")

    # 1-to-1 關聯到付款資訊
    payment_detail = relationship(
        "BidPaymentDetail",
        back_populates="bid",
        uselist=False,
        cascade="all, delete-orphan"
    )

class BidPaymentDetail(Base):
    """
    敏感的付款資訊獨立成表，只有出價者本人可以讀取。
    (目前只儲存，沒有任何轉帳邏輯)
    """
    __tablename__ = "bid_payment_details"

    payment_detail_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    bid_id = Column(CHAR(36), ForeignKey("bids.bid_id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    bank_account_number = Column(String(100), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    bid = relationship("Bid", back_populates="payment_detail")
