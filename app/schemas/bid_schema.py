# app/schemas/bid_schema.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from datetime import datetime
from typing import Optional

from app.models.bid import BidStatusEnum
from app.models.job import JobStatusEnum
from app.utils.pricing import calculate_bid_amount

# --- 建立 (Create) ---
class BidCreate(BaseModel):
    # job_id 和 bidder_id 將從 URL 和 Token 中取得
    amount: Optional[int] = Field(None, ge=0, description="直接輸入的總額 (分)")
    hourly_rate: Optional[int] = Field(None, ge=0, description="時薪 (分)")
    estimated_hours: Optional[int] = Field(None, ge=0)

    # 聯絡資訊 (未提供時由 Service 從 Profile 帶入)
    bidder_name: Optional[str] = Field(None, max_length=255)
    bidder_email: Optional[EmailStr] = None
    bidder_phone: Optional[str] = Field(None, max_length=50)

    timeline: Optional[str] = Field(None, max_length=255)
    message: Optional[str] = None
    # 只會存進 bid_payment_details，不會出現在任何出價回應中
    bank_account_number: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def resolve_amount(self):
        # 時薪 x 工時 優先於直接輸入的金額
        self.amount = calculate_bid_amount(self.amount, self.hourly_rate, self.estimated_hours)
        return self

# --- 讀取 (Read / Out) ---
class BidOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bid_id: str
    job_id: str
    bidder_id: str
    bidder_name: Optional[str] = None
    bidder_email: Optional[str] = None
    bidder_phone: Optional[str] = None
    amount: int
    hourly_rate: Optional[int] = None
    estimated_hours: Optional[int] = None
    timeline: Optional[str] = None
    message: Optional[str] = None
    status: BidStatusEnum
    created_at: datetime
    updated_at: datetime

# 「我的出價」列表中附帶的工作摘要
class BidJobSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    job_id: str
    title: str
    location: str
    category: str
    status: JobStatusEnum
    homeowner_name: str
    user_id: str

class BidOutWithJob(BidOut):
    job: Optional[BidJobSummary] = None

class BidPaymentDetailOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bid_id: str
    bank_account_number: str
    created_at: datetime
