# app/schemas/job_schema.py
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime

from app.models.job import JobStatusEnum, BudgetTypeEnum
from app.schemas.bid_schema import BidOut

# 1. 基礎欄位 (對應 Model)
class JobBase(BaseModel):
    title: str = Field(..., max_length=255)
    description: str
    category: str = Field(..., max_length=100)
    location: str = Field(..., max_length=255)
    # 預算以「分」為單位
    budget_min: Optional[int] = Field(None, ge=0)
    budget_max: Optional[int] = Field(None, ge=0)
    budget_type: BudgetTypeEnum = BudgetTypeEnum.range
    timeline: Optional[str] = Field(None, max_length=255)

# 2. 屋主刊登工作時的 Request Body (Input)
class JobCreate(JobBase):
    # 未提供時由 Service 從刊登者的 Profile 帶入
    homeowner_name: Optional[str] = Field(None, max_length=255)

    @model_validator(mode="after")
    def check_budget_range(self):
        if self.budget_min is not None and self.budget_max is not None and self.budget_min > self.budget_max:
            raise ValueError("budget_min 不可大於 budget_max")
        return self

# 3. 更新工作狀態 (任何狀態之間皆可轉換，只驗證是否為合法值)
class JobStatusUpdate(BaseModel):
    status: JobStatusEnum

# 4. 回傳給前端的工作資料 (Output)
class JobOut(JobBase):
    job_id: str
    user_id: str
    status: JobStatusEnum
    homeowner_name: str
    homeowner_verified: bool = False
    budget_display: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True # 啟用 ORM 模式

# 5. 工作詳情 (附帶「目前登入者是否可以出價」)
class JobDetailOut(JobOut):
    # 僅供 UI 顯示，真正的檢查在送出出價時由 Service 執行
    can_bid: bool = False
    bid_count: int = 0

# 6. 屋主管理介面：工作 + 所有出價
class JobWithBidsOut(JobOut):
    bids: List[BidOut] = []

    class Config:
        from_attributes = True

# 7. 專業人員「已指派工作」
class AssignedJobOut(BaseModel):
    job_id: str
    job_title: str
    job_description: str
    job_location: str
    job_category: str
    job_status: JobStatusEnum
    homeowner_name: str
    homeowner_verified: bool
    job_poster_id: str
    bid_id: str
    bid_amount: int
    bid_status: str
    created_at: datetime
