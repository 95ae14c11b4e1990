# app/utils/policies.py
# 存取規則 (唯一定義處)：Service 用來做權威判斷，API 也用它算出 UI 顯示用的旗標
from typing import Optional

from app.models.job import Job


def user_is_not_job_poster(user_id: Optional[str], job: Job) -> bool:
    """出價者不可以是該工作的刊登者"""
    return user_id is not None and job.user_id != user_id


def can_view_bid(user_id: str, bid_owner_id: str, job: Job) -> bool:
    """出價只有出價者本人與工作的刊登者可以看到"""
    return user_id == bid_owner_id or user_id == job.user_id
