# app/utils/pricing.py
# 金額相關的純函式 (所有金額都是以「分」為單位的整數)
from typing import Optional


def calculate_bid_amount(
    amount: Optional[int] = None,
    hourly_rate: Optional[int] = None,
    estimated_hours: Optional[int] = None,
) -> int:
    """
    決定出價的總金額 (分)

    1. 同時提供時薪與預估工時 -> 總額 = 時薪 x 工時 (覆蓋直接輸入的 amount)
    2. 否則使用直接輸入的 amount
    """
    if hourly_rate is not None and estimated_hours is not None:
        if hourly_rate < 0 or estimated_hours < 0:
            raise ValueError("時薪與工時不可為負數")
        return hourly_rate * estimated_hours

    if amount is None:
        raise ValueError("必須提供出價金額，或同時提供時薪與預估工時")
    if amount < 0:
        raise ValueError("出價金額不可為負數")
    return amount


def format_budget(budget_min: Optional[int], budget_max: Optional[int], budget_type: Optional[str] = None) -> str:
    """將預算 (分) 轉成顯示用字串，例如 "$800 - $1,200" """
    if not budget_min and not budget_max:
        return "Budget not specified"
    if budget_type == "fixed" and budget_min:
        return f"${budget_min / 100:,.0f}"
    if budget_min and budget_max:
        return f"${budget_min / 100:,.0f} - ${budget_max / 100:,.0f}"
    return f"${(budget_min or budget_max) / 100:,.0f}"
