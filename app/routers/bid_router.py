# app/routers/bid_router.py

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.services.bid_service import BidService
from app.schemas.bid_schema import BidCreate, BidOut, BidOutWithJob, BidPaymentDetailOut
from app.schemas.job_schema import JobWithBidsOut

logger = logging.getLogger(__name__)

# 建立 API Router
router = APIRouter(
    prefix="/bids",
    tags=["Bids"],
    dependencies=[Depends(get_current_user)] # 此 router 下所有 API 都需要登入
)

# 掛載在 /jobs/ 下的出價 API，語意更清晰
job_bid_router = APIRouter(
    prefix="/jobs",
    tags=["Bids"],
    dependencies=[Depends(get_current_user)]
)

# -----------------------------------------------------------------
# 1. (專業人員) 對工作出價
# -----------------------------------------------------------------
@job_bid_router.post(
    "/{job_id}/bids",
    response_model=BidOut,
    status_code=status.HTTP_201_CREATED
)
async def submit_bid(
    job_id: str,
    bid_data: BidCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    對特定工作出價。

    - 金額 (分)：直接傳 amount，或同時傳 hourly_rate 與 estimated_hours (總額 = 時薪 x 工時)。
    - 不能對自己刊登的工作出價；同一份工作只能出價一次。
    """
    service = BidService(db)
    try:
        return await service.submit_bid(job_id=job_id, bidder=current_user, bid_data=bid_data)
    except HTTPException as e:
        raise e
    except (OperationalError, InterfaceError):
        raise # 資料庫無法連線，交給全域處理 (503)
    except Exception as e:
        logger.error(f"Error submitting bid on job {job_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="出價送出失敗，請稍後再試")

# -----------------------------------------------------------------
# 2. 檢視特定工作的出價 (刊登者看全部，出價者只看自己的)
# -----------------------------------------------------------------
@job_bid_router.get("/{job_id}/bids", response_model=List[BidOut])
async def list_job_bids(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = BidService(db)
    return await service.get_bids_for_job(job_id, current_user)

# -----------------------------------------------------------------
# 3. (刊登者) 接受出價：其他出價自動拒絕，工作轉為 in-progress
# -----------------------------------------------------------------
@job_bid_router.post("/{job_id}/bids/{bid_id}/accept", response_model=JobWithBidsOut)
async def accept_bid(
    job_id: str,
    bid_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    接受出價。三個變更在同一個交易完成，回傳更新後的工作與所有出價。
    """
    service = BidService(db)
    try:
        return await service.accept_bid(job_id=job_id, bid_id=bid_id, owner=current_user)
    except HTTPException as e:
        raise e
    except (OperationalError, InterfaceError):
        raise
    except Exception as e:
        logger.error(f"Error accepting bid {bid_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="接受出價失敗，請稍後再試")

# -----------------------------------------------------------------
# 4. (專業人員) 自己送出的所有出價
# -----------------------------------------------------------------
@router.get("/my", response_model=List[BidOutWithJob])
async def get_my_bids(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = BidService(db)
    return await service.get_my_bids(current_user)

# -----------------------------------------------------------------
# 5. (刊登者) 拒絕出價
# -----------------------------------------------------------------
@router.post("/{bid_id}/reject", response_model=BidOut)
async def reject_bid(
    bid_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    拒絕出價 (不影響其他出價)。對已拒絕的出價重複呼叫不會報錯。
    """
    service = BidService(db)
    return await service.reject_bid(bid_id, current_user)

# -----------------------------------------------------------------
# 6. (出價者本人) 查看付款資訊
# -----------------------------------------------------------------
@router.get("/{bid_id}/payment-details", response_model=BidPaymentDetailOut)
async def get_payment_details(
    bid_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = BidService(db)
    return await service.get_payment_detail(bid_id, current_user)
