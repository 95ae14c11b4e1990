# app/services/bid_service.py

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from app.models.user import User
from app.models.bid import Bid, BidPaymentDetail, BidStatusEnum
from app.models.job import Job, JobStatusEnum
from app.repositories.bid_repo import BidRepository
from app.repositories.job_repo import JobRepository
from app.repositories.profile_repo import ProfileRepository
from app.schemas.bid_schema import BidCreate
from app.utils.policies import user_is_not_job_poster, can_view_bid

logger = logging.getLogger(__name__)


class BidService:
    """
    出價生命週期：送出、接受 (連帶拒絕其他出價)、拒絕
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.bid_repo = BidRepository(db)
        self.job_repo = JobRepository(db)
        self.profile_repo = ProfileRepository(db)

    async def _get_job_or_404(self, job_id: str, for_update: bool = False) -> Job:
        job = await self.job_repo.get_job_by_id(job_id, for_update=for_update)
        if not job:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="工作不存在")
        return job

    async def submit_bid(self, job_id: str, bidder: User, bid_data: BidCreate) -> Bid:
        """
        (專業人員) 對工作出價
        """
        # 步驟 1: 驗證
        job = await self._get_job_or_404(job_id)
        if not user_is_not_job_poster(bidder.user_id, job):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="你不能對自己刊登的工作出價")
        existing = await self.bid_repo.check_existing_bid(job_id, bidder.user_id)
        if existing:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="你已經對此工作出價")

        # 步驟 2: 聯絡資訊未填時帶入 Profile (出價當下的快照)
        profile = await self.profile_repo.get_profile_by_user_id(bidder.user_id)
        bidder_name = bid_data.bidder_name or (profile.full_name if profile else None)
        bidder_email = bid_data.bidder_email or (profile.email if profile else bidder.email)
        bidder_phone = bid_data.bidder_phone or (profile.phone if profile else None)

        new_bid = Bid(
            job_id=job_id,
            bidder_id=bidder.user_id,
            bidder_name=bidder_name,
            bidder_email=bidder_email,
            bidder_phone=bidder_phone,
            amount=bid_data.amount, # Schema 已算好 (時薪 x 工時 或 直接輸入)
            hourly_rate=bid_data.hourly_rate,
            estimated_hours=bid_data.estimated_hours,
            timeline=bid_data.timeline,
            message=bid_data.message,
            status=BidStatusEnum.pending
        )

        # 步驟 3: 儲存 (唯一性限制是最後一道防線)
        try:
            created = await self.bid_repo.create_bid(new_bid, bank_account_number=bid_data.bank_account_number)
        except IntegrityError:
            await self.db.rollback()
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="你已經對此工作出價")

        logger.info(f"Bid {created.bid_id} submitted on job {job_id} by {bidder.user_id} (amount={created.amount})")
        return created

    async def accept_bid(self, job_id: str, bid_id: str, owner: User) -> Job:
        """
        (刊登者) 接受出價

        單一交易內完成：
        (a) 目標出價 -> accepted
        (b) 同工作其他出價 -> rejected
        (c) 工作狀態 -> in-progress
        任何一步失敗整筆 rollback，不會留下部分完成的狀態。
        """
        # 鎖定工作列，同一份工作的接受動作依序執行
        job = await self._get_job_or_404(job_id, for_update=True)
        bid = await self.bid_repo.get_bid_by_id(bid_id)
        if not bid or bid.job_id != job_id:
            await self.db.rollback()
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="出價不存在")
        if job.user_id != owner.user_id:
            await self.db.rollback()
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="你沒有權限處理此工作的出價")

        try:
            await self.bid_repo.set_status(bid_id, BidStatusEnum.accepted)
            rejected_count = await self.bid_repo.reject_siblings(job_id, bid_id)
            await self.job_repo.set_status(job_id, JobStatusEnum.in_progress)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"接受出價失敗 (job={job_id}, bid={bid_id}): {e}", exc_info=True)
            raise

        logger.info(f"Bid {bid_id} accepted on job {job_id}; {rejected_count} other bid(s) rejected")

        # bulk UPDATE 不會同步 Session 內的物件，用 populate_existing 重新載入工作與出價
        return await self.job_repo.get_job_by_id_with_bids(job_id)

    async def reject_bid(self, bid_id: str, owner: User) -> Bid:
        """
        (刊登者) 拒絕出價：不影響其他出價與工作狀態
        對已拒絕的出價重複呼叫不會報錯
        """
        bid = await self.bid_repo.get_bid_by_id_with_job(bid_id)
        if not bid:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="出價不存在")
        if bid.job.user_id != owner.user_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="你沒有權限處理此工作的出價")

        if bid.status == BidStatusEnum.rejected:
            return bid # 已拒絕，直接回傳

        try:
            await self.bid_repo.set_status(bid_id, BidStatusEnum.rejected)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Bid {bid_id} rejected")
        return await self.bid_repo.get_bid_by_id_with_job(bid_id)

    async def get_bids_for_job(self, job_id: str, viewer: User) -> List[Bid]:
        """
        檢視某份工作的出價：
        刊登者看到全部；其他人只看到自己的出價
        """
        job = await self._get_job_or_404(job_id)
        bids = await self.bid_repo.get_bids_by_job_id(job_id)
        return [b for b in bids if can_view_bid(viewer.user_id, b.bidder_id, job)]

    async def get_my_bids(self, bidder: User) -> List[Bid]:
        return await self.bid_repo.get_bids_by_bidder_id(bidder.user_id)

    async def get_payment_detail(self, bid_id: str, user: User) -> BidPaymentDetail:
        """
        付款資訊只有出價者本人可以查看
        """
        bid = await self.bid_repo.get_bid_by_id(bid_id)
        if not bid:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="出價不存在")
        if bid.bidder_id != user.user_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="你沒有權限查看此付款資訊")

        detail = await self.bid_repo.get_payment_detail(bid_id)
        if not detail:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="此出價沒有付款資訊")
        return detail
