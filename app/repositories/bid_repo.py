# app/repositories/bid_repo.py

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload, selectinload
from typing import List, Optional

from app.models.bid import Bid, BidPaymentDetail, BidStatusEnum

class BidRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_bid_by_id(self, bid_id: str) -> Optional[Bid]:
        """
        透過 ID 獲取單一出價
        """
        stmt = select(Bid).where(Bid.bid_id == bid_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_bid_by_id_with_job(self, bid_id: str) -> Optional[Bid]:
        """
        透過 ID 獲取單一出價，並載入關聯的 Job (用於權限檢查)
        """
        stmt = select(Bid).where(Bid.bid_id == bid_id).options(
            # 需要 bid.job.user_id 判斷是否為屋主
            joinedload(Bid.job)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def check_existing_bid(self, job_id: str, bidder_id: str) -> Optional[Bid]:
        """
        檢查特定使用者是否已對特定工作出價 (唯一性檢查)
        """
        stmt = select(Bid).where(
            Bid.job_id == job_id,
            Bid.bidder_id == bidder_id
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_bids_by_job_id(self, job_id: str) -> List[Bid]:
        """
        獲取特定工作的所有出價 (新到舊)
        """
        stmt = select(Bid).where(Bid.job_id == job_id).order_by(Bid.created_at.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_bids_by_bidder_id(self, bidder_id: str) -> List[Bid]:
        """
        獲取特定專業人員的所有出價 (「我的出價」)
        """
        stmt = select(Bid).where(Bid.bidder_id == bidder_id).options(
            # 載入關聯的工作資訊
            selectinload(Bid.job)
        ).order_by(Bid.created_at.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def create_bid(self, bid: Bid, bank_account_number: Optional[str] = None) -> Bid:
        """
        新增出價 (若有銀行帳號，同一個交易寫入 bid_payment_details)
        """
        self.db.add(bid)
        if bank_account_number:
            await self.db.flush() # 取得 bid_id
            self.db.add(BidPaymentDetail(
                bid_id=bid.bid_id,
                user_id=bid.bidder_id,
                bank_account_number=bank_account_number
            ))
        await self.db.commit()
        await self.db.refresh(bid)
        return bid

    async def set_status(self, bid_id: str, status: BidStatusEnum) -> None:
        """
        更新單一出價的狀態 (不 commit)
        """
        stmt = (
            update(Bid)
            .where(Bid.bid_id == bid_id)
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)

    async def reject_siblings(self, job_id: str, accepted_bid_id: str) -> int:
        """
        將同一份工作的其他出價全部設為 rejected (不 commit)
        回傳受影響的列數
        """
        stmt = (
            update(Bid)
            .where(Bid.job_id == job_id, Bid.bid_id != accepted_bid_id)
            .values(status=BidStatusEnum.rejected)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def get_payment_detail(self, bid_id: str) -> Optional[BidPaymentDetail]:
        stmt = select(BidPaymentDetail).where(BidPaymentDetail.bid_id == bid_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()
