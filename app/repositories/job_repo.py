# app/repositories/job_repo.py

import logging
from typing import List, Optional
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.models.job import Job, JobStatusEnum
from app.models.bid import Bid, BidStatusEnum

logger = logging.getLogger(__name__)

class JobRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # 建立新工作
    async def create_job(self, job: Job) -> Job:
        """
        新增工作
        """
        self.db.add(job)
        await self.db.commit()
        await self.db.refresh(job)
        return job

    # 獲取單一工作
    async def get_job_by_id(self, job_id: str, for_update: bool = False) -> Optional[Job]:
        """
        透過 ID 獲取單一工作
        for_update=True 時會鎖定該列 (SELECT ... FOR UPDATE)，
        作為同一份工作上「接受出價」的序列化點
        """
        stmt = select(Job).where(Job.job_id == job_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_job_by_id_with_bids(self, job_id: str) -> Optional[Job]:
        """
        透過 ID 獲取單一工作，並 Eager Load 所有出價 (用於 JobWithBidsOut)
        """
        stmt = (
            select(Job)
            .where(Job.job_id == job_id)
            .options(selectinload(Job.bids))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    # 瀏覽「開放中」的工作
    async def list_open_jobs(
        self,
        category: Optional[str] = None,
        location: Optional[str] = None
    ) -> List[Job]:
        """
        獲取所有 'open' 的工作 (新到舊)
        1. 類別 (category): 精確比對
        2. 地區 (location): 模糊比對
        """
        stmt = select(Job).where(Job.status == JobStatusEnum.open)

        if category:
            logger.info(f"Applying category filter: {category}")
            stmt = stmt.where(Job.category == category)

        if location:
            logger.info(f"Applying location filter: {location}")
            stmt = stmt.where(Job.location.ilike(f"%{location}%"))

        result = await self.db.execute(stmt.order_by(Job.created_at.desc()))
        return result.scalars().all()

    # 查看特定屋主的所有工作 (含出價)
    async def list_jobs_by_owner_with_bids(self, user_id: str) -> List[Job]:
        """
        查詢特定屋主的所有工作，並預先載入每份工作的出價
        """
        stmt = (
            select(Job)
            .where(Job.user_id == user_id)
            .options(selectinload(Job.bids))
            .order_by(Job.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def count_bids(self, job_id: str) -> int:
        stmt = select(func.count()).select_from(Bid).where(Bid.job_id == job_id)
        return (await self.db.execute(stmt)).scalar_one()

    async def set_status(self, job_id: str, status: JobStatusEnum) -> None:
        """
        更新工作狀態 (不 commit，由上層決定交易邊界)
        """
        stmt = (
            update(Job)
            .where(Job.job_id == job_id)
            .values(status=status, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)

    async def list_assigned_jobs(self, bidder_id: str) -> List[Bid]:
        """
        專業人員「已指派工作」：自己出價被接受的工作
        回傳 Bid (已載入 job)
        """
        stmt = (
            select(Bid)
            .where(Bid.bidder_id == bidder_id, Bid.status == BidStatusEnum.accepted)
            .options(selectinload(Bid.job))
            .order_by(Bid.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()
