# app/services/job_service.py
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status
from typing import List, Optional

# 匯入 Models
from app.models.user import User
from app.models.job import Job, JobStatusEnum

# 匯入 Schemas
from app.schemas.job_schema import JobCreate, JobDetailOut, AssignedJobOut

# 匯入 Repositories
from app.repositories.job_repo import JobRepository
from app.repositories.profile_repo import ProfileRepository
from app.utils.policies import user_is_not_job_poster

logger = logging.getLogger(__name__)

class JobService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.job_repo = JobRepository(db)
        self.profile_repo = ProfileRepository(db)

    async def _get_and_check_owner(self, job_id: str, user: User) -> Job:
        """
        獲取工作，並檢查是否為刊登者。
        """
        job = await self.job_repo.get_job_by_id(job_id)
        if not job:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="工作不存在"
            )
        if job.user_id != user.user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="你沒有權限修改此工作"
            )
        return job

    async def create_job(self, job_data: JobCreate, user: User) -> Job:
        """
        業務邏輯：刊登工作
        """
        homeowner_name = job_data.homeowner_name
        if not homeowner_name:
            # 帶入刊登者 Profile 上的名字
            profile = await self.profile_repo.get_profile_by_user_id(user.user_id)
            homeowner_name = (profile.full_name if profile else None) or user.email.split("@")[0]

        new_job = Job(
            **job_data.model_dump(exclude={"homeowner_name"}),
            user_id=user.user_id,
            homeowner_name=homeowner_name,
            homeowner_verified=False,
            status=JobStatusEnum.open
        )
        created = await self.job_repo.create_job(new_job)
        logger.info(f"Job {created.job_id} posted by {user.user_id}")
        return created

    async def list_open_jobs(
        self,
        category: Optional[str] = None,
        location: Optional[str] = None
    ) -> List[Job]:
        """
        業務邏輯：瀏覽開放中的工作
        """
        return await self.job_repo.list_open_jobs(category=category, location=location)

    async def get_job_detail(self, job_id: str, viewer: Optional[User] = None) -> JobDetailOut:
        """
        業務邏輯：獲取單一工作詳情 (附帶目前登入者是否可出價)
        """
        job = await self.job_repo.get_job_by_id(job_id)
        if not job:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="工作不存在"
            )
        bid_count = await self.job_repo.count_bids(job_id)
        viewer_id = viewer.user_id if viewer else None

        return JobDetailOut.model_validate(job).model_copy(update={
            "can_bid": user_is_not_job_poster(viewer_id, job),
            "bid_count": bid_count,
        })

    async def get_my_jobs(self, user: User) -> List[Job]:
        """
        業務邏輯：屋主查看自己刊登的所有工作 (含出價)
        """
        return await self.job_repo.list_jobs_by_owner_with_bids(user.user_id)

    async def get_assigned_jobs(self, user: User) -> List[AssignedJobOut]:
        """
        業務邏輯：專業人員查看出價已被接受的工作
        """
        bids = await self.job_repo.list_assigned_jobs(user.user_id)
        return [
            AssignedJobOut(
                job_id=bid.job.job_id,
                job_title=bid.job.title,
                job_description=bid.job.description,
                job_location=bid.job.location,
                job_category=bid.job.category,
                job_status=bid.job.status,
                homeowner_name=bid.job.homeowner_name,
                homeowner_verified=bool(bid.job.homeowner_verified),
                job_poster_id=bid.job.user_id,
                bid_id=bid.bid_id,
                bid_amount=bid.amount,
                bid_status=bid.status.value,
                created_at=bid.job.created_at,
            )
            for bid in bids
        ]

    async def change_job_status(self, job_id: str, new_status: JobStatusEnum, user: User) -> Job:
        """
        業務邏輯：刊登者變更工作狀態
        任何狀態之間都可以互相轉換 (只驗證是否為合法的狀態值)
        """
        if new_status not in list(JobStatusEnum):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="無效的狀態"
            )

        job = await self._get_and_check_owner(job_id, user)
        previous_status = job.status

        try:
            await self.job_repo.set_status(job_id, new_status)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Job {job_id} status: {previous_status.value} -> {JobStatusEnum(new_status).value}")
        return await self.job_repo.get_job_by_id_with_bids(job_id)
