# app/routers/job_router.py
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

# 匯入核心依賴
from app.core.database import get_db
from app.core.security import get_current_user, get_optional_user, require_role
from app.models.user import User, UserRoleEnum

# 匯入 Service 和 Schemas
from app.services.job_service import JobService
from app.schemas.job_schema import (
    JobCreate, JobOut, JobDetailOut, JobStatusUpdate, JobWithBidsOut, AssignedJobOut
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/jobs",
    tags=["Jobs"]
)

@router.post(
    "/",
    response_model=JobOut,
    status_code=status.HTTP_201_CREATED
)
async def create_new_job(
    job_data: JobCreate, # Request Body
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    刊登新工作。

    - 預算 (budget_min / budget_max) 以「分」為單位。
    - 未提供 homeowner_name 時使用刊登者 Profile 上的名字。
    """
    service = JobService(db)
    return await service.create_job(job_data=job_data, user=current_user)

@router.get("/", response_model=List[JobOut])
async def browse_open_jobs(
    db: AsyncSession = Depends(get_db),
    category: Optional[str] = None, # 精確
    location: Optional[str] = None  # 模糊
):
    """
    瀏覽所有開放中的工作 (公開，新到舊)。
    """
    logger.info(f"Browse jobs - category: {category}, location: {location}")
    service = JobService(db)
    return await service.list_open_jobs(category=category, location=location)

@router.get("/my", response_model=List[JobWithBidsOut])
async def read_my_jobs(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRoleEnum.job_poster))
):
    """
    (屋主) 自己刊登的所有工作，以及每份工作收到的出價。
    """
    service = JobService(db)
    return await service.get_my_jobs(current_user)

@router.get("/assigned", response_model=List[AssignedJobOut])
async def read_assigned_jobs(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRoleEnum.professional))
):
    """
    (專業人員) 出價已被接受的工作。
    """
    service = JobService(db)
    return await service.get_assigned_jobs(current_user)

# 拿到特定的工作詳情
@router.get("/{job_id}", response_model=JobDetailOut)
async def get_job_by_id(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    """
    獲取單一工作的詳細資料。
    登入時 can_bid 表示目前使用者是否可以對此工作出價。
    """
    service = JobService(db)
    # Service 層會自動處理 404 Not Found
    return await service.get_job_detail(job_id, viewer)

@router.patch("/{job_id}/status", response_model=JobWithBidsOut)
async def update_job_status(
    job_id: str,
    status_data: JobStatusUpdate, # Request Body
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (刊登者) 變更工作狀態：open / in-progress / completed / cancelled。
    """
    service = JobService(db)
    return await service.change_job_status(
        job_id=job_id,
        new_status=status_data.status,
        user=current_user
    )
