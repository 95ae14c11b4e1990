# app/routers/profile_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.services.profile_service import ProfileService
from app.schemas.profile_schema import ProfileOut, ProfileUpdate

import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/profiles",
    tags=["Profiles"],
    dependencies=[Depends(get_current_user)]
)

@router.get("/me", response_model=ProfileOut)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    獲取當前登入者的 Profile (註冊時自動建立)。
    """
    service = ProfileService(db)
    return await service.get_my_profile(current_user)

@router.put("/me", response_model=ProfileOut)
async def update_my_profile(
    update_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    更新姓名 / 電話。出價時未填的聯絡資料會從這裡帶入。
    """
    service = ProfileService(db)
    profile = await service.update_my_profile(current_user, update_data)
    logger.info(f"Profile updated for user {current_user.user_id}")
    return profile

@router.get("/{user_id}", response_model=ProfileOut)
async def get_user_profile(
    user_id: str,
    db: AsyncSession = Depends(get_db)
):
    """
    獲取指定使用者的 Profile (例如聊天對象)
    """
    service = ProfileService(db)
    return await service.get_profile(user_id)
