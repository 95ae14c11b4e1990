# app/services/profile_service.py
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status
from app.models.profile import Profile
from app.models.user import User
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile_schema import ProfileUpdate

class ProfileService:
    def __init__(self, db: AsyncSession):
        self.repo = ProfileRepository(db)
        self.db = db

    async def get_my_profile(self, user: User) -> Profile:
        """取得登入者的 Profile (註冊時就會建立)"""
        profile = await self.repo.get_profile_by_user_id(user.user_id)
        if not profile:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Profile 不存在")
        return profile

    async def update_my_profile(self, user: User, update_data: ProfileUpdate) -> Profile:
        """
        業務邏輯：更新 Profile (姓名 / 電話)
        角色在註冊時固定，不在此處修改
        """
        profile = await self.get_my_profile(user)
        await self.repo.update_profile(profile, update_data)
        # 重新查詢，確保 Profile.user 已載入
        return await self.repo.get_profile_by_user_id(user.user_id)

    async def get_profile(self, user_id: str) -> Profile:
        """獲取指定使用者的 Profile (公開用)"""
        profile = await self.repo.get_profile_by_user_id(user_id)
        if not profile:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Profile 不存在")
        return profile
