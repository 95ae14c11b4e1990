# app/repositories/profile_repo.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Dict, Iterable

from app.models.profile import Profile
from app.schemas.profile_schema import ProfileUpdate


class ProfileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile_by_user_id(self, user_id: str) -> Profile | None:
        # Profile.user 設定了 lazy="selectin"，role 會一併載入
        stmt = select(Profile).where(Profile.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_profiles_by_user_ids(self, user_ids: Iterable[str]) -> Dict[str, Profile]:
        """
        一次查詢多位使用者的 Profile，回傳 {user_id: Profile}
        (避免對話列表產生 N+1 查詢)
        """
        ids = list(set(user_ids))
        if not ids:
            return {}
        stmt = select(Profile).where(Profile.user_id.in_(ids))
        result = await self.db.execute(stmt)
        return {p.user_id: p for p in result.scalars().all()}

    async def update_profile(self, profile: Profile, update_data: ProfileUpdate) -> Profile:
        """更新 Profile"""

        # exclude_unset=True 只會包含「有被傳入」的欄位
        update_dict = update_data.model_dump(exclude_unset=True)

        for key, value in update_dict.items():
            setattr(profile, key, value)

        await self.db.commit()
        await self.db.refresh(profile)
        return profile
