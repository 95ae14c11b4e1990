# app/repositories/user_repo.py
# 負責與使用者相關的資料庫操作
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.user import User
from app.models.profile import Profile

class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> User | None:
        """
        透過 email 查詢使用者
        """
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_user_with_profile(self, user: User, profile: Profile) -> User:
        """
        新增使用者，並在同一個交易中建立其 Profile (註冊的副作用)
        """
        user.profile = profile
        self.db.add(user)
        self.db.add(profile)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def get_user_by_id(self, user_id: str) -> User | None:
        """
        透過 user_id 查詢使用者
        """
        stmt = select(User).where(User.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()
