# app/repositories/professional_repo.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional

from app.models.professional import Professional

class ProfessionalRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_professionals(self) -> List[Professional]:
        """
        獲取名錄中所有專業人員 (評分高到低)
        """
        stmt = select(Professional).order_by(Professional.rating.desc(), Professional.review_count.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_professional_by_id(self, professional_id: str) -> Optional[Professional]:
        stmt = select(Professional).where(Professional.professional_id == professional_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_professional_by_user_id(self, user_id: str) -> Optional[Professional]:
        stmt = select(Professional).where(Professional.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_professional(self, professional: Professional) -> Professional:
        self.db.add(professional)
        await self.db.commit()
        await self.db.refresh(professional)
        return professional
