# app/services/professional_service.py
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.models.professional import Professional
from app.models.user import User
from app.repositories.professional_repo import ProfessionalRepository
from app.schemas.professional_schema import ProfessionalCreate

class ProfessionalService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = ProfessionalRepository(db)

    async def list_professionals(self) -> List[Professional]:
        return await self.repo.list_professionals()

    async def get_professional(self, professional_id: str) -> Professional:
        professional = await self.repo.get_professional_by_id(professional_id)
        if not professional:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "專業人員不存在")
        return professional

    async def create_my_listing(self, user: User, data: ProfessionalCreate) -> Professional:
        """
        專業人員建立自己的名錄資料 (每個帳號一筆)
        評分、認證等欄位由系統維護，不接受使用者輸入
        """
        existing = await self.repo.get_professional_by_user_id(user.user_id)
        if existing:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "名錄資料已存在")

        professional = Professional(**data.model_dump(), user_id=user.user_id)
        return await self.repo.create_professional(professional)
