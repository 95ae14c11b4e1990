# app/routers/professional_router.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.core.security import require_role
from app.models.user import User, UserRoleEnum
from app.services.professional_service import ProfessionalService
from app.schemas.professional_schema import ProfessionalCreate, ProfessionalOut

router = APIRouter(
    prefix="/professionals",
    tags=["Professionals"]
)

@router.get("/", response_model=List[ProfessionalOut])
async def list_professionals(db: AsyncSession = Depends(get_db)):
    """
    專業人員名錄 (公開)，依評分排序
    """
    service = ProfessionalService(db)
    return await service.list_professionals()

@router.post("/me", response_model=ProfessionalOut, status_code=status.HTTP_201_CREATED)
async def create_my_listing(
    data: ProfessionalCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRoleEnum.professional))
):
    service = ProfessionalService(db)
    return await service.create_my_listing(current_user, data)

@router.get("/{professional_id}", response_model=ProfessionalOut)
async def get_professional(
    professional_id: str,
    db: AsyncSession = Depends(get_db)
):
    service = ProfessionalService(db)
    return await service.get_professional(professional_id)
