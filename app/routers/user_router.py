# app/routers/user_router.py
from fastapi import APIRouter, Depends
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.user_schema import UserOut

router = APIRouter(
    prefix="/users",
    tags=["Users"]
)

@router.get("/me", response_model=UserOut)
async def read_current_account(
    current_user: User = Depends(get_current_user)
):
    """
    目前登入帳號 (含角色)，前端依角色決定顯示哪些頁面
    """
    return current_user
