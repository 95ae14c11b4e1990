import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.services.auth_service import AuthService
from app.schemas.user_schema import Token, UserCreate, UserOut


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth", # 路由前綴
    tags=["Auth"]
)


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register_new_user(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    註冊新使用者 (屋主 job_poster / 專業人員 professional)

    - 密碼需至少8碼，且包含英文和數字。
    - 角色在註冊時決定，之後不可變更。
    - 會同時建立對應的 Profile。
    """
    auth_service = AuthService(db)
    return await auth_service.register_user(user_data)


@router.post("/token", response_model=Token)
async def login_for_access_token(
    # 只接受 form-data：username=...&password=...
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db)
):
    """
    提供帳號 (username 欄位傳 email) 和密碼以取得 Access Token
    """
    auth_service = AuthService(db)
    user = await auth_service.authenticate_user(
        email=form_data.username,
        password=form_data.password
    )

    if not user:
        logger.info(f"Failed login attempt for {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="不正確的帳號或密碼",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"User logged in: {user.user_id}")
    access_token = auth_service.create_login_token(user)
    return {"access_token": access_token, "token_type": "bearer"}
