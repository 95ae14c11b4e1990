# app/core/security.py
# 負責密碼雜湊、JWT 權杖，以及「目前登入者」的 FastAPI 依賴項
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, Query, status, WebSocketDisconnect
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.schemas.user_schema import TokenData
from app.repositories.user_repo import UserRepository
from app.models.user import User, UserRoleEnum

# 1. 密碼雜湊設定 (Bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# 2. Token 從 Authorization Header 取得
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")
# 公開頁面：沒有 Token 也不報錯
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """驗證明文密碼是否與雜湊值相符"""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """產生密碼的雜湊值"""
    return pwd_context.hash(password)

def create_access_token(data: dict) -> str:
    """
    根據傳入的 data (user_id, role) 產生 JWT access token
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )

def verify_access_token(token: str) -> TokenData | None:
    """
    驗證 JWT，回傳 TokenData 或 None
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
        user_id = payload.get("user_id")
        role = payload.get("role")

        if user_id is None or role is None:
            return None

        return TokenData(user_id=user_id, role=role)

    except JWTError:
        return None

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI 依賴項：驗證 Token 並回傳 User Model (用於 REST API)
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="無法驗證憑證",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token_data = verify_access_token(token)
    if token_data is None:
        raise credentials_exception

    user = await UserRepository(db).get_user_by_id(user_id=token_data.user_id)
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="此帳號已被停權")

    return user

async def get_optional_user(
    token: str | None = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User | None:
    """
    公開頁面用：有帶有效 Token 就回傳 User，否則回傳 None (不拋錯)
    """
    if not token:
        return None
    token_data = verify_access_token(token)
    if token_data is None:
        return None
    user = await UserRepository(db).get_user_by_id(user_id=token_data.user_id)
    if user is None or not user.is_active:
        return None
    return user

async def get_current_user_from_websocket_token(
    token: str = Query(...), # 從 Query 參數 (?token=...) 讀取
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    WebSocket 專用的 Token 驗證依賴
    """
    token_data = verify_access_token(token)
    if token_data is None:
        raise WebSocketDisconnect(code=status.WS_1008_POLICY_VIOLATION, reason="無法驗證憑證")

    user = await UserRepository(db).get_user_by_id(user_id=token_data.user_id)
    if user is None:
        raise WebSocketDisconnect(code=status.WS_1008_POLICY_VIOLATION, reason="無法驗證憑證")

    if not user.is_active:
        raise WebSocketDisconnect(code=status.WS_1008_POLICY_VIOLATION, reason="此帳號已被停權")

    return user

def require_role(role: UserRoleEnum):
    """
    產生「限定角色」的依賴項。
    角色只決定提供哪些畫面 (例如「我的工作」、「已指派工作」)，不是完整的權限系統。
    """
    async def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"此功能僅限「{role.value}」角色使用"
            )
        return current_user
    return _checker
