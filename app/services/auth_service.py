import logging
import uuid
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.user_repo import UserRepository
from app.core.security import verify_password, create_access_token, get_password_hash
from app.models.user import User
from app.models.profile import Profile
from app.schemas.user_schema import UserCreate

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)

    async def authenticate_user(self, email: str, password: str) -> User | None:
        """
        登入驗證：帳號不存在、已停權、密碼錯誤一律回傳 None
        (不讓呼叫端分辨是哪一種失敗)
        """
        account = await self.user_repo.get_user_by_email(email)
        if account is None or not account.is_active:
            return None
        if not verify_password(password, account.password_hash):
            return None
        return account

    async def register_user(self, user_create: UserCreate) -> User:
        """
        處理使用者註冊：建立帳號，並自動建立 Profile
        """
        # 1. 檢查 Email 是否已被註冊
        existing_user = await self.user_repo.get_user_by_email(user_create.email)
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="此 Email 已經被註冊",
            )

        # 2. 建立 User 與 Profile ORM 模型
        user_id = str(uuid.uuid4())
        new_user = User(
            user_id=user_id,
            email=user_create.email,
            password_hash=get_password_hash(user_create.password),
            role=user_create.role
        )
        new_profile = Profile(
            user_id=user_id,
            email=user_create.email,
            full_name=user_create.full_name,
            phone=user_create.phone
        )

        # 3. 同一個交易儲存
        try:
            created_user = await self.user_repo.create_user_with_profile(new_user, new_profile)
        except IntegrityError:
            # 兩個請求同時註冊同一個 Email
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="此 Email 已經被註冊",
            )

        logger.info(f"User registered: {created_user.user_id} ({created_user.role.value})")
        return created_user

    def create_login_token(self, user: User) -> str:
        """
        為指定使用者建立 access token
        """
        return create_access_token(
            data={
                "sub": user.email,
                "user_id": str(user.user_id),
                "role": user.role.value # 確保存入的是字串
            }
        )
