# app/schemas/user_schema.py
from pydantic import BaseModel, EmailStr, Field, field_validator
import re
from app.models.user import UserRoleEnum
from typing import Optional

# 登入請求的格式
class UserLogin(BaseModel):
    email: EmailStr
    password: str

# Token 回應的格式
class Token(BaseModel):
    access_token: str
    token_type: str

# Token 內的資料
class TokenData(BaseModel):
    user_id: str
    role: str


# 註冊請求 Body
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRoleEnum # "job_poster" 或 "professional"，註冊後不可變更
    # 以下欄位會寫入自動建立的 Profile
    full_name: str = Field("", max_length=255)
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        """
        驗證密碼是否包含英文和數字
        """
        if not re.search(r'(?=.*[a-zA-Z])(?=.*[0-9])', v):
            raise ValueError('密碼必須包含英文和數字')
        return v

# 註冊/查詢使用者的安全回應
class UserOut(BaseModel):
    user_id: str
    email: EmailStr
    role: UserRoleEnum
    is_active: bool

    class Config:
        from_attributes = True
