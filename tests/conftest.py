import os
import sys

# 測試時不需要真的 PostgreSQL，import app 之前先給預設值
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_default.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.core.database import Base
from app.models import user, profile, professional, job, bid, message  # noqa: F401 (註冊資料表)


@pytest.fixture
def session_factory(tmp_path):
    """每個測試一個全新的 SQLite 檔案"""
    path = tmp_path / "marketplace.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    # NullPool：每次 asyncio.run 都是新的 event loop，不能共用連線
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


