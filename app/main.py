import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from app.routers import (
    auth_router, user_router,
    profile_router, professional_router,
    job_router, message_router
)

# bid_router 有兩個 router：/jobs/{job_id}/bids... 與 /bids/...
from app.routers.bid_router import (
    router as bid_main_router,
    job_bid_router
)

# --- 匯入所有 Model 檔案 ---
# 都在應用程式啟動時被 SQLAlchemy 註冊。
from app.models import user
from app.models import profile
from app.models import professional
from app.models import job
from app.models import bid
from app.models import message


# 設定基礎日誌
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(title="Home Services Marketplace API")

# --- 設定 CORS (跨來源資源共用) ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # 或指定 'http://localhost:5173'
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- 全域錯誤處理 ---
@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def database_unavailable_handler(request: Request, exc: SQLAlchemyError):
    # 資料庫連線中斷 / 逾時
    logger.error(f"Database unavailable on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "服務暫時無法使用，請稍後再試"},
    )

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "資料庫錯誤，請稍後再試"},
    )

# --- 根路徑 ---
@app.get("/")
def read_root():
    return {"status": "success", "message": "Backend is running!"}

# --- 載入 API 路由 ---
app.include_router(auth_router.router)
app.include_router(user_router.router)
app.include_router(profile_router.router)
app.include_router(professional_router.router)
# job_bid_router 與 job_router 共用 /jobs 前綴，路徑不重疊
app.include_router(job_router.router)
app.include_router(job_bid_router)
app.include_router(bid_main_router)
app.include_router(message_router.router)
