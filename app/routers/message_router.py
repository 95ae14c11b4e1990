# app/routers/message_router.py

from fastapi import APIRouter, Depends, status, WebSocket, WebSocketDisconnect, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db, get_session_factory
from app.core.security import get_current_user, get_current_user_from_websocket_token
from app.core.websocket_manager import manager
from app.services.message_service import MessageService
from app.services.unread_service import UnreadMessageCounter, UnreadCountSubscription
from app.schemas.message_schema import (
    ConversationCreate, ConversationOut, MessageIn, MessageOut, MarkReadOut, UnreadCountOut
)
from app.models.user import User
from typing import Any, Dict, List
from pydantic import ValidationError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messaging"])

# --- RESTful API ---

@router.get("/conversations", response_model=List[ConversationOut], summary="獲取使用者的對話列表")
async def list_user_conversations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    當前登入者參與的所有對話，最近有訊息的排前面。
    """
    service = MessageService(db)
    return await service.get_user_conversations(user)

@router.post("/conversations", response_model=ConversationOut, summary="開啟 (或取得既有) 對話")
async def open_conversation(
    data: ConversationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    每個 (工作, 屋主, 專業人員) 只有一個對話。
    專業人員在此工作上的出價必須已被接受。
    """
    service = MessageService(db)
    return await service.get_or_create_conversation(data, user)

@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageOut], summary="獲取歷史訊息")
async def get_history_messages(
    conversation_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    獲取對話的歷史訊息 (舊 -> 新)。
    (會自動將寄給自己的未讀訊息標記為已讀)
    """
    service = MessageService(db)
    return await service.get_conversation_messages(conversation_id, user)

@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
    summary="送出訊息"
)
async def post_message(
    conversation_id: str,
    data: MessageIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    return await service.send_message(conversation_id, user, data.content)

@router.post("/conversations/{conversation_id}/read", response_model=MarkReadOut, summary="標記已讀")
async def mark_conversation_read(
    conversation_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    return await service.mark_as_read(conversation_id, user)

@router.get("/unread-count", response_model=UnreadCountOut, summary="某個對話中寄給自己的未讀數")
async def get_unread_count(
    job_id: str = Query(...),
    job_poster_id: str = Query(...),
    professional_id: str = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    對話尚未建立時回傳 0。
    """
    counter = UnreadMessageCounter(db)
    count = await counter.compute_count(job_id, job_poster_id, professional_id, user.user_id)
    return UnreadCountOut(
        job_id=job_id,
        job_poster_id=job_poster_id,
        professional_id=professional_id,
        unread_count=count
    )


# --- WebSocket Endpoints ---

@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    # 前端連線 URL 必須是: /messages/ws?token=...
    user: User = Depends(get_current_user_from_websocket_token),
    db: AsyncSession = Depends(get_db)
):
    """
    即時訊息通道。
    - 伺服器推送：message_created / messages_read 事件
    - 客戶端送出：{"conversation_id": "...", "content": "..."}
    """
    await websocket.accept()
    service = MessageService(db)

    async def push_event(event: Dict[str, Any]) -> None:
        await websocket.send_json(event)

    manager.subscribe(user.user_id, push_event)

    try:
        while True:
            data = await websocket.receive_json()

            # 儲存後由 Service 推送事件給雙方 (包含自己)
            try:
                conversation_id = data.get("conversation_id") if isinstance(data, dict) else None
                if not conversation_id:
                    raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="缺少 conversation_id")
                message = MessageIn(content=data.get("content", ""))
                await service.send_message(conversation_id, user, message.content)
            except HTTPException as e:
                await websocket.send_json({"type": "error", "detail": e.detail})
            except ValidationError:
                await websocket.send_json({"type": "error", "detail": "訊息內容不可為空"})

    except WebSocketDisconnect:
        logger.info(f"User {user.user_id} disconnected from message channel")
    except Exception as e:
        logger.error(f"Unexpected error in message WS for user {user.user_id}: {e}", exc_info=True)
    finally:
        manager.unsubscribe(user.user_id, push_event)


@router.websocket("/ws/unread")
async def unread_count_websocket(
    websocket: WebSocket,
    job_id: str = Query(...),
    job_poster_id: str = Query(...),
    professional_id: str = Query(...),
    # /messages/ws/unread?job_id=...&job_poster_id=...&professional_id=...&token=...
    user: User = Depends(get_current_user_from_websocket_token),
    session_factory=Depends(get_session_factory)
):
    """
    即時未讀數徽章：連線後先推送一次目前數字，
    之後只要同一個對話有新訊息或已讀變更就重新推送。
    """
    await websocket.accept()

    async def push_count(count: int) -> None:
        await websocket.send_json({"type": "unread_count", "unread_count": count})

    subscription = UnreadCountSubscription(
        hub=manager,
        session_factory=session_factory,
        job_id=job_id,
        job_poster_id=job_poster_id,
        professional_id=professional_id,
        viewer_id=user.user_id,
        on_change=push_count,
    )

    try:
        await subscription.start()
        while True:
            # 客戶端送任何文字都視為「手動重新整理」
            await websocket.receive_text()
            await subscription.refresh()
    except WebSocketDisconnect:
        logger.info(f"Unread badge closed for user {user.user_id} (job {job_id})")
    except Exception as e:
        logger.error(f"Unexpected error in unread WS for user {user.user_id}: {e}", exc_info=True)
    finally:
        subscription.stop()
