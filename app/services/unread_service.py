# app/services/unread_service.py

from typing import Any, Awaitable, Callable, Dict, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.websocket_manager import ConnectionManager
from app.repositories.message_repo import MessageRepository

logger = logging.getLogger(__name__)


class UnreadMessageCounter:
    """
    計算「某個 (工作, 屋主, 專業人員) 對話中，寄給 viewer 且尚未讀取」的訊息數
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.message_repo = MessageRepository(db)

    async def compute_count(
        self,
        job_id: str,
        job_poster_id: str,
        professional_id: str,
        viewer_id: str
    ) -> int:
        """
        1. 找出對話；不存在時回傳 0 (對話只在真正開啟聊天時才建立，這不是錯誤)
        2. 計算 recipient = viewer 且 read_at IS NULL 的訊息
        查詢失敗時記錄錯誤並回傳 0
        """
        if not (job_id and job_poster_id and professional_id and viewer_id):
            return 0

        try:
            conversation = await self.message_repo.find_conversation(job_id, job_poster_id, professional_id)
            if not conversation:
                return 0
            return await self.message_repo.count_unread(conversation.conversation_id, viewer_id)
        except SQLAlchemyError as e:
            logger.error(f"Error counting unread messages for job {job_id}: {e}", exc_info=True)
            return 0


class UnreadCountSubscription:
    """
    即時未讀數：訂閱 viewer 的訊息事件，只有事件屬於同一個
    (工作, 屋主, 專業人員) 時才重新計算，並把新的數字交給 on_change
    """

    def __init__(
        self,
        hub: ConnectionManager,
        session_factory: Callable[[], AsyncSession],
        job_id: str,
        job_poster_id: str,
        professional_id: str,
        viewer_id: str,
        on_change: Callable[[int], Awaitable[None]],
    ):
        self.hub = hub
        self.session_factory = session_factory
        self.job_id = job_id
        self.job_poster_id = job_poster_id
        self.professional_id = professional_id
        self.viewer_id = viewer_id
        self.on_change = on_change
        self.unread_count = 0
        self._active = False

    def matches(self, event: Dict[str, Any]) -> bool:
        return (
            event.get("job_id") == self.job_id
            and event.get("job_poster_id") == self.job_poster_id
            and event.get("professional_id") == self.professional_id
        )

    async def refresh(self) -> int:
        # 每次重新計算都開新的 session，才能讀到其他連線剛提交的資料
        async with self.session_factory() as session:
            counter = UnreadMessageCounter(session)
            self.unread_count = await counter.compute_count(
                self.job_id, self.job_poster_id, self.professional_id, self.viewer_id
            )
        await self.on_change(self.unread_count)
        return self.unread_count

    async def _handle_event(self, event: Dict[str, Any]) -> None:
        if self.matches(event):
            await self.refresh()

    async def start(self) -> int:
        """訂閱事件並推送第一次的數字"""
        if not self._active:
            self.hub.subscribe(self.viewer_id, self._handle_event)
            self._active = True
        return await self.refresh()

    def stop(self) -> None:
        if self._active:
            self.hub.unsubscribe(self.viewer_id, self._handle_event)
            self._active = False
