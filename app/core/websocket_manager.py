# app/core/websocket_manager.py
# 即時事件中心：以「接收者 user_id」為 key 的發佈/訂閱

from typing import Any, Awaitable, Callable, Dict, List
import logging

logger = logging.getLogger(__name__)

# 監聽者：收到事件 (dict) 後執行的非同步函式
Listener = Callable[[Dict[str, Any]], Awaitable[None]]


class ConnectionManager:
    """
    管理訊息事件的訂閱者。

    結構: {user_id: [listener, ...]}
    每一個 WebSocket 連線 (聊天室畫面 / 未讀數徽章) 都會註冊一個 listener。
    事件只在同一個行程內傳遞，屬於 best-effort：
    斷線期間的事件不會補送，客戶端重連後應重新查詢。
    """

    def __init__(self):
        self.active_listeners: Dict[str, List[Listener]] = {}

    def subscribe(self, user_id: str, listener: Listener) -> None:
        if user_id not in self.active_listeners:
            self.active_listeners[user_id] = []
        self.active_listeners[user_id].append(listener)
        logger.info(f"User {user_id} subscribed. Total listeners: {len(self.active_listeners[user_id])}")

    def unsubscribe(self, user_id: str, listener: Listener) -> None:
        listeners = self.active_listeners.get(user_id)
        if not listeners or listener not in listeners:
            return # 可能是重複取消
        listeners.remove(listener)
        if not listeners:
            del self.active_listeners[user_id]
        logger.info(f"User {user_id} unsubscribed.")

    def listener_count(self, user_id: str) -> int:
        return len(self.active_listeners.get(user_id, []))

    async def publish(self, user_id: str, event: Dict[str, Any]) -> None:
        """將事件送給某位使用者的所有 listener。"""
        # 複製一份，listener 執行中可能會取消訂閱
        for listener in list(self.active_listeners.get(user_id, [])):
            try:
                await listener(event)
            except Exception as e:
                logger.warning(f"Failed to deliver {event.get('type')} to user {user_id}: {e}")
                self.unsubscribe(user_id, listener)

# 實例化管理器 (全域單例)
manager = ConnectionManager()
