# app/repositories/message_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, update, func
from typing import Optional, List

from app.models.message import Conversation, Message

class MessageRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Conversation 相關操作 ---

    async def get_conversation_by_id(self, conversation_id: str) -> Optional[Conversation]:
        stmt = (
            select(Conversation)
            .where(Conversation.conversation_id == conversation_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def find_conversation(
        self, job_id: str, job_poster_id: str, professional_id: str
    ) -> Optional[Conversation]:
        """
        依 (工作, 屋主, 專業人員) 查詢對話，沒有則回傳 None
        """
        stmt = select(Conversation).where(
            Conversation.job_id == job_id,
            Conversation.job_poster_id == job_poster_id,
            Conversation.professional_id == professional_id
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_conversations_by_user_id(self, user_id: str) -> List[Conversation]:
        """
        獲取使用者參與的所有對話 (最近有訊息的在前)
        Conversation.job 為 lazy="selectin"，會一併載入
        """
        stmt = (
            select(Conversation)
            .where(or_(Conversation.job_poster_id == user_id, Conversation.professional_id == user_id))
            .order_by(Conversation.last_message_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def create_conversation(self, job_id: str, job_poster_id: str, professional_id: str) -> Conversation:
        new_conversation = Conversation(
            job_id=job_id,
            job_poster_id=job_poster_id,
            professional_id=professional_id
        )
        self.db.add(new_conversation)
        await self.db.commit()
        # 重新查詢，讓 lazy="selectin" 的 job 被載入
        return await self.get_conversation_by_id(new_conversation.conversation_id)

    async def touch_conversation(self, conversation_id: str) -> None:
        """更新對話的最後活動時間 (不 commit)"""
        stmt = (
            update(Conversation)
            .where(Conversation.conversation_id == conversation_id)
            .values(last_message_at=func.now())
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)

    # --- Message 相關操作 ---

    async def get_messages_by_conversation_id(self, conversation_id: str) -> List[Message]:
        """依時間排序 (舊 -> 新)"""
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def save_message(self, conversation: Conversation, sender_id: str, content: str) -> Message:
        """
        新增訊息並更新對話的最後活動時間 (同一個交易)
        """
        new_message = Message(
            conversation_id=conversation.conversation_id,
            job_id=conversation.job_id,
            sender_id=sender_id,
            recipient_id=conversation.other_participant_id(sender_id),
            content=content
        )
        self.db.add(new_message)
        await self.touch_conversation(conversation.conversation_id)
        await self.db.commit()
        await self.db.refresh(new_message)
        return new_message

    async def mark_messages_as_read(self, conversation_id: str, recipient_id: str) -> int:
        """
        將對話中「寄給 recipient」且未讀的訊息標記為已讀 (不 commit)
        回傳被標記的數量
        """
        update_stmt = (
            update(Message)
            .where(
                and_(
                    Message.conversation_id == conversation_id,
                    Message.recipient_id == recipient_id,
                    Message.read_at.is_(None)
                )
            )
            .values(read_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(update_stmt)
        return result.rowcount

    async def count_unread(self, conversation_id: str, recipient_id: str) -> int:
        stmt = select(func.count()).select_from(Message).where(
            Message.conversation_id == conversation_id,
            Message.recipient_id == recipient_id,
            Message.read_at.is_(None)
        )
        return (await self.db.execute(stmt)).scalar_one()
