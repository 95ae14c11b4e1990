# app/services/message_service.py

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List
import logging

# 匯入 Schemas
from app.schemas.message_schema import ConversationCreate, ConversationOut, MessageOut, MarkReadOut
from app.schemas.profile_schema import ParticipantProfileOut

# 匯入 Repositories
from app.repositories.message_repo import MessageRepository
from app.repositories.job_repo import JobRepository
from app.repositories.bid_repo import BidRepository
from app.repositories.profile_repo import ProfileRepository

from app.models.user import User
from app.models.bid import BidStatusEnum
from app.models.message import Conversation, Message

from app.core.websocket_manager import ConnectionManager, manager

logger = logging.getLogger(__name__)


def build_message_event(event_type: str, conversation: Conversation, **extra: Any) -> Dict[str, Any]:
    """
    即時事件的格式：一律帶上對話的 (工作, 屋主, 專業人員)，
    訂閱者可據此只處理自己關心的對話
    """
    event = {
        "type": event_type,
        "conversation_id": conversation.conversation_id,
        "job_id": conversation.job_id,
        "job_poster_id": conversation.job_poster_id,
        "professional_id": conversation.professional_id,
    }
    event.update(extra)
    return event


class MessageService:
    def __init__(self, db: AsyncSession, hub: ConnectionManager = manager):
        self.db = db
        self.hub = hub
        self.message_repo = MessageRepository(db)
        self.job_repo = JobRepository(db)
        self.bid_repo = BidRepository(db)
        self.profile_repo = ProfileRepository(db)

    async def _get_conversation_for_participant(self, conversation_id: str, user: User) -> Conversation:
        conversation = await self.message_repo.get_conversation_by_id(conversation_id)
        if not conversation:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail="對話不存在")
        if not conversation.has_participant(user.user_id):
            raise HTTPException(status.HTTP_403_FORBIDDEN, detail="無權限查看此對話")
        return conversation

    async def _to_conversation_out(self, conversations: List[Conversation], user: User) -> List[ConversationOut]:
        # 一次查出所有「對方」的 Profile
        other_ids = [c.other_participant_id(user.user_id) for c in conversations]
        profiles = await self.profile_repo.get_profiles_by_user_ids(other_ids)

        results = []
        for conversation, other_id in zip(conversations, other_ids):
            profile = profiles.get(other_id)
            other = (
                ParticipantProfileOut.model_validate(profile)
                if profile
                else ParticipantProfileOut(full_name="Unknown", email="")
            )
            results.append(
                ConversationOut.model_validate(conversation).model_copy(update={"other_participant": other})
            )
        return results

    async def get_user_conversations(self, user: User) -> List[ConversationOut]:
        """
        獲取使用者參與的所有對話 (REST API 用)
        """
        conversations = await self.message_repo.get_conversations_by_user_id(user.user_id)
        return await self._to_conversation_out(conversations, user)

    async def get_or_create_conversation(self, data: ConversationCreate, creator: User) -> ConversationOut:
        """
        業務邏輯：開啟聊天時才建立對話 (已存在則直接回傳)
        規則：
        1. 建立者必須是屋主或專業人員其中之一
        2. 屋主必須是工作的刊登者
        3. 專業人員在此工作上必須有「已接受」的出價
        """
        if creator.user_id not in (data.job_poster_id, data.professional_id):
            raise HTTPException(status.HTTP_403_FORBIDDEN, detail="無權限建立此工作的對話")

        job = await self.job_repo.get_job_by_id(data.job_id)
        if not job:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail="工作不存在")
        if job.user_id != data.job_poster_id:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="job_poster_id 不是此工作的刊登者")

        existing = await self.message_repo.find_conversation(data.job_id, data.job_poster_id, data.professional_id)
        if existing:
            return (await self._to_conversation_out([existing], creator))[0]

        bid = await self.bid_repo.check_existing_bid(data.job_id, data.professional_id)
        if not bid or bid.status != BidStatusEnum.accepted:
            raise HTTPException(status.HTTP_403_FORBIDDEN, detail="對話只能在出價被接受後建立")

        try:
            conversation = await self.message_repo.create_conversation(
                job_id=data.job_id,
                job_poster_id=data.job_poster_id,
                professional_id=data.professional_id
            )
        except IntegrityError:
            # 另一方同時建立了同一個對話，改用既有的
            await self.db.rollback()
            conversation = await self.message_repo.find_conversation(
                data.job_id, data.job_poster_id, data.professional_id
            )
            if conversation is None:
                raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="對話建立失敗")

        logger.info(f"Conversation {conversation.conversation_id} opened for job {data.job_id}")
        return (await self._to_conversation_out([conversation], creator))[0]

    async def mark_as_read(self, conversation_id: str, user: User) -> MarkReadOut:
        """
        將對話中寄給自己的未讀訊息標記為已讀，並通知自己的其他連線 (例如未讀徽章)
        """
        conversation = await self._get_conversation_for_participant(conversation_id, user)
        try:
            marked = await self.message_repo.mark_messages_as_read(conversation_id, user.user_id)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"標記已讀失敗: {e}")
            raise

        if marked:
            await self.hub.publish(
                user.user_id,
                build_message_event("messages_read", conversation, marked_count=marked)
            )
        return MarkReadOut(conversation_id=conversation_id, marked_count=marked)

    async def get_conversation_messages(self, conversation_id: str, user: User) -> List[MessageOut]:
        """
        獲取歷史訊息 (舊 -> 新)，並將寄給自己的訊息標記為已讀
        """
        await self._get_conversation_for_participant(conversation_id, user)
        await self.mark_as_read(conversation_id, user)
        messages = await self.message_repo.get_messages_by_conversation_id(conversation_id)
        return [MessageOut.model_validate(msg) for msg in messages]

    async def send_message(self, conversation_id: str, sender: User, content: str) -> Message:
        """
        送出訊息：收件者由對話決定，儲存後推送事件給收件者與寄件者
        """
        content = content.strip()
        if not content:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="訊息內容不可為空")

        conversation = await self._get_conversation_for_participant(conversation_id, sender)
        try:
            new_message = await self.message_repo.save_message(conversation, sender.user_id, content)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error saving message in conversation {conversation_id}: {e}", exc_info=True)
            raise

        message_out = MessageOut.model_validate(new_message).model_dump(mode="json")
        event = build_message_event("message_created", conversation, message=message_out)
        await self.hub.publish(new_message.recipient_id, event)
        # 寄件者的其他分頁也需要看到自己剛送出的訊息
        await self.hub.publish(sender.user_id, event)
        return new_message
