"""Conversation history endpoints."""

from fastapi import APIRouter, Depends

from context.session import ChatSession
from server.dependencies import get_session
from server.schemas.responses import ClearResponseDTO, ConversationDTO, MessageDTO

router = APIRouter(prefix="/v1/conversation", tags=["Conversation"])


@router.post("/clear", response_model=ClearResponseDTO)
async def clear_conversation(session: ChatSession = Depends(get_session)):
    """Forget the session's chat history."""
    await session.clear_conversation()
    return ClearResponseDTO()


@router.get("", response_model=ConversationDTO)
async def get_conversation(session: ChatSession = Depends(get_session)):
    messages = await session.history()
    return ConversationDTO(
        messages=[MessageDTO.from_chat_message(m) for m in messages],
        count=len(messages),
        max_messages=session.window.max_messages,
    )
