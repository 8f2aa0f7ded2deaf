"""
Client / management chat routes
Human messages are stored before the response; synthesized replies are
appended afterwards as background tasks
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from typing import List, Optional

from app.api.dependencies import get_current_user, get_store, require_admin
from app.core.exceptions import NotFoundException
from app.models import Conversation, User
from app.schemas.chat import MessageRequest
from app.services import LoyaltyStore

router = APIRouter()

@router.get("/me", response_model=Optional[Conversation])
async def my_conversation(
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    return store.conversation_for(current_user.id)

@router.post("/me/messages", response_model=Conversation, status_code=status.HTTP_201_CREATED)
async def send_to_management(
    payload: MessageRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    conversation = await store.client_send_message(current_user, payload.text)
    background_tasks.add_task(store.concierge_auto_reply, current_user.id, current_user.name, payload.text)
    return conversation

@router.get("/conversations", response_model=List[Conversation])
async def list_conversations(
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    """Most recently active first"""
    return store.conversations

@router.post(
    "/conversations/{user_id}/messages",
    response_model=Conversation,
    status_code=status.HTTP_201_CREATED
)
async def send_to_client(
    user_id: str,
    payload: MessageRequest,
    background_tasks: BackgroundTasks,
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    conversation = await store.admin_send_message(user_id, payload.text)
    background_tasks.add_task(store.client_auto_reply, user_id, payload.text)
    return conversation

@router.post("/conversations/{user_id}/read", response_model=Conversation)
async def mark_read(
    user_id: str,
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    conversation = await store.mark_conversation_read(user_id)
    if conversation is None:
        raise NotFoundException("Conversation not found")
    return conversation
