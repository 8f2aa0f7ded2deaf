"""
Conversation engine
One append-only thread per client, most recently active first
"""

from datetime import datetime
from typing import List, Optional

from app.models import ChatMessage, Conversation, new_id, utcnow

PREVIEW_LENGTH = 40

def display_time(now: Optional[datetime] = None) -> str:
    """UTC ``HH:MM`` used as the message timestamp"""
    return (now or utcnow()).strftime("%H:%M")

def new_message(
    sender_id: str,
    sender_name: str,
    text: str,
    is_ai: bool = False,
    now: Optional[datetime] = None,
) -> ChatMessage:
    """Build a message; synthesized replies are stamped "Just now" """
    return ChatMessage(
        id=new_id("m-ai" if is_ai else "m"),
        sender_id=sender_id,
        sender_name=sender_name,
        text=text,
        timestamp="Just now" if is_ai else display_time(now),
        is_ai=True if is_ai else None,
    )

def find_conversation(conversations: List[Conversation], user_id: str) -> Optional[Conversation]:
    return next((c for c in conversations if c.user_id == user_id), None)

def append_message(
    conversations: List[Conversation],
    user_id: str,
    user_name: str,
    message: ChatMessage,
    from_admin: bool,
) -> List[Conversation]:
    """
    Append a human message to the user's thread

    An admin message marks the thread read; a client message bumps the
    unread count. The thread moves to the front. A missing thread is
    created, unread 1 for a client opener and 0 for an admin opener.
    """
    existing = find_conversation(conversations, user_id)

    if existing is None:
        created = Conversation(
            user_id=user_id,
            user_name=user_name,
            last_message=message.text,
            timestamp=message.timestamp,
            unread_count=0 if from_admin else 1,
            messages=[message],
        )
        return [created, *conversations]

    updated = existing.model_copy(update={
        "last_message": message.text,
        "timestamp": message.timestamp,
        "messages": [*existing.messages, message],
        "unread_count": 0 if from_admin else existing.unread_count + 1,
    })
    others = [c for c in conversations if c.user_id != user_id]
    return [updated, *others]

def append_ai_reply(
    conversations: List[Conversation],
    user_id: str,
    message: ChatMessage,
) -> List[Conversation]:
    """Add a synthesized reply in place; unread count and order are unchanged"""
    return [
        c.model_copy(update={
            "last_message": message.text,
            "timestamp": message.timestamp,
            "messages": [*c.messages, message],
        }) if c.user_id == user_id else c
        for c in conversations
    ]

def mark_read(conversations: List[Conversation], user_id: str) -> List[Conversation]:
    return [
        c.model_copy(update={"unread_count": 0}) if c.user_id == user_id else c
        for c in conversations
    ]

def message_preview(sender_name: str, text: str) -> str:
    """Admin-facing alert text for an incoming client message"""
    return f'{sender_name}: "{text[:PREVIEW_LENGTH]}..."'
