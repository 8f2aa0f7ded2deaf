"""AI-generated in-character chat replies"""

from openai import AsyncOpenAI
from typing import Optional
import asyncio
import logging

from app.core.config import Settings

logger = logging.getLogger(__name__)

CLIENT_FALLBACK = "Thank you."
CONCIERGE_FALLBACK = "We are attending to your request immediately."
CONCIERGE_NAME = "Celebrity Concierge"

class AutoReplyService:
    """
    Synthesizes short replies in two personas

    Without an API key the canned fallback text is returned. When the
    completion call fails or times out the error is logged and ``None``
    is returned so the caller appends nothing.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 15.0,
        max_tokens: int = 120,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.client = client or (AsyncOpenAI(api_key=api_key) if api_key else None)
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "AutoReplyService":
        return cls(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            timeout=settings.AUTO_REPLY_TIMEOUT_SECONDS,
            max_tokens=settings.AUTO_REPLY_MAX_TOKENS,
        )

    async def _complete(self, prompt: str, fallback: str) -> Optional[str]:
        if self.client is None:
            return fallback

        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=self.max_tokens,
                    temperature=0.8,
                ),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.error(f"Auto-reply generation failed: {str(e)}")
            return None

        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip() or fallback

    async def client_reply(self, client_name: str, admin_text: str) -> Optional[str]:
        """Reply voiced as the client, answering the manager"""
        prompt = (
            f"You are {client_name}, a busy high-end client of 'Celebrity Barber'. "
            f'The manager messaged you: "{admin_text}". '
            f"Reply briefly in a busy but elite character."
        )
        return await self._complete(prompt, CLIENT_FALLBACK)

    async def concierge_reply(self, client_name: str, client_text: str) -> Optional[str]:
        """Reply voiced as the shop concierge, answering the client"""
        prompt = (
            f"You are '{CONCIERGE_NAME}'. A high-end client named {client_name} "
            f'messaged: "{client_text}". Reply with elite politeness and luxury. Keep it brief.'
        )
        return await self._complete(prompt, CONCIERGE_FALLBACK)
