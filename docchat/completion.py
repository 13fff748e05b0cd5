"""OpenAI chat completions provider."""

from __future__ import annotations

from typing import TYPE_CHECKING

from openai import AsyncOpenAI, OpenAIError

from .config import config
from .exceptions import UpstreamError
from .models import Role

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import Turn

logger = config.get_logger(__name__)

# Conversation roles as the chat completions API names them.
_API_ROLES = {Role.USER: "user", Role.MODEL: "assistant"}


class ChatCompletionService:
    """Stateless completion calls over an explicit list of turns."""

    provider = "completion"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> None:
        """Initialize the completion client.

        Args:
            api_key: OpenAI API key. If None, reads from OPENAI_API_KEY.
            model: Chat model name. If None, uses config.CHAT_MODEL.
            max_tokens: Completion token cap. If None, uses config.CHAT_MAX_TOKENS.
            temperature: Sampling temperature. If None, uses
                config.CHAT_TEMPERATURE.
        """
        default_headers = config.get_api_headers()
        self.client = AsyncOpenAI(
            api_key=api_key or config.get_openai_api_key(),
            base_url=config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
        )
        self.model = model or config.CHAT_MODEL
        self.max_tokens = max_tokens if max_tokens is not None else config.CHAT_MAX_TOKENS
        self.temperature = (
            temperature if temperature is not None else config.CHAT_TEMPERATURE
        )

    @staticmethod
    def build_messages(
        turns: Sequence[Turn], system_instruction: str
    ) -> list[dict[str, str]]:
        """Translate turns into chat completion messages.

        Returns:
            Messages with the system instruction first, then each turn in order.
        """
        messages = [{"role": "system", "content": system_instruction}]
        messages.extend(
            {"role": _API_ROLES[turn.role], "content": turn.text} for turn in turns
        )
        return messages

    async def generate(self, turns: Sequence[Turn], system_instruction: str) -> str:
        """Run one completion request.

        Returns:
            The stripped response text, or an empty string if the model sent none.

        Raises:
            UpstreamError: If the completion API call fails.
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(turns, system_instruction),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as exc:
            logger.exception("Error generating completion")
            raise UpstreamError(self.provider, str(exc)) from exc

        content = response.choices[0].message.content
        return content.strip() if content else ""
