"""
One-shot chat completion client.

A thin pass-through over the OpenAI chat completions endpoint using the
static credential from ``OpenAIHTTPConfig``. No retry policy is applied here;
failures from the SDK propagate to the caller.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field

from realtime_session.config.logging_config import configure_logging
from realtime_session.config.models import OpenAIHTTPConfig

logger = configure_logging("completion")


class ImageUrl(BaseModel):
    url: str


class RichContent(BaseModel):
    """Text or image content inside a chat message."""

    type: Literal["text", "image_url"]
    text: Optional[str] = None
    image_url: Optional[ImageUrl] = None


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: Union[str, List[RichContent]]


class ToolFunction(BaseModel):
    """Function tool definition passed through to the endpoint."""

    type: Literal["function"] = "function"
    function: Dict[str, Any]


class ChatCompletionRequest(BaseModel):
    """Parameters for a chat completion call."""

    model: Optional[str] = None
    messages: List[ChatMessage]
    tools: Optional[List[ToolFunction]] = None


class ChatCompletionResponse(BaseModel):
    """The SDK completion object stamped with the time it was received."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    completion: Any
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def text(self) -> Optional[str]:
        """Content of the first choice's message, if any."""
        choices = getattr(self.completion, "choices", None) or []
        if not choices:
            return None
        return choices[0].message.content


class TextCompletion:
    """Chat completion wrapper around ``AsyncOpenAI``."""

    def __init__(
        self,
        config: Optional[OpenAIHTTPConfig] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.config = config or OpenAIHTTPConfig()
        self.client = client or AsyncOpenAI(
            api_key=self.config.api_key, timeout=self.config.timeout
        )

    async def complete(
        self, request: ChatCompletionRequest, **options: Any
    ) -> ChatCompletionResponse:
        """
        Run a chat completion.

        Args:
            request: Model, messages and optional tools
            **options: Extra request options forwarded to the SDK call

        Returns:
            ChatCompletionResponse: The completion plus a ``timestamp``
        """
        params: Dict[str, Any] = {
            "model": request.model or self.config.completion_model,
            "messages": [m.model_dump(exclude_none=True) for m in request.messages],
        }
        if request.tools:
            params["tools"] = [t.model_dump(exclude_none=True) for t in request.tools]

        logger.debug(
            f"Requesting completion from {params['model']} ({len(request.messages)} messages)"
        )
        completion = await self.client.chat.completions.create(**params, **options)
        return ChatCompletionResponse(completion=completion)
