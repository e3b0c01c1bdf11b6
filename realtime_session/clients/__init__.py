"""
One-shot HTTP collaborators for the realtime session client.

- completion: chat completions with a receive timestamp
- image_generation: image generation pass-through
"""

from .completion import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    TextCompletion,
)
from .image_generation import ImageGeneration, ImageGenerationRequest

__all__ = [
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "ImageGeneration",
    "ImageGenerationRequest",
    "TextCompletion",
]
