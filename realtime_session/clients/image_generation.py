"""One-shot image generation client (pass-through to the OpenAI images endpoint)."""

from typing import Any, Dict, Literal, Optional

from openai import AsyncOpenAI
from pydantic import BaseModel

from realtime_session.config.logging_config import configure_logging
from realtime_session.config.models import OpenAIHTTPConfig

logger = configure_logging("image_generation")


class ImageGenerationRequest(BaseModel):
    """Parameters for an image generation call."""

    prompt: str
    model: Optional[str] = None
    n: Optional[int] = None
    quality: Optional[Literal["standard", "hd"]] = None
    response_format: Optional[Literal["url", "b64_json"]] = None
    size: Optional[
        Literal["256x256", "512x512", "1024x1024", "1792x1024", "1024x1792"]
    ] = None
    style: Optional[Literal["vivid", "natural"]] = None
    user: Optional[str] = None


class ImageGeneration:
    """Image generation wrapper around ``AsyncOpenAI``."""

    def __init__(
        self,
        config: Optional[OpenAIHTTPConfig] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.config = config or OpenAIHTTPConfig()
        self.client = client or AsyncOpenAI(
            api_key=self.config.api_key, timeout=self.config.timeout
        )

    async def generate(self, request: ImageGenerationRequest, **options: Any) -> Any:
        """Generate images and return the SDK's ``ImagesResponse`` unchanged."""
        params: Dict[str, Any] = request.model_dump(exclude_none=True)
        params["model"] = request.model or self.config.image_model

        logger.debug(f"Requesting image generation from {params['model']}")
        return await self.client.images.generate(**params, **options)
