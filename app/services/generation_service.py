# File: app/services/generation_service.py

"""
2D floor plan -> 3D render generation.

Generation backends are slow and rate limited, so a request walks an
ordered list of model configurations and returns the first image any of
them produces. Only when every model fails does the caller see an error.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Sequence

import httpx

from app.core.config import settings
from app.core.errors import GenerationError
from app.services.image_converter import (
    extract_base64,
    fetch_as_data_url,
    mime_type_from_url,
    to_data_url,
)

logger = logging.getLogger(__name__)


ROOMIFY_RENDER_PROMPT = (
    "Convert this 2D architectural floor plan into a photorealistic 3D render "
    "seen from directly above (top-down isometric bird's-eye view with the roof "
    "removed). Keep the exact wall layout, room proportions, doors and windows of "
    "the input plan. Furnish each room appropriately with realistic materials, "
    "soft natural lighting and shadows. Do not add any text, labels, dimensions, "
    "watermarks or annotations."
)


@dataclass(frozen=True)
class Ratio:
    w: int
    h: int


@dataclass(frozen=True)
class ModelConfig:
    provider: str
    model: str
    use_input_image: bool
    ratio: Optional[Ratio] = None

    def build_request(
        self,
        *,
        prompt: str,
        test_mode: bool,
        input_image: str,
        input_mime_type: str,
        model: Optional[str] = None,
    ) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "provider": self.provider,
            "model": model or self.model,
            "prompt": prompt,
            "test_mode": test_mode,
        }
        if self.use_input_image:
            request["input_image"] = input_image
            request["input_image_mime_type"] = input_mime_type
        if self.ratio is not None:
            request["ratio"] = {"w": self.ratio.w, "h": self.ratio.h}
        return request


_SQUARE = Ratio(settings.render_dimension, settings.render_dimension)

THREE_D_MODEL_CONFIGS: Sequence[ModelConfig] = (
    ModelConfig("gemini", "gemini-2.5-flash-image-preview", use_input_image=True, ratio=_SQUARE),
    ModelConfig("gemini", "gemini-3-pro-image-preview", use_input_image=True, ratio=_SQUARE),
    # text-to-image only
    ModelConfig("xai", "grok-2-image", use_input_image=False),
)


@dataclass
class GeneratedImage:
    """Handle to a generated image; `src` is a data URL or a remote URL."""

    src: str
    provider: str = ""
    model: str = ""


class ImageGenerator(Protocol):
    async def txt2img(self, request: Dict[str, Any]) -> GeneratedImage:
        ...


class HttpImageGenerator:
    """
    JSON-over-HTTP client for the image generation API.

    POSTs the request dict and expects either {"image": "<data or url>"},
    {"url": "..."}, or {"b64_json": "...", "mime_type": "..."} back.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url or settings.ai_api_url
        self.api_key = api_key or settings.ai_api_key
        self.client = client

    async def txt2img(self, request: Dict[str, Any]) -> GeneratedImage:
        if not self.api_url:
            raise RuntimeError("Image generation API URL is not configured")

        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        client = self.client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        try:
            response = await client.post(self.api_url, json=request, headers=headers)
            response.raise_for_status()
            data = response.json()
        finally:
            if self.client is None:
                await client.aclose()

        src = data.get("image") or data.get("url")
        if not src and data.get("b64_json"):
            src = to_data_url(
                base64.b64decode(data["b64_json"]),
                data.get("mime_type", "image/png"),
            )
        if not src:
            raise RuntimeError(f"{request.get('model')} returned no image")
        return GeneratedImage(src=src, provider=request.get("provider", ""), model=request.get("model", ""))


async def generate_3d_view(
    image_url: str,
    generator: ImageGenerator,
    *,
    prompt: Optional[str] = None,
    model: Optional[str] = None,
    test_mode: bool = False,
    configs: Sequence[ModelConfig] = THREE_D_MODEL_CONFIGS,
    client: Optional[httpx.AsyncClient] = None,
) -> GeneratedImage:
    """
    Generate a 3D render of the floor plan at `image_url`.

    Args:
        image_url: data URL, remote URL, or hosted URL of the 2D plan
        generator: backend adapter that performs one generation call
        prompt: overrides ROOMIFY_RENDER_PROMPT
        model: overrides the model id of the first configuration only
        test_mode: ask the backend for a sample image (no credits used)

    Raises:
        GenerationError: every configuration failed.
    """
    data_url = await fetch_as_data_url(image_url, client=client)
    base64_data = extract_base64(data_url)
    mime_type = mime_type_from_url(data_url)
    prompt = prompt or ROOMIFY_RENDER_PROMPT

    last_error: Optional[Exception] = None
    for index, config in enumerate(configs):
        request = config.build_request(
            prompt=prompt,
            test_mode=test_mode,
            input_image=base64_data,
            input_mime_type=mime_type,
            model=model if index == 0 else None,
        )
        try:
            image = await generator.txt2img(request)
            logger.info("[GENERATE] 3D view generated with %s/%s", config.provider, request["model"])
            return image
        except Exception as e:
            logger.warning("[GENERATE] %s/%s failed: %s", config.provider, request["model"], e)
            last_error = e

    raise GenerationError(len(configs), last_error)
