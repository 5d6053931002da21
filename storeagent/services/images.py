"""
Design generation collaborator.

Generates product artwork with the OpenAI Images API. Generation never
raises to the caller: when no API key is configured, or the API call
fails, a deterministic placeholder URL derived from the prompt is
returned instead.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote

from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "https://picsum.photos/seed/{seed}/1024/1024"


def placeholder_url(prompt: str) -> str:
    return PLACEHOLDER_URL.format(seed=quote(prompt, safe=""))


class ImageGenerator:
    def __init__(
        self,
        api_key_env: str = "OPENAI_API_KEY",
        model: str = "dall-e-3",
        size: str = "1024x1024",
        timeout: float = 60.0,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.api_key_env = api_key_env
        self.model = model
        self.size = size
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "ImageGenerator":
        return cls(
            api_key_env=cfg.get("api_key_env", "OPENAI_API_KEY"),
            model=cfg.get("model", "dall-e-3"),
            size=cfg.get("size", "1024x1024"),
            timeout=float(cfg.get("timeout", 60.0)),
        )

    def _get_client(self) -> Optional[OpenAI]:
        if self._client is None:
            api_key = os.getenv(self.api_key_env)
            if not api_key:
                return None
            self._client = OpenAI(api_key=api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def generate_image(self, prompt: str) -> str:
        logger.info("Generating image for prompt: %s", prompt)
        client = self._get_client()
        if client is None:
            logger.warning("No image generation API configured, using placeholder")
            return placeholder_url(prompt)
        try:
            resp = client.images.generate(
                model=self.model,
                prompt=prompt,
                n=1,
                size=self.size,
                quality="standard",
            )
            url = resp.data[0].url
        except (OpenAIError, IndexError, AttributeError, TypeError) as exc:
            logger.error("Image generation error: %s", exc)
            return placeholder_url(prompt)
        return url or placeholder_url(prompt)

    def generate_logo_design(self, business_name: str, style: str) -> str:
        return self.generate_image(
            f'Professional logo design for "{business_name}" in {style} style, clean, modern, '
            "suitable for apparel branding, high quality, vector-style"
        )

    def generate_clothing_design(self, description: str) -> str:
        return self.generate_image(
            f"Clothing design: {description}, high quality, suitable for t-shirt printing, "
            "300 DPI, centered design"
        )
