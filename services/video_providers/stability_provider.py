"""
Stability Image Provider
========================
Stability AI text-to-image adapter. Immediate: the vendor returns a still
image, which the compositor turns into a zoom-pan video.
"""

import logging
from typing import Any, Dict

from shared.errors import VendorRejected
from services.video_acquisition.models import GenerationRequest

from .base import (
    VideoProviderAdapter,
    ProviderConfig,
    ProviderName,
    GeneratedPayload,
    Immediate,
    PayloadKind,
    SubmitResult,
    decode_base64_image,
    enhance_prompt,
)

logger = logging.getLogger(__name__)

STABILITY_API_BASE = "https://api.stability.ai/v1"
DEFAULT_ENGINE = "stable-diffusion-xl-1024-v1-0"

# SDXL only accepts a fixed set of resolutions
ENGINE_SIZES = {
    "16:9": (1344, 768),
    "9:16": (768, 1344),
    "1:1": (1024, 1024),
}


class StabilityProvider(VideoProviderAdapter):
    """Stability AI still image, animated locally."""

    @property
    def name(self) -> ProviderName:
        return ProviderName.STABILITY

    @property
    def mode(self) -> str:
        return "immediate"

    @classmethod
    def default_config(cls) -> ProviderConfig:
        return ProviderConfig.from_env(
            ProviderName.STABILITY,
            default_base_url=STABILITY_API_BASE,
            default_model=DEFAULT_ENGINE,
        )

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Accept"] = "application/json"
        return headers

    async def submit(self, request: GenerationRequest) -> SubmitResult:
        width, height = ENGINE_SIZES[request.aspect_ratio.value]
        engine = self.config.model or DEFAULT_ENGINE
        image = await self.text_to_image(request, f"/generation/{engine}/text-to-image", width, height)
        return Immediate(GeneratedPayload(kind=PayloadKind.IMAGE, data=image, mime_type="image/png"))

    async def text_to_image(self, request: GenerationRequest, path: str, width: int, height: int) -> bytes:
        """
        Generate one still and return its PNG bytes.

        Raises:
            VendorRejected: the content filter blocked the image
        """
        payload: Dict[str, Any] = {
            "text_prompts": [{"text": enhance_prompt(request.prompt, request.style), "weight": 1}],
            "cfg_scale": 7,
            "width": width,
            "height": height,
            "steps": 30,
            "samples": 1,
        }

        logger.info(f"Creating Stability image: {path}, size={width}x{height}")
        response = await self._request("POST", path, json=payload)
        data = self._json(response)

        artifacts = data.get("artifacts") or []
        artifact = artifacts[0] if artifacts and isinstance(artifacts[0], dict) else {}
        if artifact.get("finishReason") == "CONTENT_FILTERED":
            raise VendorRejected(self.name.value, "image rejected by content filter")

        return decode_base64_image(self.name.value, self._require(artifact, "base64"))
