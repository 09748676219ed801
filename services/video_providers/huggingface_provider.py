"""
Hugging Face Video Provider
===========================
Hugging Face inference API adapter. Immediate: the model endpoint answers
with raw video bytes, or a JSON error body while the model is loading.
"""

import logging
import os
from typing import Any, Dict

from shared.errors import VendorUnavailable
from services.video_acquisition.models import GenerationRequest

from .base import (
    VideoProviderAdapter,
    ProviderConfig,
    ProviderName,
    GeneratedPayload,
    Immediate,
    PayloadKind,
    SubmitResult,
    enhance_prompt,
)

logger = logging.getLogger(__name__)

HUGGINGFACE_API_BASE = "https://api-inference.huggingface.co/models"
DEFAULT_MODEL = "stabilityai/stable-video-diffusion-img2vid-xt"
MAX_FRAMES = 25
FRAMES_PER_SECOND = 8


class HuggingFaceProvider(VideoProviderAdapter):
    """Stable Video Diffusion through the Hugging Face inference API."""

    @property
    def name(self) -> ProviderName:
        return ProviderName.HUGGINGFACE

    @property
    def mode(self) -> str:
        return "immediate"

    @classmethod
    def default_config(cls) -> ProviderConfig:
        config = ProviderConfig.from_env(
            ProviderName.HUGGINGFACE,
            default_base_url=HUGGINGFACE_API_BASE,
            default_model=DEFAULT_MODEL,
        )
        if not config.api_key and os.getenv("HF_TOKEN"):
            config.api_key = os.getenv("HF_TOKEN")
            config.api_key_env = "HF_TOKEN"
        return config

    async def submit(self, request: GenerationRequest) -> SubmitResult:
        payload: Dict[str, Any] = {
            "inputs": enhance_prompt(request.prompt, request.style),
            "parameters": {
                "num_frames": min(int(request.duration_seconds * FRAMES_PER_SECOND), MAX_FRAMES),
                "motion_bucket_id": 127,
                "noise_aug_strength": 0.02,
            },
        }

        model = self.config.model or DEFAULT_MODEL
        logger.info(f"Requesting Hugging Face video: model={model}")
        response = await self._request("POST", f"/{model}", json=payload)

        content_type = response.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            error = self._json(response).get("error") or "no video in response"
            raise VendorUnavailable(self.name.value, str(error))

        return Immediate(GeneratedPayload(
            kind=PayloadKind.VIDEO,
            data=response.content,
            mime_type=content_type or "video/mp4",
        ))
