"""
Luma Video Provider
===================
Luma Dream Machine adapter. Queued: submit returns a generation id that
is polled until ``state`` is completed or failed.
"""

import logging
from typing import Any, Dict

from services.video_acquisition.models import GenerationRequest

from .base import (
    VideoProviderAdapter,
    ProviderConfig,
    ProviderName,
    GeneratedPayload,
    PayloadKind,
    PollResult,
    Queued,
    SubmitResult,
    enhance_prompt,
)

logger = logging.getLogger(__name__)

LUMA_API_BASE = "https://api.lumalabs.ai/dream-machine/v1"


class LumaProvider(VideoProviderAdapter):
    """Luma Dream Machine text-to-video."""

    @property
    def name(self) -> ProviderName:
        return ProviderName.LUMA

    @classmethod
    def default_config(cls) -> ProviderConfig:
        return ProviderConfig.from_env(ProviderName.LUMA, default_base_url=LUMA_API_BASE)

    async def submit(self, request: GenerationRequest) -> SubmitResult:
        payload: Dict[str, Any] = {
            "prompt": enhance_prompt(request.prompt, request.style),
            "aspect_ratio": request.aspect_ratio.value,
            "loop": False,
        }
        if self.config.model:
            payload["model"] = self.config.model

        logger.info(f"Creating Luma generation: aspect={request.aspect_ratio.value}")
        response = await self._request("POST", "/generations", json=payload)
        data = self._json(response)
        return Queued(job_id=str(self._require(data, "id")))

    async def poll(self, job_id: str) -> PollResult:
        response = await self._request("GET", f"/generations/{job_id}")
        data = self._json(response)

        state = str(data.get("state") or "").lower()
        if state == "completed":
            assets = data.get("assets") or {}
            video_url = assets.get("video") if isinstance(assets, dict) else None
            if not video_url:
                return PollResult.failed("completed without a video asset")
            return PollResult.succeeded(GeneratedPayload(kind=PayloadKind.VIDEO, url=video_url))
        if state == "failed":
            return PollResult.failed(str(data.get("failure_reason") or "Luma generation failed"))
        return PollResult.pending()
