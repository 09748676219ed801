"""
Haiper Video Provider
=====================
Haiper text-to-video adapter. Queued, clips capped at 6 seconds.
"""

import logging
import math

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

HAIPER_API_BASE = "https://api.haiper.ai/v2"
MAX_SECONDS = 6


class HaiperProvider(VideoProviderAdapter):
    """Haiper text-to-video."""

    @property
    def name(self) -> ProviderName:
        return ProviderName.HAIPER

    @classmethod
    def default_config(cls) -> ProviderConfig:
        return ProviderConfig.from_env(ProviderName.HAIPER, default_base_url=HAIPER_API_BASE)

    async def submit(self, request: GenerationRequest) -> SubmitResult:
        seconds = min(MAX_SECONDS, max(1, math.ceil(request.duration_seconds)))
        payload = {
            "prompt": enhance_prompt(request.prompt, request.style),
            "duration": seconds,
            "aspect_ratio": request.aspect_ratio.value,
        }

        logger.info(f"Creating Haiper generation: duration={seconds}s")
        response = await self._request("POST", "/video/generation", json=payload)
        data = self._json(response)
        return Queued(job_id=str(self._require(data, "id")))

    async def poll(self, job_id: str) -> PollResult:
        response = await self._request("GET", f"/video/generation/{job_id}")
        data = self._json(response)

        state = str(data.get("state") or data.get("status") or "").lower()
        if state == "succeeded":
            video = data.get("video")
            video_url = data.get("video_url") or (video.get("url") if isinstance(video, dict) else None)
            if not video_url:
                return PollResult.failed("succeeded without a video url")
            return PollResult.succeeded(GeneratedPayload(kind=PayloadKind.VIDEO, url=video_url))
        if state == "failed":
            return PollResult.failed(str(data.get("error") or "Haiper generation failed"))
        return PollResult.pending()
