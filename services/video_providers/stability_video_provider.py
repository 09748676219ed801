"""
Stability Video Provider
========================
Stability AI image-to-video adapter. A base still is generated with the
v1 text-to-image endpoint, then uploaded to the v2beta image-to-video
endpoint, which queues a job polled until the MP4 is ready.
"""

import logging
from typing import Dict

from services.video_acquisition.models import GenerationRequest

from .base import (
    ProviderConfig,
    ProviderName,
    GeneratedPayload,
    PayloadKind,
    PollResult,
    Queued,
    SubmitResult,
)
from .stability_provider import StabilityProvider

logger = logging.getLogger(__name__)

STABILITY_VIDEO_API_BASE = "https://api.stability.ai"
DEFAULT_IMAGE_ENGINE = "stable-diffusion-v1-6"

# image-to-video only accepts these source resolutions
VIDEO_SIZES = {
    "16:9": (1024, 576),
    "9:16": (576, 1024),
    "1:1": (768, 768),
}

CFG_SCALE = 1.8
MOTION_BUCKET_ID = 127


class StabilityVideoProvider(StabilityProvider):
    """Stability AI stable video diffusion, seeded from a generated still."""

    @property
    def name(self) -> ProviderName:
        return ProviderName.STABILITY_VIDEO

    @property
    def mode(self) -> str:
        return "queued"

    @classmethod
    def default_config(cls) -> ProviderConfig:
        return ProviderConfig.from_env(
            ProviderName.STABILITY_VIDEO,
            default_base_url=STABILITY_VIDEO_API_BASE,
            default_model=DEFAULT_IMAGE_ENGINE,
            api_key_env="STABILITY_API_KEY",
        )

    def _headers(self) -> Dict[str, str]:
        # multipart uploads set their own content type
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Accept": "application/json",
        }

    async def submit(self, request: GenerationRequest) -> SubmitResult:
        width, height = VIDEO_SIZES[request.aspect_ratio.value]
        engine = self.config.model or DEFAULT_IMAGE_ENGINE
        image = await self.text_to_image(request, f"/v1/generation/{engine}/text-to-image", width, height)

        logger.info(f"Creating Stability video from {width}x{height} still")
        response = await self._request(
            "POST",
            "/v2beta/image-to-video",
            files={"image": ("image.png", image, "image/png")},
            data={
                "seed": "0",
                "cfg_scale": str(CFG_SCALE),
                "motion_bucket_id": str(MOTION_BUCKET_ID),
            },
        )
        data = self._json(response)
        return Queued(job_id=str(self._require(data, "id")))

    async def poll(self, job_id: str) -> PollResult:
        response = await self._request(
            "GET",
            f"/v2beta/image-to-video/result/{job_id}",
            headers={"Accept": "video/*"},
        )

        if response.status_code == 202:
            return PollResult.pending()
        if response.headers.get("finish-reason") == "CONTENT_FILTERED":
            return PollResult.failed("video rejected by content filter")
        return PollResult.succeeded(
            GeneratedPayload(kind=PayloadKind.VIDEO, data=response.content, mime_type="video/mp4")
        )
