"""
Replicate Video Provider
========================
Replicate predictions adapter running Zeroscope XL. Queued: submit
returns a prediction id polled until it succeeds, fails or is canceled.
Replicate authenticates with the ``Token`` scheme rather than ``Bearer``.
"""

import logging
from typing import Any, Dict, Optional

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

REPLICATE_API_BASE = "https://api.replicate.com/v1"
DEFAULT_VERSION = "anotherjesse/zeroscope-v2-xl"

FRAME_SIZES = {
    "16:9": (1024, 576),
    "9:16": (576, 1024),
    "1:1": (768, 768),
}

PENDING_STATUSES = {"starting", "processing"}
FAILED_STATUSES = {"failed", "canceled"}


class ReplicateProvider(VideoProviderAdapter):
    """Replicate Zeroscope XL text-to-video."""

    @property
    def name(self) -> ProviderName:
        return ProviderName.REPLICATE

    @classmethod
    def default_config(cls) -> ProviderConfig:
        return ProviderConfig.from_env(
            ProviderName.REPLICATE,
            default_base_url=REPLICATE_API_BASE,
            default_model=DEFAULT_VERSION,
            api_key_env="REPLICATE_API_TOKEN",
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Token {self.config.api_key}",
            "Content-Type": "application/json",
        }

    async def submit(self, request: GenerationRequest) -> SubmitResult:
        width, height = FRAME_SIZES[request.aspect_ratio.value]
        payload: Dict[str, Any] = {
            "version": self.config.model or DEFAULT_VERSION,
            "input": {
                "prompt": enhance_prompt(request.prompt, request.style),
                "width": width,
                "height": height,
                "num_frames": 24,
                "num_inference_steps": 20,
                "guidance_scale": 17.5,
                "model": "xl",
            },
        }

        logger.info(f"Creating Replicate prediction: size={width}x{height}")
        response = await self._request("POST", "/predictions", json=payload)
        data = self._json(response)
        return Queued(job_id=str(self._require(data, "id")))

    async def poll(self, job_id: str) -> PollResult:
        response = await self._request("GET", f"/predictions/{job_id}")
        data = self._json(response)

        status = str(data.get("status") or "").lower()
        if status == "succeeded":
            video_url = _output_url(data.get("output"))
            if not video_url:
                return PollResult.failed("prediction succeeded without output")
            return PollResult.succeeded(GeneratedPayload(kind=PayloadKind.VIDEO, url=video_url))
        if status in FAILED_STATUSES:
            return PollResult.failed(str(data.get("error") or f"Replicate prediction {status}"))
        if status not in PENDING_STATUSES:
            logger.warning(f"Unknown Replicate status '{status}' for {job_id}, still polling")
        return PollResult.pending()


def _output_url(output: Any) -> Optional[str]:
    """Replicate returns either one URL or a list of them."""
    if isinstance(output, str):
        return output or None
    if isinstance(output, list) and output and isinstance(output[0], str):
        return output[0]
    return None
