"""
Runway Video Provider
=====================
RunwayML Gen-3 task adapter. Queued, clips capped at 10 seconds.
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

RUNWAY_API_BASE = "https://api.runwayml.com/v1"
MAX_SECONDS = 10


class RunwayProvider(VideoProviderAdapter):
    """RunwayML Gen-3 text-to-video."""

    @property
    def name(self) -> ProviderName:
        return ProviderName.RUNWAY

    @classmethod
    def default_config(cls) -> ProviderConfig:
        return ProviderConfig.from_env(
            ProviderName.RUNWAY,
            default_base_url=RUNWAY_API_BASE,
            default_model="gen3a_turbo",
        )

    async def submit(self, request: GenerationRequest) -> SubmitResult:
        seconds = min(MAX_SECONDS, max(1, math.ceil(request.duration_seconds)))
        payload = {
            "taskType": self.config.model or "gen3a_turbo",
            "internal": False,
            "options": {
                "name": f"Promo video - {request.prompt[:40]}",
                "seconds": seconds,
                "text_prompt": enhance_prompt(request.prompt, request.style),
                "exploreMode": False,
                "watermark": False,
            },
        }

        logger.info(f"Creating Runway task: seconds={seconds}")
        response = await self._request("POST", "/tasks", json=payload)
        data = self._json(response)
        task = data.get("task") if isinstance(data.get("task"), dict) else data
        return Queued(job_id=str(self._require(task, "id")))

    async def poll(self, job_id: str) -> PollResult:
        response = await self._request("GET", f"/tasks/{job_id}")
        data = self._json(response)
        task = data.get("task") if isinstance(data.get("task"), dict) else data

        status = str(task.get("status") or "").upper()
        if status == "SUCCEEDED":
            output = task.get("output") or []
            if isinstance(output, str):
                output = [output]
            if not output:
                return PollResult.failed("succeeded without output")
            return PollResult.succeeded(GeneratedPayload(kind=PayloadKind.VIDEO, url=output[0]))
        if status in ("FAILED", "CANCELLED", "CANCELED"):
            return PollResult.failed(str(task.get("failure") or f"Runway task {status.lower()}"))
        return PollResult.pending()
