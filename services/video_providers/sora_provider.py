"""
Sora Video Provider
===================
OpenAI Sora API adapter for video generation.

Supports:
- Text-to-video generation
- Models: sora-2, sora-2-pro
- Durations: 4s, 8s, 12s
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

# Sora API constants
SORA_API_BASE = "https://api.openai.com/v1"
ALLOWED_MODELS = {"sora-2", "sora-2-pro"}
ALLOWED_SIZES = {"720x1280", "1280x720", "1024x1792", "1792x1024"}
ALLOWED_SECONDS = {4, 8, 12}


class SoraProvider(VideoProviderAdapter):
    """
    OpenAI Sora video generation provider.

    Uses the OpenAI Video API; finished clips are fetched from the
    content endpoint when the status payload carries no download URL.
    """

    @property
    def name(self) -> ProviderName:
        return ProviderName.SORA

    @classmethod
    def default_config(cls) -> ProviderConfig:
        return ProviderConfig.from_env(
            ProviderName.SORA,
            default_base_url=SORA_API_BASE,
            default_model="sora-2",
            api_key_env="OPENAI_API_KEY",
        )

    def _validate_model(self, model: str) -> str:
        """Validate and normalize model name."""
        if model not in ALLOWED_MODELS:
            logger.warning(f"Invalid model '{model}', falling back to sora-2")
            return "sora-2"
        return model

    def _validate_size(self, size: str) -> str:
        """Validate and normalize size."""
        if size not in ALLOWED_SIZES:
            logger.warning(f"Unsupported size '{size}', falling back to 1280x720")
            return "1280x720"
        return size

    def _validate_seconds(self, seconds: float) -> int:
        """Round duration to the nearest allowed value, ties going to the longer clip."""
        return min(ALLOWED_SECONDS, key=lambda allowed: (abs(allowed - seconds), -allowed))

    def _parse_status(self, status_str: str) -> str:
        """Collapse API status strings to pending/succeeded/failed."""
        status_map = {
            "completed": "succeeded",
            "succeeded": "succeeded",
            "failed": "failed",
            "canceled": "failed",
            "cancelled": "failed",
        }
        return status_map.get(status_str.lower(), "pending")

    def _extract_download_url(self, data: Dict[str, Any]) -> Optional[str]:
        """Check the various URL locations in a status response."""
        download_url = data.get("download_url") or data.get("content_url")
        assets = data.get("assets")
        if isinstance(assets, dict):
            video = assets.get("video")
            if isinstance(video, dict):
                download_url = download_url or video.get("download_url")
        elif isinstance(assets, list):
            for asset in assets:
                if isinstance(asset, dict) and asset.get("type") == "video":
                    download_url = download_url or asset.get("url")
        return download_url

    async def submit(self, request: GenerationRequest) -> SubmitResult:
        model = self._validate_model(self.config.model or "sora-2")
        size = self._validate_size(f"{request.width}x{request.height}")
        seconds = self._validate_seconds(request.duration_seconds)

        # Build request payload (per OpenAI Sora API docs)
        payload: Dict[str, Any] = {
            "model": model,
            "prompt": enhance_prompt(request.prompt, request.style),
            "size": size,
            "seconds": str(seconds),  # API expects string
        }

        logger.info(f"Creating Sora clip: model={model}, size={size}, duration={seconds}s")
        response = await self._request("POST", "/videos", json=payload)
        data = self._json(response)
        video_id = data.get("video_id") or self._require(data, "id")
        return Queued(job_id=str(video_id))

    async def poll(self, job_id: str) -> PollResult:
        response = await self._request("GET", f"/videos/{job_id}")
        data = self._json(response)

        status = self._parse_status(str(data.get("status") or data.get("state") or "queued"))
        if status == "failed":
            error = data.get("error")
            if isinstance(error, dict):
                error = error.get("message") or error.get("code")
            return PollResult.failed(str(error or "Sora generation failed"))
        if status == "pending":
            return PollResult.pending()

        download_url = self._extract_download_url(data)
        if download_url:
            return PollResult.succeeded(GeneratedPayload(kind=PayloadKind.VIDEO, url=download_url))

        content = await self._request("GET", f"/videos/{job_id}/content")
        return PollResult.succeeded(GeneratedPayload(
            kind=PayloadKind.VIDEO,
            data=content.content,
            mime_type=content.headers.get("content-type", "video/mp4"),
        ))
