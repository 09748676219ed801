"""
Mock Video Provider
===================
Scripted implementation for development and tests without API costs.

Features:
- Immediate or queued completion, video or still-image payloads
- Configurable number of pending polls, or pending forever
- Scripted failures (any error raised from submit, or a failed job)
- Can stand in for any vendor name
- No external API calls
"""

import asyncio
import base64
import logging
from typing import Awaitable, Callable, Optional

from services.video_acquisition.models import GenerationRequest

from .base import (
    VideoProviderAdapter,
    ProviderConfig,
    ProviderName,
    GeneratedPayload,
    Immediate,
    PayloadKind,
    PollResult,
    Queued,
    SubmitResult,
)

logger = logging.getLogger(__name__)

# Placeholder MP4 header padded past the minimum accepted video size
MOCK_VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 2048
# 1x1 PNG
MOCK_IMAGE_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class MockVideoProvider(VideoProviderAdapter):
    """
    Mock video provider.

    Behaviour is fixed at construction time so a test can script a whole
    provider chain, e.g. one mock raising VendorUnavailable, a second that
    is not configured and a third that times out.
    """

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        compositor=None,
        *,
        provider_name: ProviderName = ProviderName.MOCK,
        configured: bool = True,
        queued: bool = False,
        polls_until_ready: int = 1,
        pending_forever: bool = False,
        payload: Optional[GeneratedPayload] = None,
        submit_error: Optional[Exception] = None,
        fail_reason: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._provider_name = provider_name
        self.configured = configured
        self.queued = queued
        self.polls_until_ready = polls_until_ready
        self.pending_forever = pending_forever
        self.payload = payload or GeneratedPayload(kind=PayloadKind.VIDEO, data=MOCK_VIDEO_BYTES, mime_type="video/mp4")
        self.submit_error = submit_error
        self.fail_reason = fail_reason

        # Call tracking for assertions
        self.submit_calls = 0
        self.poll_calls = 0
        super().__init__(config, compositor=compositor, sleep=sleep)

    @property
    def name(self) -> ProviderName:
        return self._provider_name

    @property
    def mode(self) -> str:
        return "queued" if self.queued else "immediate"

    @classmethod
    def default_config(cls) -> ProviderConfig:
        return ProviderConfig(
            provider=ProviderName.MOCK,
            api_key="mock-key",
            api_key_env="MOCK_API_KEY",
            poll_interval=0.0,
            max_poll_attempts=5,
        )

    @property
    def is_configured(self) -> bool:
        return self.configured

    @classmethod
    def image(cls, **kwargs) -> "MockVideoProvider":
        """Mock returning a still image, to exercise the image-to-video path."""
        payload = GeneratedPayload(kind=PayloadKind.IMAGE, data=MOCK_IMAGE_BYTES, mime_type="image/png")
        return cls(payload=payload, **kwargs)

    async def submit(self, request: GenerationRequest) -> SubmitResult:
        self.submit_calls += 1
        if self.submit_error is not None:
            raise self.submit_error

        if self.queued:
            job_id = f"mock-job-{self.submit_calls}"
            logger.info(f"Mock: queued {job_id}")
            return Queued(job_id=job_id)
        return Immediate(self.payload)

    async def poll(self, job_id: str) -> PollResult:
        self.poll_calls += 1
        if self.pending_forever or self.poll_calls < self.polls_until_ready:
            return PollResult.pending()
        if self.fail_reason:
            return PollResult.failed(self.fail_reason)
        return PollResult.succeeded(self.payload)

    def reset(self):
        """Reset call counters."""
        self.submit_calls = 0
        self.poll_calls = 0
