"""
Video Provider Base Interface
=============================
Abstract base class for video generation providers.

Every provider implements ``submit`` and, for asynchronous vendors,
``poll``. The shared ``acquire`` template turns either completion model
into exactly one Media Store artifact.
"""

import asyncio
import base64
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import httpx

from config import settings
from shared.errors import (
    NotConfigured,
    PollTimedOut,
    VendorRejected,
    VendorUnavailable,
)
from services.media_store import MediaArtifact, MediaStore
from services.video_acquisition.models import GenerationRequest

logger = logging.getLogger(__name__)

MIN_VIDEO_BYTES = 1000


class ProviderName(str, Enum):
    """Supported video generation providers."""
    LUMA = "luma"
    HAIPER = "haiper"
    RUNWAY = "runway"
    REPLICATE = "replicate"
    SORA = "sora"
    STABILITY = "stability"
    STABILITY_VIDEO = "stability-video"
    HUGGINGFACE = "huggingface"
    MOCK = "mock"


class PayloadKind(str, Enum):
    """What a vendor handed back."""
    VIDEO = "video"
    IMAGE = "image"


class JobState(str, Enum):
    """Lifecycle of an asynchronous render job."""
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class PollStatus(str, Enum):
    """Result of one status check."""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class GeneratedPayload:
    """Bytes or a remote URL for a video or still image."""
    kind: PayloadKind = PayloadKind.VIDEO
    data: Optional[bytes] = None
    url: Optional[str] = None
    mime_type: Optional[str] = None

    def __post_init__(self):
        if self.data is None and not self.url:
            raise ValueError("payload needs data or url")


@dataclass
class Immediate:
    """Synchronous vendor answer."""
    payload: GeneratedPayload


@dataclass
class Queued:
    """Asynchronous vendor answer: a job to poll."""
    job_id: str


SubmitResult = Union[Immediate, Queued]


@dataclass
class PollResult:
    """Result of one ``poll`` call."""
    status: PollStatus
    payload: Optional[GeneratedPayload] = None
    reason: Optional[str] = None

    @classmethod
    def pending(cls) -> "PollResult":
        return cls(PollStatus.PENDING)

    @classmethod
    def succeeded(cls, payload: GeneratedPayload) -> "PollResult":
        return cls(PollStatus.SUCCEEDED, payload=payload)

    @classmethod
    def failed(cls, reason: str) -> "PollResult":
        return cls(PollStatus.FAILED, reason=reason)


@dataclass
class RenderJob:
    """
    An in-flight asynchronous job.

    Created on submit, mutated only by the polling loop and discarded once
    terminal.
    """
    job_id: str
    provider: str
    state: JobState = JobState.SUBMITTED
    poll_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_terminal(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED, JobState.TIMED_OUT)


@dataclass
class ProviderConfig:
    """Configuration for a video provider."""
    provider: ProviderName = ProviderName.MOCK
    api_key: Optional[str] = None
    api_key_env: str = ""
    base_url: str = ""
    model: str = ""
    timeout: float = settings.PROVIDER_HTTP_TIMEOUT_SECONDS
    poll_interval: float = settings.PROVIDER_POLL_INTERVAL_SECONDS
    max_poll_attempts: int = settings.PROVIDER_MAX_POLL_ATTEMPTS

    @classmethod
    def from_env(
        cls,
        provider: ProviderName,
        default_base_url: str = "",
        default_model: str = "",
        api_key_env: Optional[str] = None,
    ) -> "ProviderConfig":
        """Load configuration from ``<NAME>_*`` environment variables."""
        prefix = provider.value.upper().replace("-", "_")
        key_env = api_key_env or f"{prefix}_API_KEY"
        return cls(
            provider=provider,
            api_key=os.getenv(key_env) or None,
            api_key_env=key_env,
            base_url=os.getenv(f"{prefix}_API_BASE", default_base_url),
            model=os.getenv(f"{prefix}_MODEL", default_model),
            timeout=float(os.getenv(f"{prefix}_TIMEOUT", settings.PROVIDER_HTTP_TIMEOUT_SECONDS)),
            poll_interval=float(os.getenv(f"{prefix}_POLL_INTERVAL", settings.PROVIDER_POLL_INTERVAL_SECONDS)),
            max_poll_attempts=int(os.getenv(f"{prefix}_MAX_POLL_ATTEMPTS", settings.PROVIDER_MAX_POLL_ATTEMPTS)),
        )


STYLE_ENHANCEMENTS = {
    "cinematic": "cinematic, professional cinematography, dramatic lighting, film quality",
    "anime": "anime style, vibrant colors, dynamic animation, studio quality",
    "realistic": "photorealistic, natural lighting, documentary style, high definition",
    "cartoon": "3D animation, colorful, smooth motion",
    "abstract": "abstract art, artistic interpretation, fluid motion, creative",
    "futuristic": "futuristic, neon lighting, sleek technology, sci-fi atmosphere",
}


def enhance_prompt(prompt: str, style: str) -> str:
    """Append style descriptors before sending a prompt to a vendor."""
    extra = STYLE_ENHANCEMENTS.get(style, STYLE_ENHANCEMENTS["cinematic"])
    return f"{prompt}, {extra}"


class VideoProviderAdapter(ABC):
    """
    Abstract base class for video generation provider adapters.

    Implement ``submit`` (and ``poll`` for queued vendors) to add support
    for a new service. Adapters returning only a still image need a
    compositor to turn it into motion video.
    """

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        compositor: Optional[Any] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config or self.default_config()
        self.compositor = compositor
        self._transport = transport
        self._sleep = sleep

    @property
    @abstractmethod
    def name(self) -> ProviderName:
        """Provider name identifier."""
        pass

    @property
    def mode(self) -> str:
        """Completion model reported in status: queued or immediate."""
        return "queued"

    @classmethod
    def default_config(cls) -> ProviderConfig:
        return ProviderConfig()

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    @abstractmethod
    async def submit(self, request: GenerationRequest) -> SubmitResult:
        """
        Start a generation.

        Args:
            request: Generation request

        Returns:
            Immediate with the payload, or Queued with the vendor job id
        """
        pass

    async def poll(self, job_id: str) -> PollResult:
        """
        Check an asynchronous job once.

        Args:
            job_id: Vendor job token

        Returns:
            PollResult (pending, succeeded with payload, or failed)
        """
        raise NotImplementedError(f"{self.name.value} does not queue jobs")

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def _new_client(self) -> httpx.AsyncClient:
        """
        Fresh HTTP client for one call.

        Adapters are shared by every request thread, each running its own
        event loop, so no client is kept on the instance.
        """
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            headers=self._headers(),
            timeout=httpx.Timeout(self.config.timeout, connect=10.0),
            transport=self._transport,
        )

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, mapping failures onto the error taxonomy."""
        provider = self.name.value
        try:
            async with self._new_client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise VendorUnavailable(provider, f"timeout: {e}") from e
        except httpx.HTTPError as e:
            raise VendorUnavailable(provider, f"transport error: {e}") from e

        if response.status_code >= 500:
            raise VendorUnavailable(provider, response.text[:200], status_code=response.status_code)
        if response.status_code >= 400:
            raise VendorRejected(provider, response.text[:200], status_code=response.status_code)
        return response

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise VendorUnavailable(self.name.value, "malformed JSON response") from e
        if not isinstance(data, dict):
            raise VendorUnavailable(self.name.value, "unexpected response shape")
        return data

    def _require(self, data: Dict[str, Any], key: str) -> Any:
        value = data.get(key)
        if not value:
            raise VendorUnavailable(self.name.value, f"response missing '{key}'")
        return value

    # ------------------------------------------------------------------
    # Acquisition template
    # ------------------------------------------------------------------

    async def wait_for_completion(self, job: RenderJob) -> GeneratedPayload:
        """
        Poll until the job completes, fails or hits the attempt cap.

        Sleeps ``poll_interval`` seconds between checks.

        Raises:
            VendorRejected: vendor reported the job as failed
            PollTimedOut: still pending after ``max_poll_attempts`` checks
        """
        job.state = JobState.POLLING
        max_attempts = max(1, self.config.max_poll_attempts)

        while job.poll_count < max_attempts:
            if job.poll_count > 0:
                await self._sleep(self.config.poll_interval)
            job.poll_count += 1

            try:
                result = await self.poll(job.job_id)
            except Exception:
                job.state = JobState.FAILED
                raise

            logger.debug(f"{self.name.value} job {job.job_id} poll #{job.poll_count}: {result.status.value}")

            if result.status == PollStatus.SUCCEEDED:
                if result.payload is None:
                    job.state = JobState.FAILED
                    raise VendorUnavailable(self.name.value, f"job {job.job_id} succeeded without output")
                job.state = JobState.COMPLETED
                return result.payload
            if result.status == PollStatus.FAILED:
                job.state = JobState.FAILED
                raise VendorRejected(self.name.value, result.reason or f"job {job.job_id} failed")

        job.state = JobState.TIMED_OUT
        raise PollTimedOut(self.name.value, job.job_id, job.poll_count)

    async def download(self, url: str) -> bytes:
        """Fetch a remote payload."""
        provider = self.name.value
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout, connect=10.0),
                transport=self._transport,
                follow_redirects=True,
            ) as download_client:
                response = await download_client.get(url)
        except httpx.HTTPError as e:
            raise VendorUnavailable(provider, f"download failed: {e}") from e

        if response.status_code >= 400:
            raise VendorUnavailable(provider, f"download returned {response.status_code}", response.status_code)
        return response.content

    async def materialize(self, payload: GeneratedPayload, request: GenerationRequest, concept: Any) -> bytes:
        """Turn a payload into MP4 bytes (download, then image-to-video if needed)."""
        data = payload.data if payload.data is not None else await self.download(payload.url)

        if payload.kind == PayloadKind.IMAGE:
            if not data:
                raise VendorUnavailable(self.name.value, "empty image payload")
            if self.compositor is None:
                raise VendorUnavailable(self.name.value, "image payload but no compositor configured")
            return await self.compositor.compose(data, concept, request)

        if len(data) < MIN_VIDEO_BYTES:
            raise VendorUnavailable(self.name.value, f"video payload too small ({len(data)} bytes)")
        return data

    async def acquire(
        self,
        request: GenerationRequest,
        store: MediaStore,
        concept: Any,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> MediaArtifact:
        """
        Run one full generation and publish the result.

        Raises:
            NotConfigured: credential missing (checked before any network call)
            VendorRejected, VendorUnavailable, PollTimedOut: vendor failures
            EngineUnavailable, CompositionFailed: image-to-video failures
        """
        if not self.is_configured:
            raise NotConfigured(self.name.value, self.config.api_key_env or None)

        result = await self.submit(request)
        if isinstance(result, Queued):
            job = RenderJob(job_id=result.job_id, provider=self.name.value)
            logger.info(f"{self.name.value} queued job {job.job_id}")
            payload = await self.wait_for_completion(job)
        else:
            payload = result.payload

        video = await self.materialize(payload, request, concept)

        artifact_metadata = dict(metadata or {})
        artifact_metadata["sourceKind"] = payload.kind.value
        return store.save(
            video,
            produced_by=self.name.value,
            mime_type="video/mp4",
            metadata=artifact_metadata,
        )

    def status(self) -> Dict[str, Any]:
        """Configuration status without any network call."""
        return {
            "name": self.name.value,
            "configured": self.is_configured,
            "status": "ready" if self.is_configured else "missing_key",
            "mode": self.mode,
        }


def decode_base64_image(provider: str, data: str) -> bytes:
    """Decode a base64 (optionally data-URL) image."""
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True)
    except (ValueError, TypeError) as e:
        raise VendorUnavailable(provider, "invalid base64 image") from e
