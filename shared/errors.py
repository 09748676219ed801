"""
Video Acquisition Errors
========================
Error taxonomy shared by the provider adapters, the compositor and the
fallback orchestrator.

Every error carries a stable ``kind`` string so attempts can be logged and
reported without leaking vendor-internal exception types.
"""

from typing import List, Optional


class VideoAcquisitionError(Exception):
    """Base class for every pipeline error."""

    kind = "error"

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider


class NotConfigured(VideoAcquisitionError):
    """Provider credential is missing. Expected, never retried."""

    kind = "not_configured"

    def __init__(self, provider: str, env_var: Optional[str] = None):
        detail = f"{env_var} not configured" if env_var else "credential not configured"
        super().__init__(f"{provider}: {detail}", provider=provider)
        self.env_var = env_var


class VendorRejected(VideoAcquisitionError):
    """Vendor refused the request (4xx, policy rejection, failed job)."""

    kind = "vendor_rejected"

    def __init__(self, provider: str, detail: str, status_code: Optional[int] = None):
        prefix = f"{status_code} " if status_code else ""
        super().__init__(f"{provider}: {prefix}{detail}", provider=provider)
        self.status_code = status_code
        self.detail = detail


class VendorUnavailable(VideoAcquisitionError):
    """Vendor could not be reached or answered with a 5xx / unusable payload."""

    kind = "vendor_unavailable"

    def __init__(self, provider: str, detail: str, status_code: Optional[int] = None):
        prefix = f"{status_code} " if status_code else ""
        super().__init__(f"{provider}: {prefix}{detail}", provider=provider)
        self.status_code = status_code
        self.detail = detail


class PollTimedOut(VideoAcquisitionError):
    """Async job never reached a terminal state within the attempt cap."""

    kind = "poll_timed_out"

    def __init__(self, provider: str, job_id: str, attempts: int):
        super().__init__(
            f"{provider}: job {job_id} still pending after {attempts} polls",
            provider=provider,
        )
        self.job_id = job_id
        self.attempts = attempts


class EngineUnavailable(VideoAcquisitionError):
    """The encoding subprocess could not be spawned."""

    kind = "engine_unavailable"

    def __init__(self, binary: str, detail: str = ""):
        message = f"{binary} unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.binary = binary


class CompositionFailed(VideoAcquisitionError):
    """The encoding subprocess ran but did not produce a video."""

    kind = "composition_failed"

    def __init__(self, code: Optional[int], stderr_tail: str = ""):
        message = f"ffmpeg exited with code {code}"
        if stderr_tail:
            message = f"{message}: {stderr_tail}"
        super().__init__(message)
        self.code = code
        self.stderr_tail = stderr_tail


class GenerationFailed(VideoAcquisitionError):
    """Every provider and the local fallback failed."""

    kind = "generation_failed"

    def __init__(self, reason: str, attempts: Optional[List] = None):
        super().__init__(reason)
        self.reason = reason
        self.attempts = list(attempts or [])
