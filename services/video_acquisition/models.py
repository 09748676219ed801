"""
Video Acquisition Models
========================
Request, attempt and result models for the generative-video pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import settings
from services.media_store import MediaArtifact


class AspectRatio(str, Enum):
    """Supported output aspect ratios."""
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    SQUARE = "1:1"

    @property
    def dimensions(self) -> Tuple[int, int]:
        """Output (width, height) in pixels."""
        return _DIMENSIONS[self]


_DIMENSIONS = {
    AspectRatio.LANDSCAPE: (1280, 720),
    AspectRatio.PORTRAIT: (720, 1280),
    AspectRatio.SQUARE: (720, 720),
}


class GenerationRequest(BaseModel):
    """Immutable input for one video generation."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str = Field(..., min_length=1, max_length=2000)
    aspect_ratio: AspectRatio = Field(default=AspectRatio.LANDSCAPE, alias="aspectRatio")
    style: str = Field(default=settings.DEFAULT_STYLE, max_length=50)
    duration_seconds: float = Field(
        default=settings.DEFAULT_DURATION_SECONDS,
        gt=0,
        le=settings.MAX_DURATION_SECONDS,
        alias="duration",
    )

    @field_validator("prompt")
    @classmethod
    def _strip_prompt(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prompt must not be blank")
        return value

    @field_validator("style", mode="before")
    @classmethod
    def _normalize_style(cls, value: Any) -> str:
        if value is None:
            return settings.DEFAULT_STYLE
        return str(value).strip().lower() or settings.DEFAULT_STYLE

    @property
    def width(self) -> int:
        return self.aspect_ratio.dimensions[0]

    @property
    def height(self) -> int:
        return self.aspect_ratio.dimensions[1]

    def to_metadata(self) -> Dict[str, Any]:
        """Echo of the request for artifact traceability."""
        return {
            "prompt": self.prompt,
            "style": self.style,
            "aspectRatio": self.aspect_ratio.value,
            "duration": self.duration_seconds,
        }


class AttemptOutcome(str, Enum):
    """Outcome of one provider attempt."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED_NOT_CONFIGURED = "skipped_not_configured"


@dataclass
class ProviderAttempt:
    """One adapter (or the local fallback) tried for a request."""
    provider_name: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    outcome: Optional[AttemptOutcome] = None
    error_kind: Optional[str] = None
    error_detail: Optional[str] = None
    finished_at: Optional[datetime] = None

    def finish(
        self,
        outcome: AttemptOutcome,
        error_kind: Optional[str] = None,
        error_detail: Optional[str] = None,
    ) -> "ProviderAttempt":
        self.outcome = outcome
        self.error_kind = error_kind
        self.error_detail = error_detail
        self.finished_at = datetime.now(timezone.utc)
        return self

    @property
    def elapsed_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider_name,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "outcome": self.outcome.value if self.outcome else None,
            "error_kind": self.error_kind,
            "error_detail": self.error_detail,
        }


@dataclass
class GenerationResult:
    """The single published artifact plus the ordered attempt log."""
    artifact: MediaArtifact
    attempts: List[ProviderAttempt] = field(default_factory=list)

    @property
    def produced_by(self) -> str:
        return self.artifact.produced_by

    def to_response(self) -> Dict[str, Any]:
        """Body returned by the generate endpoint."""
        metadata = dict(self.artifact.metadata)
        metadata.update({
            "artifactId": self.artifact.id,
            "producedBy": self.artifact.produced_by,
            "mimeType": self.artifact.mime_type,
            "sizeBytes": self.artifact.size_bytes,
        })
        return {
            "success": True,
            "videoUrl": self.artifact.relative_path,
            "metadata": metadata,
        }
