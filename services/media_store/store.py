"""
Media Store
===========
Filesystem store for generated video artifacts.

Artifacts are written to a hidden temp file in the output directory and
renamed into place only after the bytes are flushed, so a reader never
sees a half-written file. Concurrent writers never share a temp name.
"""

import os
import tempfile
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from loguru import logger


IdFactory = Callable[[str], str]


def generate_artifact_id(tag: str, now: Optional[float] = None) -> str:
    """
    Build an artifact id of the form ``{tag}_{epoch_ms}_{suffix}``.

    Args:
        tag: Provider tag (e.g. "luma", "local-fallback")
        now: Optional timestamp in seconds, defaults to the current time

    Returns:
        Identifier that is safe to use as a file stem
    """
    timestamp = int((now if now is not None else time.time()) * 1000)
    safe_tag = "".join(c if c.isalnum() or c in "-_" else "-" for c in tag.lower()) or "artifact"
    return f"{safe_tag}_{timestamp}_{uuid4().hex[:6]}"


@dataclass(frozen=True)
class MediaArtifact:
    """A published, immutable generation result."""
    id: str
    relative_path: str
    mime_type: str
    size_bytes: int
    produced_by: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "relative_path": self.relative_path,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "produced_by": self.produced_by,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }


class MediaStore:
    """
    Owns the bytes of every published artifact.

    Callers only ever get a MediaArtifact reference back; the relative path
    is served by the public static root.
    """

    def __init__(
        self,
        root_dir: Path,
        public_prefix: str = "/ai-generated-videos",
        id_factory: Optional[IdFactory] = None,
    ):
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self.public_prefix = "/" + public_prefix.strip("/")
        self.id_factory = id_factory or generate_artifact_id

    def save(
        self,
        data: bytes,
        *,
        produced_by: str,
        mime_type: str = "video/mp4",
        metadata: Optional[Dict[str, Any]] = None,
        extension: str = "mp4",
    ) -> MediaArtifact:
        """
        Write a payload and publish it as a new artifact.

        Args:
            data: Payload bytes
            produced_by: Provider name or "local-fallback"
            mime_type: MIME type of the payload
            metadata: Traceability metadata stored on the artifact
            extension: File extension without the dot

        Returns:
            The published MediaArtifact
        """
        if not data:
            raise ValueError("refusing to publish an empty payload")

        artifact_id = self.id_factory(produced_by)
        filename = f"{artifact_id}.{extension.lstrip('.')}"
        final_path = self.root_dir / filename

        fd, temp_name = tempfile.mkstemp(dir=self.root_dir, prefix=f".{artifact_id}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_name, final_path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

        artifact = MediaArtifact(
            id=artifact_id,
            relative_path=f"{self.public_prefix}/{filename}",
            mime_type=mime_type,
            size_bytes=len(data),
            produced_by=produced_by,
            metadata=dict(metadata or {}),
        )
        logger.info(f"Published artifact {artifact.relative_path} ({artifact.size_bytes} bytes, {produced_by})")
        return artifact

    def resolve(self, relative_path: str) -> Path:
        """Map a public relative path back to a file inside the store root."""
        name = relative_path
        if name.startswith(self.public_prefix + "/"):
            name = name[len(self.public_prefix) + 1:]
        candidate = (self.root_dir / name.lstrip("/")).resolve()
        root = self.root_dir.resolve()
        if candidate.parent != root:
            raise ValueError(f"Path escapes media store: {relative_path}")
        return candidate

    def exists(self, artifact: MediaArtifact) -> bool:
        return self.resolve(artifact.relative_path).is_file()
