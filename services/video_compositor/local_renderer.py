"""
Local Procedural Renderer
=========================
Deterministic last-resort renderer: ConceptMapper + VideoCompositor in
pure-synthetic mode. No network dependency.
"""

from typing import Any, Dict, Optional

from loguru import logger

from services.media_store import MediaArtifact, MediaStore
from services.video_acquisition.models import GenerationRequest

from .compositor import VideoCompositor
from .concept_mapper import ConceptMapper

LOCAL_FALLBACK_NAME = "local-fallback"


class LocalProceduralRenderer:
    """Synthesizes a video from the prompt alone."""

    name = LOCAL_FALLBACK_NAME

    def __init__(
        self,
        compositor: Optional[VideoCompositor] = None,
        concept_mapper: Optional[ConceptMapper] = None,
    ):
        self.compositor = compositor or VideoCompositor()
        self.concept_mapper = concept_mapper or ConceptMapper()

    async def render(
        self,
        request: GenerationRequest,
        store: MediaStore,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> MediaArtifact:
        """
        Render and publish a synthetic video.

        Raises:
            EngineUnavailable, CompositionFailed: propagated from the compositor
        """
        concept = self.concept_mapper.map(request.prompt, request.style)
        logger.info(f"Local fallback rendering with concept '{concept.name}' ({concept.source.value})")

        video = await self.compositor.compose(None, concept, request)

        artifact_metadata = dict(metadata or {})
        artifact_metadata.setdefault("concept", concept.to_dict())
        return store.save(
            video,
            produced_by=self.name,
            mime_type="video/mp4",
            metadata=artifact_metadata,
        )
