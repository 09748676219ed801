"""
Video Compositor
================
Concept mapping, filter-graph construction and ffmpeg composition.

Usage:
    from services.video_compositor import LocalProceduralRenderer

    renderer = LocalProceduralRenderer()
    artifact = await renderer.render(request, store)
"""

from .concept_mapper import (
    BlendMode,
    ConceptMapper,
    ConceptProfile,
    ConceptSource,
    KeywordSet,
    map_concept,
)
from .filter_graph import FilterGraph, sanitize_overlay_text
from .compositor import VideoCompositor
from .local_renderer import LOCAL_FALLBACK_NAME, LocalProceduralRenderer


__all__ = [
    "BlendMode",
    "ConceptMapper",
    "ConceptProfile",
    "ConceptSource",
    "KeywordSet",
    "map_concept",
    "FilterGraph",
    "sanitize_overlay_text",
    "VideoCompositor",
    "LOCAL_FALLBACK_NAME",
    "LocalProceduralRenderer",
]
