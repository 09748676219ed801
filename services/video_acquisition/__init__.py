"""
Video Acquisition
=================
Fallback orchestration across remote video providers with a deterministic
local renderer as the last resort.

Usage:
    from services.video_acquisition import build_orchestrator, GenerationRequest

    orchestrator = build_orchestrator()
    result = await orchestrator.generate(GenerationRequest(prompt="..."))
"""

from .models import (
    AspectRatio,
    AttemptOutcome,
    GenerationRequest,
    GenerationResult,
    ProviderAttempt,
)
from .orchestrator import FallbackOrchestrator, build_orchestrator


__all__ = [
    "AspectRatio",
    "AttemptOutcome",
    "GenerationRequest",
    "GenerationResult",
    "ProviderAttempt",
    "FallbackOrchestrator",
    "build_orchestrator",
]
