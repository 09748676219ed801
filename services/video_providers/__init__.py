"""
Video Provider Adapters
=======================
Unified interface for video generation providers (Luma, Haiper, Runway,
Replicate, Sora, Stability image and video, Hugging Face).

Usage:
    from services.video_providers import build_provider_chain

    providers = build_provider_chain(compositor=VideoCompositor())
    artifact = await providers[0].acquire(request, store, concept)
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Type, Union

from config import settings

from .base import (
    VideoProviderAdapter,
    ProviderConfig,
    ProviderName,
    PayloadKind,
    JobState,
    PollStatus,
    GeneratedPayload,
    Immediate,
    Queued,
    PollResult,
    RenderJob,
    enhance_prompt,
)

logger = logging.getLogger(__name__)


def _registry() -> Dict[ProviderName, Type[VideoProviderAdapter]]:
    from .haiper_provider import HaiperProvider
    from .huggingface_provider import HuggingFaceProvider
    from .luma_provider import LumaProvider
    from .mock_provider import MockVideoProvider
    from .replicate_provider import ReplicateProvider
    from .runway_provider import RunwayProvider
    from .sora_provider import SoraProvider
    from .stability_provider import StabilityProvider
    from .stability_video_provider import StabilityVideoProvider

    return {
        ProviderName.LUMA: LumaProvider,
        ProviderName.HAIPER: HaiperProvider,
        ProviderName.RUNWAY: RunwayProvider,
        ProviderName.REPLICATE: ReplicateProvider,
        ProviderName.SORA: SoraProvider,
        ProviderName.STABILITY: StabilityProvider,
        ProviderName.STABILITY_VIDEO: StabilityVideoProvider,
        ProviderName.HUGGINGFACE: HuggingFaceProvider,
        ProviderName.MOCK: MockVideoProvider,
    }


def get_video_provider(
    provider_name: Union[ProviderName, str],
    compositor: Optional[Any] = None,
    config: Optional[ProviderConfig] = None,
) -> VideoProviderAdapter:
    """
    Get a video provider adapter.

    Args:
        provider_name: Provider to build (luma, haiper, runway, sora, ...)
        compositor: Needed by image-returning providers for image-to-video
        config: Override the environment-derived configuration

    Returns:
        VideoProviderAdapter instance

    Raises:
        ValueError: unknown provider name
    """
    name = ProviderName(str(getattr(provider_name, "value", provider_name)).strip().lower())
    return _registry()[name](config, compositor=compositor)


def build_provider_chain(
    names: Optional[Sequence[str]] = None,
    compositor: Optional[Any] = None,
) -> List[VideoProviderAdapter]:
    """
    Build the ordered adapter list tried by the orchestrator.

    Unknown or duplicate names are logged and skipped.
    """
    chain: List[VideoProviderAdapter] = []
    seen = set()
    for raw in settings.VIDEO_PROVIDER_ORDER if names is None else names:
        try:
            provider = get_video_provider(raw, compositor=compositor)
        except ValueError:
            logger.warning(f"Ignoring unknown video provider '{raw}'")
            continue
        if provider.name in seen:
            logger.warning(f"Ignoring duplicate video provider '{raw}'")
            continue
        seen.add(provider.name)
        chain.append(provider)
    return chain


def status_report(providers: Sequence[VideoProviderAdapter]) -> Dict[str, Any]:
    """Configuration status of every adapter, without network calls."""
    statuses = [provider.status() for provider in providers]
    return {
        "providers": statuses,
        "activeCount": sum(1 for status in statuses if status["configured"]),
        "order": [status["name"] for status in statuses],
    }


__all__ = [
    # Factory
    "get_video_provider",
    "build_provider_chain",
    "status_report",

    # Base classes
    "VideoProviderAdapter",
    "ProviderConfig",
    "ProviderName",
    "PayloadKind",
    "JobState",
    "PollStatus",
    "GeneratedPayload",
    "Immediate",
    "Queued",
    "PollResult",
    "RenderJob",
    "enhance_prompt",
]
