"""
Fallback Orchestrator
=====================
Tries the configured providers in order and falls back to the local
procedural renderer, so a well-formed request always yields exactly one
published artifact or a single GenerationFailed.
"""

from typing import Any, List, Optional, Sequence

from loguru import logger

from shared.errors import (
    CompositionFailed,
    EngineUnavailable,
    GenerationFailed,
    NotConfigured,
    VideoAcquisitionError,
)
from services.video_compositor.concept_mapper import ConceptMapper

from .models import AttemptOutcome, GenerationRequest, GenerationResult, ProviderAttempt


class FallbackOrchestrator:
    """
    Sequential provider fallback.

    Providers are tried one at a time in list order; the first success
    wins and later providers are never called. The local renderer is
    invoked only once every provider has been skipped or has failed.
    """

    def __init__(
        self,
        providers: Sequence[Any],
        local_renderer: Any,
        store: Any,
        concept_mapper: Optional[ConceptMapper] = None,
    ):
        self.providers = list(providers)
        self.local_renderer = local_renderer
        self.store = store
        self.concept_mapper = concept_mapper or ConceptMapper()

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Produce one video for the request.

        Returns:
            GenerationResult with the published artifact and every attempt

        Raises:
            GenerationFailed: the local fallback failed too
        """
        concept = self.concept_mapper.map(request.prompt, request.style)
        metadata = request.to_metadata()
        metadata["concept"] = concept.to_dict()

        attempts: List[ProviderAttempt] = []
        logger.info(
            f"Generating video ({request.aspect_ratio.value}, {request.duration_seconds}s, "
            f"style={request.style}, concept={concept.name}) across {len(self.providers)} providers"
        )

        for provider in self.providers:
            name = provider.name.value
            attempt = ProviderAttempt(provider_name=name)
            attempts.append(attempt)

            if not provider.is_configured:
                attempt.finish(AttemptOutcome.SKIPPED_NOT_CONFIGURED, NotConfigured.kind)
                logger.info(f"Skipping {name}: not configured")
                continue

            try:
                artifact = await provider.acquire(request, self.store, concept, metadata)
            except NotConfigured as e:
                attempt.finish(AttemptOutcome.SKIPPED_NOT_CONFIGURED, e.kind, e.message)
                logger.info(f"Skipping {name}: {e.message}")
                continue
            except VideoAcquisitionError as e:
                attempt.finish(AttemptOutcome.FAILED, e.kind, e.message)
                logger.warning(f"{name} failed ({e.kind}): {e.message}")
                continue
            except Exception as e:
                attempt.finish(AttemptOutcome.FAILED, type(e).__name__, str(e))
                logger.exception(f"{name} raised an unexpected error")
                continue

            attempt.finish(AttemptOutcome.SUCCEEDED)
            logger.info(f"{name} produced {artifact.relative_path} in {attempt.elapsed_seconds:.1f}s")
            return GenerationResult(artifact=artifact, attempts=attempts)

        return await self._render_locally(request, metadata, attempts)

    async def _render_locally(
        self,
        request: GenerationRequest,
        metadata: dict,
        attempts: List[ProviderAttempt],
    ) -> GenerationResult:
        attempt = ProviderAttempt(provider_name=self.local_renderer.name)
        attempts.append(attempt)
        logger.info("All providers exhausted, using local fallback renderer")

        try:
            artifact = await self.local_renderer.render(request, self.store, metadata)
        except (EngineUnavailable, CompositionFailed) as e:
            attempt.finish(AttemptOutcome.FAILED, e.kind, e.message)
            logger.error(f"Local fallback failed ({e.kind}): {e.message}")
            raise GenerationFailed(f"all providers and the local fallback failed: {e.message}", attempts) from e
        except Exception as e:
            attempt.finish(AttemptOutcome.FAILED, type(e).__name__, str(e))
            logger.exception("Local fallback raised an unexpected error")
            raise GenerationFailed(f"all providers and the local fallback failed: {e}", attempts) from e

        attempt.finish(AttemptOutcome.SUCCEEDED)
        logger.info(f"Local fallback produced {artifact.relative_path}")
        return GenerationResult(artifact=artifact, attempts=attempts)


def build_orchestrator(store: Optional[Any] = None) -> FallbackOrchestrator:
    """Wire the provider chain, compositor and store from config.settings."""
    from config import settings
    from services.media_store import MediaStore
    from services.video_compositor import LocalProceduralRenderer, VideoCompositor
    from services.video_providers import build_provider_chain

    compositor = VideoCompositor()
    concept_mapper = ConceptMapper()
    return FallbackOrchestrator(
        providers=build_provider_chain(settings.VIDEO_PROVIDER_ORDER, compositor=compositor),
        local_renderer=LocalProceduralRenderer(compositor, concept_mapper),
        store=store or MediaStore(settings.OUTPUT_DIR, settings.PUBLIC_URL_PREFIX),
        concept_mapper=concept_mapper,
    )
