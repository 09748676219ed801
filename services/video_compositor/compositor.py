"""
Video Compositor
================
Drives ffmpeg with a generated filter graph to produce an MP4.

Two modes:
- Image-to-video: scale/pad a still image and apply a zoom-pan camera,
  optionally with a faded caption
- Pure-synthetic: blend flat/noise color sources from a ConceptProfile,
  then the same camera plus particles and caption

One subprocess per call, bounded by a wall-clock timeout. Inputs and
outputs live in a scoped temp directory that is removed on every path.
"""

import asyncio
import json
import re
import tempfile
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple

from loguru import logger

from config import settings
from shared.errors import CompositionFailed, EngineUnavailable
from services.video_acquisition.models import GenerationRequest

from .concept_mapper import ConceptProfile
from .filter_graph import (
    BlendStage,
    ColorSource,
    FilterGraph,
    ImageSource,
    NoiseStage,
    OpacityWaveStage,
    ParticleStage,
    ScalePadStage,
    TextOverlayStage,
    ZoomPanStage,
    output_format_filter,
)

STDERR_TAIL_CHARS = 500

# " T.C drawtext          V->V       Draw text on top of video frames..."
_FILTER_LINE = re.compile(r"^\s*[TSC.|]{2,3}\s+(\w+)\s+\S*->\S*", re.MULTILINE)


def parse_filter_list(output: str) -> FrozenSet[str]:
    """Filter names from ``ffmpeg -filters`` output."""
    return frozenset(_FILTER_LINE.findall(output))


def image_extension(data: bytes) -> str:
    """Guess a file extension from image magic bytes so ffmpeg picks the right decoder."""
    if data.startswith(b"\x89PNG"):
        return "png"
    if data.startswith(b"\xff\xd8"):
        return "jpg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp"
    if data[:3] == b"GIF":
        return "gif"
    return "png"


class VideoCompositor:
    """
    ffmpeg-backed compositor.

    Usage:
        compositor = VideoCompositor()
        video = await compositor.compose(None, concept, request)
    """

    def __init__(
        self,
        ffmpeg_path: str = settings.FFMPEG_PATH,
        ffprobe_path: str = settings.FFPROBE_PATH,
        timeout: float = settings.FFMPEG_TIMEOUT_SECONDS,
        fps: int = settings.VIDEO_FPS,
        crf: int = settings.VIDEO_CRF,
        preset: str = settings.VIDEO_PRESET,
        font_file: Optional[str] = settings.FFMPEG_FONT_FILE,
        text_overlay: bool = settings.TEXT_OVERLAY_ENABLED,
        particles: bool = settings.PARTICLES_ENABLED,
    ):
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout
        self.fps = fps
        self.crf = crf
        self.preset = preset
        self.font_file = font_file
        self.text_overlay = text_overlay
        self.particles = particles
        self._filters_checked = False

    async def check_filters(self) -> None:
        """
        Read ``ffmpeg -filters`` once and drop the caption when drawtext is missing.

        ffmpeg builds without libfreetype have no drawtext filter; rendering
        the caption there would fail every composition.
        """
        if self._filters_checked or not self.text_overlay:
            return
        try:
            process = await asyncio.create_subprocess_exec(
                self.ffmpeg_path, "-hide_banner", "-filters",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            raise EngineUnavailable(self.ffmpeg_path, str(e)) from e

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.warning("ffmpeg -filters timed out, keeping caption enabled")
            return

        self._filters_checked = True
        filters = parse_filter_list((stdout or b"").decode(errors="replace"))
        if process.returncode != 0 or not filters:
            logger.warning("Could not list ffmpeg filters, keeping caption enabled")
            return
        if "drawtext" not in filters:
            logger.warning("ffmpeg has no drawtext filter (built without libfreetype), captions disabled")
            self.text_overlay = False

    async def compose(
        self,
        source_image: Optional[bytes],
        concept: ConceptProfile,
        request: GenerationRequest,
    ) -> bytes:
        """
        Render a video for the request.

        Args:
            source_image: Still image bytes, or None for pure-synthetic mode
            concept: Palette and motion parameters
            request: Generation request (size, duration, caption text)

        Returns:
            MP4 bytes

        Raises:
            EngineUnavailable: ffmpeg could not be spawned
            CompositionFailed: ffmpeg exited non-zero, timed out or wrote nothing
        """
        if source_image is not None and not source_image:
            raise CompositionFailed(None, "empty source image")
        await self.check_filters()

        with tempfile.TemporaryDirectory(prefix="compose_") as workdir:
            work = Path(workdir)
            output_path = work / "output.mp4"

            if source_image is not None:
                image_path = work / f"source_image.{image_extension(source_image)}"
                image_path.write_bytes(source_image)
                graph, label = self.build_image_graph(str(image_path), concept, request)
                mode = "image-to-video"
            else:
                graph, label = self.build_synthetic_graph(concept, request)
                mode = "synthetic"

            args = graph.to_args(label) + self._encode_args(request, output_path)
            logger.info(
                f"Composing {mode} video: {request.width}x{request.height}, "
                f"{request.duration_seconds}s, concept={concept.name}"
            )
            await self._run(args)

            if not output_path.exists() or output_path.stat().st_size == 0:
                raise CompositionFailed(0, "ffmpeg reported success but wrote no output")
            return output_path.read_bytes()

    def build_image_graph(
        self,
        image_path: str,
        concept: ConceptProfile,
        request: GenerationRequest,
    ) -> Tuple[FilterGraph, str]:
        """Filter graph for a still image with a Ken Burns camera."""
        graph = FilterGraph()
        source = graph.add_input(ImageSource(image_path))
        frames = self._frame_count(request)

        filters = ScalePadStage(request.width, request.height).filters()
        filters.append(ZoomPanStage(
            width=request.width,
            height=request.height,
            fps=self.fps,
            zoom_speed=concept.zoom_speed,
            max_zoom=concept.max_zoom,
            frames_per_input=frames,
        ).to_filter())
        filters.extend(self._caption_filters(concept, request))
        filters.append(output_format_filter())

        return graph, graph.add_chain([source], filters, prefix="final")

    def build_synthetic_graph(
        self,
        concept: ConceptProfile,
        request: GenerationRequest,
    ) -> Tuple[FilterGraph, str]:
        """Filter graph built purely from color/noise sources."""
        graph = FilterGraph()
        duration = request.duration_seconds
        size = dict(width=request.width, height=request.height, duration=duration, fps=self.fps)

        primary = graph.add_input(ColorSource(color=concept.primary_color, **size))
        secondary = graph.add_input(ColorSource(color=concept.secondary_color, **size))
        accent = graph.add_input(ColorSource(color=concept.accent_color, **size))

        blended = BlendStage(concept.blend_mode, opacity=0.6).apply(graph, primary, secondary)
        grain = graph.add_chain([accent], [NoiseStage(strength=20).to_filter()], prefix="grain")
        textured = OpacityWaveStage(
            base=0.15,
            amplitude=0.1,
            frequency=concept.motion_frequency,
        ).apply(graph, blended, grain)

        camera = graph.add_chain([textured], [ZoomPanStage(
            width=request.width,
            height=request.height,
            fps=self.fps,
            zoom_speed=concept.zoom_speed,
            max_zoom=concept.max_zoom,
            motion_amplitude=concept.motion_amplitude,
            motion_frequency=concept.motion_frequency,
        ).to_filter()], prefix="camera")

        scene = camera
        if self.particles:
            scene = ParticleStage(
                width=request.width,
                height=request.height,
                duration=duration,
                fps=self.fps,
            ).apply(graph, camera)

        filters = self._caption_filters(concept, request)
        filters.append(output_format_filter())
        return graph, graph.add_chain([scene], filters, prefix="final")

    def _caption_filters(self, concept: ConceptProfile, request: GenerationRequest) -> List:
        if not self.text_overlay:
            return []
        stage = TextOverlayStage(
            text=request.prompt,
            duration=request.duration_seconds,
            font_size=max(16, request.width // 25),
            font_color=concept.accent_color,
            font_file=self.font_file,
        )
        if stage.is_empty:
            return []
        return [stage.to_filter()]

    def _frame_count(self, request: GenerationRequest) -> int:
        return max(1, round(request.duration_seconds * self.fps))

    def _encode_args(self, request: GenerationRequest, output_path: Path) -> List[str]:
        return [
            "-c:v", "libx264",
            "-preset", self.preset,
            "-crf", str(self.crf),
            "-pix_fmt", "yuv420p",
            "-r", str(self.fps),
            "-t", f"{request.duration_seconds:g}",
            "-movflags", "+faststart",
            "-an",
            str(output_path),
        ]

    async def _run(self, args: List[str]) -> None:
        cmd = [self.ffmpeg_path, "-y", "-hide_banner", "-loglevel", "error"] + args
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            raise EngineUnavailable(self.ffmpeg_path, str(e)) from e

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.error(f"ffmpeg killed after {self.timeout}s")
            raise CompositionFailed(process.returncode, f"timed out after {self.timeout}s")

        if process.returncode != 0:
            tail = (stderr or b"").decode(errors="replace")[-STDERR_TAIL_CHARS:].strip()
            logger.error(f"ffmpeg failed ({process.returncode}): {tail}")
            raise CompositionFailed(process.returncode, tail)

    async def probe_duration(self, path: str) -> float:
        """Container duration in seconds, via ffprobe."""
        try:
            process = await asyncio.create_subprocess_exec(
                self.ffprobe_path, "-v", "quiet", "-print_format", "json", "-show_format", path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise EngineUnavailable(self.ffprobe_path, str(e)) from e

        stdout, _ = await asyncio.wait_for(process.communicate(), timeout=30)
        if process.returncode != 0:
            raise CompositionFailed(process.returncode, "ffprobe failed")
        return float(json.loads(stdout or b"{}").get("format", {}).get("duration", 0.0))
