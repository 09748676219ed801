"""
Filter Graph Builder
====================
Small typed model of an ffmpeg ``-filter_complex`` program.

Sources, stages and chains keep their numeric parameters as validated
fields and are serialized to the textual program only at the end, so
user text and expressions are quoted in exactly one place.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .concept_mapper import BlendMode

# Characters that must not reach a drawtext argument
_UNSAFE_TEXT = re.compile(r"['\"`\\:%;,\[\]{}=]")
_WHITESPACE = re.compile(r"\s+")
# Characters that force single-quoting of an option value
_NEEDS_QUOTES = re.compile(r"[,:;\[\]'=()\s*/+\-<>]")

MAX_OVERLAY_CHARS = 60
FADE_SECONDS = 1.5


def sanitize_overlay_text(text: str, limit: int = MAX_OVERLAY_CHARS) -> str:
    """
    Make user text safe for a drawtext argument.

    Strips quotes, backslashes, colons and the other filtergraph
    metacharacters, collapses whitespace and truncates.
    """
    cleaned = _UNSAFE_TEXT.sub(" ", text or "")
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned[:limit].rstrip()


def ffmpeg_color(color: str) -> str:
    """Convert ``#rrggbb`` to ffmpeg's ``0xrrggbb`` form."""
    value = color.strip()
    if value.startswith("#"):
        value = "0x" + value[1:]
    if not re.fullmatch(r"0x[0-9a-fA-F]{6}([0-9a-fA-F]{2})?|[a-zA-Z]+", value):
        raise ValueError(f"Invalid color: {color}")
    return value


def format_number(value: float) -> str:
    """Render numbers without float noise (0.0015 not 0.0015000000000000000)."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def format_value(value: Any) -> str:
    if isinstance(value, (int, float)):
        return format_number(value)
    text = str(value)
    if "'" in text:
        raise ValueError(f"Option value may not contain quotes: {text!r}")
    if _NEEDS_QUOTES.search(text):
        return f"'{text}'"
    return text


@dataclass
class Filter:
    """One filter invocation, e.g. ``zoompan=z=...:d=1``."""
    name: str
    options: Dict[str, Any] = field(default_factory=dict)

    def render(self) -> str:
        if not self.options:
            return self.name
        args = ":".join(f"{key}={format_value(value)}" for key, value in self.options.items())
        return f"{self.name}={args}"


@dataclass
class FilterChain:
    """Linear chain of filters between labelled pads."""
    inputs: List[str]
    filters: List[Filter]
    outputs: List[str] = field(default_factory=list)

    def render(self) -> str:
        head = "".join(f"[{label}]" for label in self.inputs)
        body = ",".join(f.render() for f in self.filters)
        tail = "".join(f"[{label}]" for label in self.outputs)
        return f"{head}{body}{tail}"


class InputSource(ABC):
    """An ffmpeg input."""

    @abstractmethod
    def to_args(self) -> List[str]:
        pass


@dataclass
class ColorSource(InputSource):
    """Flat color lavfi source sized to the target resolution."""
    color: str
    width: int
    height: int
    duration: float
    fps: int
    alpha: Optional[float] = None
    pixel_format: Optional[str] = None

    def __post_init__(self):
        self.color = ffmpeg_color(self.color)
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Source size must be positive")
        if self.duration <= 0 or self.fps <= 0:
            raise ValueError("Source duration and fps must be positive")
        if self.alpha is not None and not 0.0 <= self.alpha <= 1.0:
            raise ValueError("alpha must be within [0, 1]")

    def to_args(self) -> List[str]:
        color = self.color
        if self.alpha is not None:
            color = f"{color}@{format_number(self.alpha)}"
        spec = (
            f"color=c={color}:s={self.width}x{self.height}"
            f":d={format_number(self.duration)}:r={self.fps}"
        )
        if self.pixel_format:
            spec = f"{spec},format={self.pixel_format}"
        return ["-f", "lavfi", "-i", spec]


@dataclass
class ImageSource(InputSource):
    """A single still image read from disk."""
    path: str

    def to_args(self) -> List[str]:
        return ["-i", self.path]


class FilterGraph:
    """Inputs plus labelled chains, serialized to ``-filter_complex``."""

    def __init__(self):
        self.inputs: List[InputSource] = []
        self.chains: List[FilterChain] = []
        self._labels: Dict[str, int] = {}

    def add_input(self, source: InputSource) -> str:
        """Register an input and return its video pad label."""
        self.inputs.append(source)
        return f"{len(self.inputs) - 1}:v"

    def new_label(self, prefix: str) -> str:
        count = self._labels.get(prefix, 0)
        self._labels[prefix] = count + 1
        return prefix if count == 0 else f"{prefix}{count}"

    def add_chain(
        self,
        inputs: Sequence[str],
        filters: Sequence[Filter],
        prefix: str = "v",
    ) -> str:
        """Append a chain and return its single output label."""
        if not filters:
            raise ValueError("A chain needs at least one filter")
        label = self.new_label(prefix)
        self.chains.append(FilterChain(list(inputs), list(filters), [label]))
        return label

    def render(self) -> str:
        return ";".join(chain.render() for chain in self.chains)

    def to_args(self, output_label: str) -> List[str]:
        args: List[str] = []
        for source in self.inputs:
            args.extend(source.to_args())
        args.extend(["-filter_complex", self.render(), "-map", f"[{output_label}]"])
        return args


# =============================================================================
# STAGES
# =============================================================================

@dataclass
class ScalePadStage:
    """Fit an image inside the target frame, letterboxing the rest."""
    width: int
    height: int
    pad_color: str = "black"

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Target size must be positive")

    def filters(self) -> List[Filter]:
        return [
            Filter("scale", {
                "w": self.width,
                "h": self.height,
                "force_original_aspect_ratio": "decrease",
            }),
            Filter("pad", {
                "w": self.width,
                "h": self.height,
                "x": "(ow-iw)/2",
                "y": "(oh-ih)/2",
                "color": self.pad_color,
            }),
            Filter("setsar", {"sar": 1}),
        ]


@dataclass
class ZoomPanStage:
    """
    Monotonic zoom with a sinusoidal camera drift.

    ``frames_per_input`` is the number of output frames per input frame:
    the whole clip length for a still image, 1 for an already-moving source.
    """
    width: int
    height: int
    fps: int
    zoom_speed: float
    max_zoom: float
    motion_amplitude: float = 0.0
    motion_frequency: float = 0.0
    frames_per_input: int = 1

    def __post_init__(self):
        if self.zoom_speed <= 0:
            raise ValueError("zoom_speed must be positive")
        if self.max_zoom < 1.0:
            raise ValueError("max_zoom must be >= 1.0")
        if self.motion_amplitude < 0 or self.motion_frequency < 0:
            raise ValueError("motion parameters must be non-negative")
        if self.frames_per_input < 1 or self.fps <= 0:
            raise ValueError("frames_per_input and fps must be positive")

    def zoom_expression(self) -> str:
        speed = format_number(self.zoom_speed)
        limit = format_number(self.max_zoom)
        if self.frames_per_input == 1:
            return f"min(max(zoom,pzoom)+{speed},{limit})"
        return f"min(zoom+{speed},{limit})"

    def _drift(self, trig: str, divisor: float = 1.0) -> str:
        if not self.motion_amplitude or not self.motion_frequency:
            return ""
        amplitude = format_number(self.motion_amplitude)
        frequency = format_number(self.motion_frequency / divisor)
        return f"+{amplitude}*{trig}({frequency}*on/{self.fps})"

    def to_filter(self) -> Filter:
        return Filter("zoompan", {
            "z": self.zoom_expression(),
            "d": self.frames_per_input,
            "x": f"iw/2-(iw/zoom/2){self._drift('sin')}",
            "y": f"ih/2-(ih/zoom/2){self._drift('cos', 2.0)}",
            "s": f"{self.width}x{self.height}",
            "fps": self.fps,
        })


@dataclass
class NoiseStage:
    """Temporal grain used as a texture layer."""
    strength: int = 20

    def __post_init__(self):
        if not 0 <= self.strength <= 100:
            raise ValueError("noise strength must be within [0, 100]")

    def to_filter(self) -> Filter:
        return Filter("noise", {"alls": self.strength, "allf": "t+u"})


@dataclass
class BlendStage:
    """Blend two layers with a fixed mode and opacity."""
    mode: BlendMode
    opacity: float = 0.6

    def __post_init__(self):
        self.mode = BlendMode(self.mode)
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError("opacity must be within [0, 1]")

    def apply(self, graph: FilterGraph, top: str, bottom: str) -> str:
        return graph.add_chain(
            [top, bottom],
            [Filter("blend", {"all_mode": self.mode.value, "all_opacity": self.opacity})],
            prefix="blended",
        )


@dataclass
class OpacityWaveStage:
    """Mix a layer in with an opacity oscillating around ``base``."""
    base: float = 0.15
    amplitude: float = 0.1
    frequency: float = 0.5

    def __post_init__(self):
        if self.amplitude < 0 or self.frequency < 0:
            raise ValueError("wave parameters must be non-negative")
        if self.base - self.amplitude < 0 or self.base + self.amplitude > 1:
            raise ValueError("opacity wave must stay within [0, 1]")

    def weight_expression(self) -> str:
        return (
            f"{format_number(self.base)}+{format_number(self.amplitude)}"
            f"*sin(2*PI*{format_number(self.frequency)}*T)"
        )

    def apply(self, graph: FilterGraph, base: str, layer: str) -> str:
        weight = self.weight_expression()
        return graph.add_chain(
            [base, layer],
            [Filter("blend", {"all_expr": f"A*(1-({weight}))+B*({weight})"})],
            prefix="textured",
        )


@dataclass
class ParticleStage:
    """Small translucent squares drifting along sin/cos paths."""
    width: int
    height: int
    duration: float
    fps: int
    count: int = 5
    size: int = 6
    color: str = "white"
    opacity: float = 0.6

    def __post_init__(self):
        if not 1 <= self.count <= 20:
            raise ValueError("particle count must be within [1, 20]")
        if self.size <= 0 or self.duration <= 0:
            raise ValueError("particle size and duration must be positive")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError("opacity must be within [0, 1]")

    def path(self, index: int) -> Dict[str, str]:
        x = (
            f"W*{format_number(0.1 + index * 0.2)}"
            f"+sin(t*{format_number(1 + index * 0.3)})*{50 + index * 20}"
        )
        y = (
            f"H*{format_number(0.2 + index * 0.15)}"
            f"+cos(t*{format_number(1.2 + index * 0.4)})*{30 + index * 15}"
        )
        start = format_number(round(index * 0.3, 3))
        return {"x": x, "y": y, "enable": f"between(t,{start},{format_number(self.duration)})"}

    def apply(self, graph: FilterGraph, scene: str) -> str:
        sprite = graph.add_input(ColorSource(
            color=self.color,
            width=self.size,
            height=self.size,
            duration=self.duration,
            fps=self.fps,
            alpha=self.opacity,
            pixel_format="rgba",
        ))
        labels = [f"p{i}" for i in range(self.count)]
        if self.count == 1:
            graph.chains.append(FilterChain([sprite], [Filter("null")], labels))
        else:
            graph.chains.append(FilterChain([sprite], [Filter("split", {"outputs": self.count})], labels))
        current = scene
        for index, label in enumerate(labels):
            options: Dict[str, Any] = dict(self.path(index))
            options["eval"] = "frame"
            current = graph.add_chain([current, label], [Filter("overlay", options)], prefix="particles")
        return current


@dataclass
class TextOverlayStage:
    """Centered caption with a fade-in/fade-out alpha envelope."""
    text: str
    duration: float
    font_size: int
    font_color: str = "white"
    font_file: Optional[str] = None
    fade_seconds: float = FADE_SECONDS
    vertical_position: float = 0.85

    def __post_init__(self):
        self.text = sanitize_overlay_text(self.text)
        self.font_color = ffmpeg_color(self.font_color)
        if self.duration <= 0 or self.font_size <= 0:
            raise ValueError("duration and font_size must be positive")
        if self.fade_seconds < 0:
            raise ValueError("fade_seconds must be non-negative")
        if not 0.0 <= self.vertical_position <= 1.0:
            raise ValueError("vertical_position must be within [0, 1]")
        if self.font_file and "'" in self.font_file:
            raise ValueError("font_file may not contain quotes")

    @property
    def is_empty(self) -> bool:
        return not self.text

    def alpha_expression(self) -> str:
        fade = min(self.fade_seconds, self.duration / 2)
        if fade <= 0:
            return "1"
        f = format_number(fade)
        d = format_number(self.duration)
        return f"if(lt(t,{f}),t/{f},if(gt(t,{d}-{f}),({d}-t)/{f},1))"

    def to_filter(self) -> Filter:
        options: Dict[str, Any] = {}
        if self.font_file:
            options["fontfile"] = self.font_file
        options.update({
            "text": self.text,
            "fontsize": self.font_size,
            "fontcolor": self.font_color,
            "x": "(w-text_w)/2",
            "y": f"h*{format_number(self.vertical_position)}-text_h/2",
            "borderw": 3,
            "bordercolor": "black@0.6",
            "alpha": self.alpha_expression(),
        })
        return Filter("drawtext", options)


def output_format_filter(pixel_format: str = "yuv420p") -> Filter:
    return Filter("format", {"pix_fmts": pixel_format})
