"""
Concept Mapper
==============
Derives a deterministic visual concept (palette, blend mode, camera motion)
from a free-text prompt and a style tag.

Resolution order:
1. Ordered keyword sets tested against the lower-cased prompt; first match wins
2. Style table
3. Hard-coded default profile

Keyword matches always take precedence over the style.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple


class BlendMode(str, Enum):
    """ffmpeg blend modes used by the synthetic renderer."""
    NORMAL = "normal"
    SCREEN = "screen"
    MULTIPLY = "multiply"
    OVERLAY = "overlay"
    ADDITION = "addition"
    LIGHTEN = "lighten"
    SOFTLIGHT = "softlight"


class ConceptSource(str, Enum):
    """Which rule produced a profile."""
    KEYWORD = "keyword"
    STYLE = "style"
    DEFAULT = "default"


@dataclass(frozen=True)
class ConceptProfile:
    """Palette and motion parameters driving synthetic composition."""
    name: str
    source: ConceptSource
    primary_color: str
    secondary_color: str
    accent_color: str
    blend_mode: BlendMode
    zoom_speed: float
    max_zoom: float
    motion_amplitude: float
    motion_frequency: float

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        data["blend_mode"] = self.blend_mode.value
        return data


@dataclass(frozen=True)
class KeywordSet:
    """A named group of prompt keywords sharing one palette."""
    name: str
    keywords: Tuple[str, ...]
    palette: Tuple[str, str, str]
    blend_mode: BlendMode
    zoom_speed: float
    max_zoom: float
    motion_amplitude: float
    motion_frequency: float

    def matches(self, lowered_prompt: str) -> bool:
        return any(keyword in lowered_prompt for keyword in self.keywords)


DEFAULT_KEYWORD_SETS: Tuple[KeywordSet, ...] = (
    KeywordSet(
        name="marketing",
        keywords=("marketing", "business", "negócio", "negocio", "profissional", "corporat", "vendas", "sales"),
        palette=("#1e40af", "#3b82f6", "#f39c12"),
        blend_mode=BlendMode.SCREEN,
        zoom_speed=0.001,
        max_zoom=1.4,
        motion_amplitude=30.0,
        motion_frequency=0.5,
    ),
    KeywordSet(
        name="tech",
        keywords=("tech", "digital", "tecnologia", "software", "inteligência", "inteligencia", "startup"),
        palette=("#0f3460", "#533483", "#00d4ff"),
        blend_mode=BlendMode.MULTIPLY,
        zoom_speed=0.002,
        max_zoom=1.6,
        motion_amplitude=40.0,
        motion_frequency=0.8,
    ),
    KeywordSet(
        name="health",
        keywords=("saude", "saúde", "medico", "médico", "wellness", "health", "fitness"),
        palette=("#0d4f3c", "#27ae60", "#f1c40f"),
        blend_mode=BlendMode.SOFTLIGHT,
        zoom_speed=0.0008,
        max_zoom=1.3,
        motion_amplitude=20.0,
        motion_frequency=0.4,
    ),
    KeywordSet(
        name="education",
        keywords=("educacao", "educação", "curso", "aprender", "education", "course", "learn"),
        palette=("#2c3e50", "#8e44ad", "#e67e22"),
        blend_mode=BlendMode.OVERLAY,
        zoom_speed=0.0012,
        max_zoom=1.4,
        motion_amplitude=25.0,
        motion_frequency=0.6,
    ),
    KeywordSet(
        name="creative",
        keywords=("creative", "design", "criativ"),
        palette=("#ec4899", "#f472b6", "#fde68a"),
        blend_mode=BlendMode.OVERLAY,
        zoom_speed=0.0015,
        max_zoom=1.5,
        motion_amplitude=50.0,
        motion_frequency=1.2,
    ),
)

# style -> (palette, blend mode, zoom speed, max zoom, amplitude, frequency)
DEFAULT_STYLE_TABLE: Mapping[str, Tuple[Tuple[str, str, str], BlendMode, float, float, float, float]] = {
    "cinematic": (("#1a1a2e", "#16213e", "#ffd700"), BlendMode.MULTIPLY, 0.0008, 1.4, 20.0, 0.5),
    "anime": (("#ff6b6b", "#4ecdc4", "#ff9ff3"), BlendMode.SCREEN, 0.002, 1.5, 45.0, 1.0),
    "realistic": (("#2c3e50", "#34495e", "#3498db"), BlendMode.NORMAL, 0.0008, 1.2, 15.0, 0.4),
    "abstract": (("#667eea", "#764ba2", "#f093fb"), BlendMode.ADDITION, 0.0015, 1.5, 50.0, 1.2),
    "futuristic": (("#2d3436", "#00cec9", "#e17055"), BlendMode.LIGHTEN, 0.002, 1.6, 40.0, 0.9),
    "cartoon": (("#feca57", "#54a0ff", "#ff6b6b"), BlendMode.SCREEN, 0.0015, 1.4, 35.0, 0.8),
}

DEFAULT_PROFILE = ConceptProfile(
    name="default",
    source=ConceptSource.DEFAULT,
    primary_color="#374151",
    secondary_color="#6b7280",
    accent_color="#ffffff",
    blend_mode=BlendMode.NORMAL,
    zoom_speed=0.001,
    max_zoom=1.3,
    motion_amplitude=25.0,
    motion_frequency=0.6,
)


class ConceptMapper:
    """
    Pure prompt/style to ConceptProfile mapping.

    The tables are injectable so one local renderer can be configured for
    different palettes without duplicating the renderer.
    """

    def __init__(
        self,
        keyword_sets: Optional[Sequence[KeywordSet]] = None,
        style_table: Optional[Mapping[str, Tuple]] = None,
        default_profile: ConceptProfile = DEFAULT_PROFILE,
    ):
        self.keyword_sets = tuple(keyword_sets if keyword_sets is not None else DEFAULT_KEYWORD_SETS)
        self.style_table = dict(style_table if style_table is not None else DEFAULT_STYLE_TABLE)
        self.default_profile = default_profile

    def map(self, prompt: str, style: Optional[str] = None) -> ConceptProfile:
        lowered = (prompt or "").lower()
        for keyword_set in self.keyword_sets:
            if keyword_set.matches(lowered):
                primary, secondary, accent = keyword_set.palette
                return ConceptProfile(
                    name=keyword_set.name,
                    source=ConceptSource.KEYWORD,
                    primary_color=primary,
                    secondary_color=secondary,
                    accent_color=accent,
                    blend_mode=keyword_set.blend_mode,
                    zoom_speed=keyword_set.zoom_speed,
                    max_zoom=keyword_set.max_zoom,
                    motion_amplitude=keyword_set.motion_amplitude,
                    motion_frequency=keyword_set.motion_frequency,
                )

        style_key = (style or "").strip().lower()
        entry = self.style_table.get(style_key)
        if entry is None:
            return self.default_profile

        (primary, secondary, accent), blend_mode, zoom_speed, max_zoom, amplitude, frequency = entry
        return ConceptProfile(
            name=f"style:{style_key}",
            source=ConceptSource.STYLE,
            primary_color=primary,
            secondary_color=secondary,
            accent_color=accent,
            blend_mode=blend_mode,
            zoom_speed=zoom_speed,
            max_zoom=max_zoom,
            motion_amplitude=amplitude,
            motion_frequency=frequency,
        )


_default_mapper = ConceptMapper()


def map_concept(prompt: str, style: Optional[str] = None) -> ConceptProfile:
    """Map with the default tables."""
    return _default_mapper.map(prompt, style)
