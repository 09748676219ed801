"""
Shared fixtures for the video acquisition tests.
"""
import itertools
import shutil
import subprocess

import pytest

from services.media_store import MediaStore
from services.video_acquisition.models import GenerationRequest
from services.video_compositor.compositor import parse_filter_list
from services.video_compositor.local_renderer import LocalProceduralRenderer

FAKE_MP4 = b"\x00\x00\x00\x18ftypisom" + b"\x01" * 4096

requires_ffmpeg = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg/ffprobe not installed",
)


def ffmpeg_has_filter(name):
    """Whether the installed ffmpeg lists ``name`` under -filters."""
    if shutil.which("ffmpeg") is None:
        return False
    result = subprocess.run(["ffmpeg", "-hide_banner", "-filters"], capture_output=True, text=True, timeout=30)
    return name in parse_filter_list(result.stdout)


requires_drawtext = pytest.mark.skipif(
    not ffmpeg_has_filter("drawtext"),
    reason="ffmpeg built without drawtext (libfreetype)",
)


class FakeCompositor:
    """Records compose calls and returns canned bytes (or raises)."""

    def __init__(self, output=FAKE_MP4, error=None):
        self.output = output
        self.error = error
        self.calls = []

    async def compose(self, source_image, concept, request):
        self.calls.append((source_image, concept, request))
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda tag: f"{tag}_test_{next(counter):03d}"


@pytest.fixture
def store(tmp_path, id_factory):
    return MediaStore(tmp_path / "ai-generated-videos", id_factory=id_factory)


@pytest.fixture
def fake_compositor():
    return FakeCompositor()


@pytest.fixture
def local_renderer(fake_compositor):
    return LocalProceduralRenderer(compositor=fake_compositor)


@pytest.fixture
def generation_request():
    return GenerationRequest(prompt="A calm lake at sunrise", style="cinematic", duration=4)



def stored_files(store):
    """Published (non-temp) files in a store root."""
    return sorted(p.name for p in store.root_dir.iterdir() if not p.name.startswith("."))
