"""
Tests for the ffmpeg filter graph builder.
"""
import pytest

from services.video_compositor.concept_mapper import BlendMode
from services.video_compositor.filter_graph import (
    BlendStage,
    ColorSource,
    Filter,
    FilterGraph,
    ImageSource,
    NoiseStage,
    OpacityWaveStage,
    ParticleStage,
    TextOverlayStage,
    ZoomPanStage,
    ffmpeg_color,
    format_number,
    output_format_filter,
    sanitize_overlay_text,
)


class TestSanitizeOverlayText:
    def test_strips_filter_metacharacters(self):
        assert sanitize_overlay_text("It's a 'test': 50% off; [now]") == "It s a test 50 off now"

    def test_strips_backslashes_and_equals(self):
        assert sanitize_overlay_text("a\\b=c{d}") == "a b c d"

    def test_collapses_whitespace(self):
        assert sanitize_overlay_text("  hello \n\t world  ") == "hello world"

    def test_truncates(self):
        assert len(sanitize_overlay_text("a" * 100)) == 60

    def test_none_is_empty(self):
        assert sanitize_overlay_text(None) == ""


class TestFormatting:
    def test_color_conversion(self):
        assert ffmpeg_color("#1e40af") == "0x1e40af"
        assert ffmpeg_color("white") == "white"

    def test_invalid_color(self):
        with pytest.raises(ValueError):
            ffmpeg_color("#12")

    def test_numbers(self):
        assert format_number(0.0015) == "0.0015"
        assert format_number(5.0) == "5"
        assert format_number(25) == "25"

    def test_plain_filter(self):
        assert Filter("scale", {"w": 1280, "h": 720}).render() == "scale=w=1280:h=720"

    def test_expressions_are_quoted(self):
        assert Filter("pad", {"x": "(ow-iw)/2"}).render() == "pad=x='(ow-iw)/2'"

    def test_quotes_in_values_rejected(self):
        with pytest.raises(ValueError):
            Filter("drawtext", {"text": "it's"}).render()

    def test_filter_without_options(self):
        assert Filter("null").render() == "null"


class TestSources:
    def test_color_source_args(self):
        source = ColorSource("#ff0000", 1280, 720, 4, 25)
        assert source.to_args() == ["-f", "lavfi", "-i", "color=c=0xff0000:s=1280x720:d=4:r=25"]

    def test_color_source_with_alpha(self):
        source = ColorSource("white", 6, 6, 4.0, 25, alpha=0.6, pixel_format="rgba")
        assert source.to_args()[-1] == "color=c=white@0.6:s=6x6:d=4:r=25,format=rgba"

    def test_color_source_validation(self):
        with pytest.raises(ValueError):
            ColorSource("#ff0000", 0, 720, 4, 25)
        with pytest.raises(ValueError):
            ColorSource("#ff0000", 1280, 720, 0, 25)

    def test_image_source_args(self):
        assert ImageSource("/tmp/in.png").to_args() == ["-i", "/tmp/in.png"]


class TestFilterGraph:
    def test_input_labels(self):
        graph = FilterGraph()
        assert graph.add_input(ImageSource("a.png")) == "0:v"
        assert graph.add_input(ImageSource("b.png")) == "1:v"

    def test_labels_are_unique(self):
        graph = FilterGraph()
        assert graph.new_label("v") == "v"
        assert graph.new_label("v") == "v1"
        assert graph.new_label("v") == "v2"

    def test_render_and_args(self):
        graph = FilterGraph()
        source = graph.add_input(ImageSource("in.png"))
        label = graph.add_chain([source], [Filter("setsar", {"sar": 1}), output_format_filter()], prefix="final")

        assert graph.render() == "[0:v]setsar=sar=1,format=pix_fmts=yuv420p[final]"
        assert graph.to_args(label) == [
            "-i", "in.png",
            "-filter_complex", "[0:v]setsar=sar=1,format=pix_fmts=yuv420p[final]",
            "-map", "[final]",
        ]

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError):
            FilterGraph().add_chain(["0:v"], [])


class TestZoomPanStage:
    def test_moving_source_zoom(self):
        stage = ZoomPanStage(1280, 720, 25, zoom_speed=0.001, max_zoom=1.4)
        assert stage.zoom_expression() == "min(max(zoom,pzoom)+0.001,1.4)"
        assert stage.to_filter().options["d"] == 1

    def test_still_image_zoom(self):
        stage = ZoomPanStage(1280, 720, 25, zoom_speed=0.001, max_zoom=1.4, frames_per_input=100)
        assert stage.zoom_expression() == "min(zoom+0.001,1.4)"
        assert stage.to_filter().options["d"] == 100

    def test_drift(self):
        options = ZoomPanStage(
            1280, 720, 25,
            zoom_speed=0.001,
            max_zoom=1.4,
            motion_amplitude=30,
            motion_frequency=0.5,
        ).to_filter().options
        assert options["x"] == "iw/2-(iw/zoom/2)+30*sin(0.5*on/25)"
        assert options["y"] == "ih/2-(ih/zoom/2)+30*cos(0.25*on/25)"
        assert options["s"] == "1280x720"

    def test_no_drift_without_motion(self):
        options = ZoomPanStage(1280, 720, 25, zoom_speed=0.001, max_zoom=1.4).to_filter().options
        assert options["x"] == "iw/2-(iw/zoom/2)"

    def test_validation(self):
        with pytest.raises(ValueError):
            ZoomPanStage(1280, 720, 25, zoom_speed=0.001, max_zoom=0.9)
        with pytest.raises(ValueError):
            ZoomPanStage(1280, 720, 25, zoom_speed=0, max_zoom=1.4)


class TestLayerStages:
    def test_noise(self):
        assert NoiseStage(20).to_filter().render() == "noise=alls=20:allf='t+u'"

    def test_noise_validation(self):
        with pytest.raises(ValueError):
            NoiseStage(150)

    def test_blend(self):
        graph = FilterGraph()
        label = BlendStage(BlendMode.SCREEN, opacity=0.6).apply(graph, "0:v", "1:v")
        assert label == "blended"
        assert graph.render() == "[0:v][1:v]blend=all_mode=screen:all_opacity=0.6[blended]"

    def test_blend_accepts_mode_string(self):
        assert BlendStage("multiply").mode == BlendMode.MULTIPLY

    def test_opacity_wave(self):
        stage = OpacityWaveStage(base=0.15, amplitude=0.1, frequency=0.5)
        assert stage.weight_expression() == "0.15+0.1*sin(2*PI*0.5*T)"

        graph = FilterGraph()
        assert stage.apply(graph, "blended", "grain") == "textured"
        assert graph.render() == (
            "[blended][grain]blend=all_expr='A*(1-(0.15+0.1*sin(2*PI*0.5*T)))"
            "+B*(0.15+0.1*sin(2*PI*0.5*T))'[textured]"
        )

    def test_opacity_wave_stays_in_range(self):
        with pytest.raises(ValueError):
            OpacityWaveStage(base=0.05, amplitude=0.1)


class TestParticleStage:
    def test_split_and_overlays(self):
        graph = FilterGraph()
        scene = graph.add_input(ImageSource("scene.png"))
        label = ParticleStage(1280, 720, duration=4, fps=25, count=3).apply(graph, scene)

        assert label == "particles2"
        assert len(graph.inputs) == 2
        rendered = graph.render()
        assert "[1:v]split=outputs=3[p0][p1][p2]" in rendered
        assert "[0:v][p0]overlay=" in rendered
        assert "[particles][p1]overlay=" in rendered
        assert "[particles1][p2]overlay=" in rendered
        assert "eval=frame" in rendered

    def test_single_particle_uses_null(self):
        graph = FilterGraph()
        ParticleStage(1280, 720, duration=4, fps=25, count=1).apply(graph, "0:v")
        assert "null[p0]" in graph.render()

    def test_particle_paths_are_bounded_in_time(self):
        path = ParticleStage(1280, 720, duration=4, fps=25).path(2)
        assert path["enable"] == "between(t,0.6,4)"
        assert path["x"].startswith("W*0.5+sin(t*")

    def test_count_validation(self):
        with pytest.raises(ValueError):
            ParticleStage(1280, 720, duration=4, fps=25, count=0)


class TestTextOverlayStage:
    def test_alpha_envelope(self):
        stage = TextOverlayStage(text="hello", duration=4, font_size=40)
        assert stage.alpha_expression() == "if(lt(t,1.5),t/1.5,if(gt(t,4-1.5),(4-t)/1.5,1))"

    def test_fade_shrinks_for_short_clips(self):
        stage = TextOverlayStage(text="hello", duration=2, font_size=40)
        assert stage.alpha_expression() == "if(lt(t,1),t/1,if(gt(t,2-1),(2-t)/1,1))"

    def test_text_is_sanitized_and_quoted(self):
        rendered = TextOverlayStage(text="Hello: 'world'", duration=4, font_size=40).to_filter().render()
        assert rendered.startswith("drawtext=text='Hello world':fontsize=40:fontcolor=white")

    def test_font_file_first(self):
        stage = TextOverlayStage(text="hi", duration=4, font_size=40, font_file="/fonts/Inter.ttf")
        assert stage.to_filter().render().startswith("drawtext=fontfile='/fonts/Inter.ttf':text=hi")

    def test_empty_after_sanitizing(self):
        assert TextOverlayStage(text=":::", duration=4, font_size=40).is_empty

    def test_color_is_converted(self):
        stage = TextOverlayStage(text="hi", duration=4, font_size=40, font_color="#ffd700")
        assert stage.to_filter().options["fontcolor"] == "0xffd700"
