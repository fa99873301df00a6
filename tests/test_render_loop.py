"""
Render Loop Tests
=================

The render loop is driven against a fake window so no display is needed.
"""

import io
import time

import numpy as np
import pytest

from pixelpipe.config import Settings
from pixelpipe.errors import InternalFailure
from pixelpipe.models.frame import Frame
from pixelpipe.stream.coalescer import FrameCoalescer
from pixelpipe.viewer.app import run_viewer
from pixelpipe.viewer.render_loop import RenderLoop, RenderState, unpack_rgb
from pixelpipe.viewer.window import packed_to_bgr


class FakeWindow:
    """Records presented framebuffers; closes after a number of presents."""

    def __init__(self, close_after=None):
        self.presented = []
        self.titles = []
        self.close_after = close_after
        self.cancel = False
        self.closed = False

    def is_open(self):
        if self.close_after is None:
            return True
        return len(self.presented) < self.close_after

    def cancel_requested(self):
        return self.cancel

    def set_title(self, title):
        self.titles.append(title)

    def present(self, framebuffer):
        self.presented.append(framebuffer.copy())

    def close(self):
        self.closed = True


class ExplodingWindow(FakeWindow):
    def present(self, framebuffer):
        raise InternalFailure("surface lost")


@pytest.fixture
def window():
    return FakeWindow()


@pytest.fixture
def coalescer():
    return FrameCoalescer()


@pytest.fixture
def loop(window, coalescer, diagnostics):
    return RenderLoop(window, coalescer, diagnostics, sleep=lambda s: None)


class TestUnpack:
    def test_packs_red_high_blue_low(self):
        words = unpack_rgb(bytes([0x12, 0x34, 0x56, 0xFF, 0x00, 0x01]), 2, 1)
        assert words.dtype == np.uint32
        assert words.tolist() == [[0x123456, 0xFF0001]]

    def test_bgr_conversion_inverts_packing(self):
        words = np.array([[0x123456]], dtype=np.uint32)
        assert packed_to_bgr(words).tolist() == [[[0x56, 0x34, 0x12]]]


class TestRenderLoop:
    """Tests for the render loop state machine."""

    def test_initial_placeholder(self, loop, window):
        assert loop.state == RenderState.NO_FRAME_YET
        assert loop.framebuffer.shape == (240, 320)
        assert loop.tick() is True
        assert len(window.presented) == 1
        assert not window.presented[0].any()

    def test_displays_valid_frame(self, loop, window, coalescer, make_frame):
        coalescer.push(make_frame(4, 3, rgb=(255, 0, 0), frame_id="urn:red"))
        loop.tick()

        assert loop.state == RenderState.DISPLAYING
        assert (loop.width, loop.height) == (4, 3)
        assert window.presented[-1].shape == (3, 4)
        assert (window.presented[-1] == 0xFF0000).all()
        assert window.titles == ["urn:red (4x3)"]

    def test_title_falls_back_to_app_name(self, loop, window, coalescer, make_frame):
        coalescer.push(make_frame(2, 2))
        loop.tick()
        assert window.titles == ["PixelPipe (2x2)"]

    def test_invalid_frame_keeps_previous(self, loop, window, coalescer, make_frame, diag_stream):
        coalescer.push(make_frame(2, 2, rgb=(0, 255, 0)))
        loop.tick()
        coalescer.push(Frame(width=5, height=5, data=b"\x00" * 10))
        loop.tick()

        assert loop.frames_rejected == 1
        assert (loop.width, loop.height) == (2, 2)
        assert (window.presented[-1] == 0x00FF00).all()
        assert "WARN: failed to display image" in diag_stream.getvalue()

    def test_missing_dimensions_is_non_fatal(self, loop, coalescer):
        coalescer.push(Frame(data=b"\x00" * 12))
        assert loop.tick() is True
        assert loop.state == RenderState.NO_FRAME_YET
        assert loop.frames_rejected == 1

    def test_idle_tick_redraws_same_content(self, loop, window, coalescer, make_frame):
        coalescer.push(make_frame(2, 2, rgb=(1, 2, 3)))
        loop.tick()
        loop.tick()

        assert len(window.presented) == 2
        assert np.array_equal(window.presented[0], window.presented[1])
        assert len(window.titles) == 1

    def test_same_size_reuses_framebuffer(self, loop, coalescer, make_frame):
        coalescer.push(make_frame(2, 2, rgb=(1, 1, 1)))
        loop.tick()
        fb = loop.framebuffer
        coalescer.push(make_frame(2, 2, rgb=(9, 9, 9)))
        loop.tick()
        assert loop.framebuffer is fb
        assert (fb == 0x090909).all()

    def test_only_latest_frame_rendered(self, loop, window, coalescer, make_frame):
        for i in range(3):
            coalescer.push(make_frame(1, 1, rgb=(i, i, i), frame_id=f"urn:{i}"))
        loop.tick()
        assert window.titles == ["urn:2 (1x1)"]
        assert loop.frames_displayed == 1

    def test_cancel_stops_loop(self, loop, window):
        window.cancel = True
        assert loop.tick() is False

    def test_run_stops_when_window_closes(self, coalescer, diagnostics):
        window = FakeWindow(close_after=3)
        loop = RenderLoop(window, coalescer, diagnostics, sleep=lambda s: None)
        loop.run()
        assert len(window.presented) == 3
        assert coalescer.closed

    def test_run_respects_cadence(self, window, coalescer, diagnostics):
        sleeps = []
        loop = RenderLoop(
            window, coalescer, diagnostics,
            target_fps=50, idle_sleep=0.001,
            clock=lambda: 0.0, sleep=sleeps.append,
        )
        loop.run(max_ticks=2)
        assert sleeps == [pytest.approx(0.02), pytest.approx(0.02)]

    def test_backend_failure_is_fatal(self, coalescer, diagnostics):
        loop = RenderLoop(ExplodingWindow(), coalescer, diagnostics, sleep=lambda s: None)
        with pytest.raises(InternalFailure):
            loop.run()
        assert coalescer.closed


class TestRunViewer:
    """End-to-end viewer wiring with a fake window."""

    def test_stream_to_window(self, diagnostics, make_frame):
        lines = (
            (make_frame(2, 2, rgb=(10, 20, 30), frame_id="urn:a").to_json() + "\n").encode()
            + b"garbage\n"
        )
        stdout = io.BytesIO()

        class WaitForFrame(FakeWindow):
            def is_open(self):
                done = self.titles and stdout.getvalue() == lines
                return not done and time.monotonic() < deadline

        deadline = time.monotonic() + 5.0
        window = WaitForFrame()
        loop = run_viewer(
            Settings(), diagnostics, io.BytesIO(lines), stdout,
            passthrough=True, window=window,
        )

        assert window.titles == ["urn:a (2x2)"]
        assert stdout.getvalue() == lines
        assert loop.frames_displayed == 1
        assert window.closed
