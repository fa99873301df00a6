"""
File Sink Tests
===============
"""

import io

import cv2
import numpy as np
import pytest

from pixelpipe.errors import InvalidBuffer, InvalidDimensions
from pixelpipe.models.frame import Frame
from pixelpipe.sink.file_sink import FileSink, frame_to_bgr, run_writer
from pixelpipe.stream.parser import LineStreamParser


class TestFileSink:
    """Tests for FileSink."""

    def test_writes_every_path(self, tmp_path, diagnostics, make_frame):
        """A 2x2 all-zero frame saved as PNG and BMP decodes as 2x2 black."""
        outputs = [tmp_path / "a.png", tmp_path / "nested" / "deeper" / "b.bmp"]
        sink = FileSink(outputs, diagnostics)

        assert sink.write(make_frame(2, 2)) == 2

        for path in outputs:
            image = cv2.imread(str(path), cv2.IMREAD_COLOR)
            assert image is not None
            assert image.shape == (2, 2, 3)
            assert not image.any()

    def test_channel_order_preserved(self, tmp_path, diagnostics, make_frame):
        path = tmp_path / "red.png"
        FileSink([path], diagnostics).write(make_frame(1, 1, rgb=(255, 0, 0)))
        bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
        assert bgr[0, 0].tolist() == [0, 0, 255]

    def test_failed_path_does_not_block_others(self, tmp_path, diagnostics, diag_stream, make_frame):
        good = tmp_path / "ok.png"
        bad = tmp_path / "frame.unknownext"
        sink = FileSink([bad, good], diagnostics)

        assert sink.write(make_frame(2, 2)) == 1
        assert good.exists()
        assert sink.write_errors == 1
        assert f"failed to save image to '{bad}'" in diag_stream.getvalue()

    def test_bare_filename_in_working_directory(self, tmp_path, diagnostics, make_frame, monkeypatch):
        monkeypatch.chdir(tmp_path)
        sink = FileSink(["plain.png"], diagnostics)
        assert sink.write(make_frame(2, 2)) == 1
        assert (tmp_path / "plain.png").exists()
        assert sink.write_errors == 0

    def test_invalid_frame_raises(self, tmp_path, diagnostics):
        sink = FileSink([tmp_path / "x.png"], diagnostics)
        with pytest.raises(InvalidBuffer):
            sink.write(Frame(width=2, height=2, data=b"\x00" * 11))
        with pytest.raises(InvalidDimensions):
            sink.write(Frame(data=b"\x00" * 12))
        assert not (tmp_path / "x.png").exists()

    def test_no_outputs_notice_once(self, diagnostics, diag_stream, make_frame):
        sink = FileSink([], diagnostics)
        sink.write(make_frame())
        sink.write(make_frame())
        assert diag_stream.getvalue().count("no output FILES provided") == 1

    def test_frame_to_bgr(self, make_frame):
        image = frame_to_bgr(make_frame(3, 2, rgb=(1, 2, 3)))
        assert image.shape == (2, 3, 3)
        assert image[1, 2].tolist() == [3, 2, 1]


class TestRunWriter:
    """Tests for the writer loop."""

    def test_stream_resilience(self, tmp_path, diagnostics, make_frame):
        """[valid, malformed, invalid-buffer, valid] persists exactly two frames."""
        out = tmp_path / "out.png"
        stream = io.BytesIO(b"".join([
            (make_frame(2, 2, rgb=(10, 10, 10)).to_json() + "\n").encode(),
            b"{not json}\n",
            (Frame(width=3, height=3, data=b"\x00").to_json() + "\n").encode(),
            (make_frame(1, 1, rgb=(200, 100, 50)).to_json() + "\n").encode(),
        ]))
        sink = FileSink([out], diagnostics)

        result = run_writer(sink, LineStreamParser(diagnostics), stream)

        assert result.frames_accepted == 2
        assert result.frames_rejected == 1
        assert sink.files_written == 2
        last = cv2.imread(str(out), cv2.IMREAD_COLOR)
        assert last.shape == (1, 1, 3)
        assert np.array_equal(last[0, 0], [50, 100, 200])

    def test_passthrough_alongside_persistence(self, tmp_path, diagnostics, make_frame):
        raw = (make_frame().to_json() + "\n").encode() + b"junk\n"
        tee = io.BytesIO()
        run_writer(
            FileSink([tmp_path / "f.png"], diagnostics),
            LineStreamParser(diagnostics, passthrough=tee),
            io.BytesIO(raw),
        )
        assert tee.getvalue() == raw
