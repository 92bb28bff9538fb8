"""Tests for the per-frame controller loop and its collaborators."""

import pytest

from byteraster.controller import CancelToken, Controller, FixedOffset, ImageSink, OffsetProvider, RenderSink
from byteraster.errors import SourceReadFailed
from byteraster.raster import BACKGROUND, RasterMapper
from byteraster.source import FileSource

DATA = bytes(range(256)) * 4


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(DATA)
    src = FileSource.open(path, 16)
    yield src
    src.close()


class ScriptedOffsets(OffsetProvider):
    """Returns queued offsets, then holds the current one."""

    def __init__(self, offsets):
        self.offsets = list(offsets)
        self.seen = []

    def desired_offset(self, current):
        self.seen.append(current)
        return self.offsets.pop(0) if self.offsets else current


class RecordingSink(RenderSink):
    """Records presented frames and cancels after a frame budget."""

    def __init__(self, sizes, token=None, budget=None):
        self.sizes = list(sizes)
        self.token = token
        self.budget = budget
        self.frames = []

    def viewport(self):
        return self.sizes[0] if len(self.sizes) == 1 else self.sizes.pop(0)

    def present(self, grid, width, height):
        self.frames.append((bytes(grid), width, height))
        if self.budget is not None and len(self.frames) >= self.budget:
            self.token.cancel()


class CountingClose:
    """Wraps a source and counts close() calls."""

    def __init__(self, inner):
        self.inner = inner
        self.closes = 0

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def close(self):
        self.closes += 1
        self.inner.close()


class TestStep:
    """A single frame."""

    def test_frame_draws_current_window(self, source) -> None:
        """The presented grid starts with the window's bytes."""
        sink = RecordingSink([(4, 4)])
        ctl = Controller(source, RasterMapper(4, 4), FixedOffset(32), sink)
        frame = ctl.step()
        assert frame.offset == 32
        assert frame.valid_length == 16
        grid, w, h = sink.frames[0]
        assert (w, h) == (4, 4)
        assert grid[0:4] == bytes([32, 32, 32, 255])
        assert grid[15 * 4:16 * 4] == bytes([47, 47, 47, 255])

    def test_no_scroll_keeps_offset(self, source) -> None:
        """Providers get the resolved offset of the previous frame."""
        offsets = ScriptedOffsets([100])
        ctl = Controller(source, RasterMapper(4, 4), offsets, RecordingSink([(4, 4)]))
        ctl.step()
        ctl.step()
        assert offsets.seen == [0, 100]
        assert source.window_offset == 100

    def test_out_of_range_offset_clamped(self, source) -> None:
        """Scrolling past the end lands on the last full window."""
        ctl = Controller(source, RasterMapper(4, 4), FixedOffset(10**6), RecordingSink([(4, 4)]))
        frame = ctl.step()
        assert frame.offset == len(DATA) - 16
        assert frame.error is None

    def test_viewport_change_resizes(self, source) -> None:
        """A new sink size reaches the mapper before drawing."""
        mapper = RasterMapper(4, 4)
        sink = RecordingSink([(4, 4), (8, 3), (8, 3)])
        ctl = Controller(source, mapper, FixedOffset(0), sink)
        ctl.step()
        frame = ctl.step()
        assert (frame.width, frame.height) == (8, 3)
        assert mapper.size == (8, 3)
        grid, w, h = sink.frames[1]
        assert len(grid) == 8 * 3 * 4
        # 16 bytes drawn, the remaining 8 cells padded
        assert grid[16 * 4:17 * 4] == bytes(BACKGROUND)

    def test_invalid_viewport_keeps_previous_size(self, source) -> None:
        """A zero-sized window is ignored for that frame."""
        mapper = RasterMapper(4, 4)
        sink = RecordingSink([(0, 0), (0, 0)])
        frame = Controller(source, mapper, FixedOffset(0), sink).step()
        assert (frame.width, frame.height) == (4, 4)

    def test_read_failure_is_reported_not_raised(self, source) -> None:
        """A failing tick keeps the old buffer and still presents a frame."""
        errors = []
        sink = RecordingSink([(4, 4)])
        ctl = Controller(source, RasterMapper(4, 4), FixedOffset(64), sink, on_error=errors.append)

        def broken_tick(offset):
            raise SourceReadFailed("disk went away")

        source.tick = broken_tick
        frame = ctl.step()
        assert isinstance(frame.error, SourceReadFailed)
        assert errors == [frame.error]
        assert frame.offset == 0
        assert sink.frames[0][0][0:4] == bytes([0, 0, 0, 255])

    def test_default_error_reporting(self, source, capsys) -> None:
        """Without a callback, read failures are printed as warnings."""
        ctl = Controller(source, RasterMapper(2, 2), FixedOffset(64), RecordingSink([(2, 2)]))

        def broken_tick(offset):
            raise SourceReadFailed("disk went away")

        source.tick = broken_tick
        ctl.step()
        assert "[WARN] - disk went away" in capsys.readouterr().err


class BrokenReads:
    """File handle stand-in whose reads always fail; counts the attempts."""

    def __init__(self, inner):
        self.inner = inner
        self.reads = 0

    def seek(self, pos):
        return self.inner.seek(pos)

    def read(self, n):
        self.reads += 1
        raise OSError(5, "Input/output error")

    def close(self):
        self.inner.close()


class TestFailedReadNotRetried:
    """A failed window move is attempted once per request, not once per frame."""

    def test_one_attempt_and_one_warning(self, source, capsys) -> None:
        """Five frames wanting the same unreadable offset read once and warn once."""
        handle = BrokenReads(source._fh)
        source._fh = handle
        ctl = Controller(source, RasterMapper(4, 4), FixedOffset(100), ImageSink(4, 4))
        frames = [ctl.step() for _ in range(5)]

        assert handle.reads == 1
        assert capsys.readouterr().err.count("[WARN]") == 1
        assert frames[0].error is not None
        assert all(f.error is None for f in frames[1:])
        assert all(f.offset == 0 for f in frames)

    def test_new_request_is_tried(self, source) -> None:
        """Asking for a different offset after a failure reads again."""
        handle = BrokenReads(source._fh)
        source._fh = handle
        errors = []
        offsets = ScriptedOffsets([100, 100, 200, 200])
        ctl = Controller(source, RasterMapper(4, 4), offsets, ImageSink(4, 4), on_error=errors.append)
        for _ in range(4):
            ctl.step()
        assert handle.reads == 2
        assert len(errors) == 2

    def test_recovers_once_reads_work(self, source) -> None:
        """Going back to a readable request clears the failure."""
        inner = source._fh
        source._fh = BrokenReads(inner)
        offsets = ScriptedOffsets([100, 0, 100])
        ctl = Controller(source, RasterMapper(4, 4), offsets, ImageSink(4, 4), on_error=lambda e: None)
        ctl.step()
        ctl.step()
        source._fh = inner
        frame = ctl.step()
        assert frame.error is None
        assert frame.offset == 100


class TestRun:
    """The loop until cancellation."""

    def test_runs_until_cancelled_and_closes_once(self, source) -> None:
        """The token stops the loop at a frame boundary; close happens exactly once."""
        token = CancelToken()
        wrapped = CountingClose(source)
        sink = RecordingSink([(4, 4)], token=token, budget=3)
        frames = Controller(wrapped, RasterMapper(4, 4), FixedOffset(0), sink).run(token)
        assert frames == 3
        assert len(sink.frames) == 3
        assert wrapped.closes == 1
        assert source.closed

    def test_cancelled_before_start(self, source) -> None:
        """An already-cancelled token renders nothing but still closes."""
        token = CancelToken()
        token.cancel()
        wrapped = CountingClose(source)
        frames = Controller(wrapped, RasterMapper(4, 4), FixedOffset(0), RecordingSink([(4, 4)])).run(token)
        assert frames == 0
        assert wrapped.closes == 1

    def test_closes_when_frame_raises(self, source) -> None:
        """An unexpected error in a frame still releases the file."""

        class Exploding(RecordingSink):
            def present(self, grid, width, height):
                raise RuntimeError("renderer lost")

        wrapped = CountingClose(source)
        ctl = Controller(wrapped, RasterMapper(4, 4), FixedOffset(0), Exploding([(4, 4)]))
        with pytest.raises(RuntimeError, match="renderer lost"):
            ctl.run(CancelToken())
        assert wrapped.closes == 1


class TestImageSink:
    """Headless Pillow sink."""

    def test_keeps_last_frame(self, source, tmp_path) -> None:
        """The sink exposes the last frame as an image and can save it."""
        sink = ImageSink(4, 2)
        Controller(source, RasterMapper(4, 2), FixedOffset(200), sink).step()
        assert sink.frames == 1
        assert sink.image.size == (4, 2)
        assert sink.image.getpixel((1, 1)) == (205, 205, 205, 255)

        out = tmp_path / "frame.png"
        sink.save(out)
        assert out.read_bytes().startswith(b"\x89PNG")

    def test_save_before_render(self, tmp_path) -> None:
        """Saving with nothing rendered is an error."""
        with pytest.raises(RuntimeError):
            ImageSink(1, 1).save(tmp_path / "x.png")
