"""
controller.py

Per-frame orchestration: offset request -> FileSource -> RasterMapper ->
render sink. Everything runs on the calling thread; the only blocking call
is the bounded read inside FileSource.tick().
"""

from dataclasses import dataclass
from typing import Optional

from . import log
from .errors import SourceReadFailed
from .raster import to_image


class CancelToken:
    """Cancellation flag polled once per frame (set from SIGINT or window close)."""

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self):
        return self._cancelled


# ---------------------------
# Collaborators
# ---------------------------

class OffsetProvider:
    def desired_offset(self, current: int) -> int:
        """Offset wanted for this frame; ``current`` when nothing scrolled."""
        raise NotImplementedError


class RenderSink:
    def viewport(self):
        """Current (width, height) of the render area."""
        raise NotImplementedError

    def present(self, grid, width: int, height: int) -> None:
        raise NotImplementedError


class FixedOffset(OffsetProvider):
    def __init__(self, offset=0):
        self.offset = offset

    def desired_offset(self, current):
        return self.offset


class ImageSink(RenderSink):
    """Headless sink keeping the last presented frame as a Pillow image."""

    def __init__(self, width, height):
        self.size = (width, height)
        self.image = None
        self.frames = 0

    def viewport(self):
        return self.size

    def present(self, grid, width, height):
        self.image = to_image(grid, width, height)
        self.frames += 1

    def save(self, path):
        if self.image is None:
            raise RuntimeError("Nothing has been rendered yet")
        self.image.save(path, "PNG")


# ---------------------------
# Frame loop
# ---------------------------

@dataclass(frozen=True)
class Frame:
    offset: int
    valid_length: int
    width: int
    height: int
    error: Optional[SourceReadFailed] = None


class Controller:
    def __init__(self, source, mapper, offsets, sink, on_error=None):
        self.source = source
        self.mapper = mapper
        self.offsets = offsets
        self.sink = sink
        self.on_error = on_error if on_error is not None else (lambda e: log.warn(str(e)))
        self.frames = 0
        self._failed_offset = None

    def step(self) -> Frame:
        src, mapper = self.source, self.mapper

        error = None
        desired = self.offsets.desired_offset(src.window_offset)
        # a request that already failed is not retried until the provider asks for another offset
        if desired != self._failed_offset:
            try:
                src.tick(desired)
                self._failed_offset = None
            except SourceReadFailed as e:
                # keep showing the previous window
                error = e
                self._failed_offset = desired
                self.on_error(e)

        width, height = self.sink.viewport()
        if (width, height) != mapper.size:
            mapper.resize(width, height)

        mapper.draw(src.buffer, src.valid_length)
        self.sink.present(mapper.render_target(), mapper.viewport_width, mapper.viewport_height)
        self.frames += 1
        return Frame(src.window_offset, src.valid_length, mapper.viewport_width, mapper.viewport_height, error)

    def run(self, token: CancelToken) -> int:
        """Run frames until ``token`` is cancelled, then close the source.

        Returns the number of frames rendered.
        """
        start = self.frames
        try:
            while not token.cancelled:
                self.step()
        finally:
            self.source.close()
        return self.frames - start
