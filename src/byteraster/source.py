"""
source.py

Buffered, offset-addressable view of a file. Only a window of
``buffer_capacity`` bytes is ever held in memory; ``tick()`` slides that
window to cover a requested offset, reading from disk only when the window
actually moves.
"""

import os

from .errors import SourceNotFound, SourceReadFailed, SourceUnreadable

DEFAULT_BUFFER_SIZE = 512


def clamp(v: int, lo: int, hi: int) -> int:
    """Clamp ``v`` to the inclusive ``[lo, hi]`` range."""
    return lo if v < lo else hi if v > hi else v


class FileSource:
    def __init__(self, path, fh, file_size, capacity):
        self._path = path
        self._fh = fh
        self._file_size = file_size
        self._capacity = capacity
        self._buffer = bytearray(capacity)
        self._window_offset = 0
        self._valid_length = 0
        self._read_count = 0

    @classmethod
    def open(cls, path, requested_buffer_size=DEFAULT_BUFFER_SIZE):
        """Open ``path`` and load the first window.

        Raises SourceNotFound when the path does not exist and SourceUnreadable
        when it cannot be opened or sized.
        """
        path = os.fspath(path)
        try:
            fh = open(path, 'rb')
        except FileNotFoundError as e:
            raise SourceNotFound(f"File not found: {path}") from e
        except OSError as e:
            raise SourceUnreadable(f"Could not open {path}: {e.strerror or e}") from e

        try:
            file_size = os.fstat(fh.fileno()).st_size
        except OSError as e:
            fh.close()
            raise SourceUnreadable(f"Could not determine size of {path}: {e.strerror or e}") from e

        if requested_buffer_size is None or requested_buffer_size <= 0:
            requested_buffer_size = DEFAULT_BUFFER_SIZE
        src = cls(path, fh, file_size, min(int(requested_buffer_size), file_size))
        try:
            src._load(0)
        except SourceReadFailed as e:
            src.close()
            raise SourceUnreadable(str(e)) from e
        return src

    # ---------------------------
    # Properties
    # ---------------------------
    @property
    def path(self):
        return self._path

    @property
    def file_size(self):
        return self._file_size

    @property
    def buffer_capacity(self):
        return self._capacity

    @property
    def buffer(self):
        """The owned window buffer; only the first ``valid_length`` bytes are meaningful."""
        return self._buffer

    @property
    def window_offset(self):
        return self._window_offset

    @property
    def valid_length(self):
        return self._valid_length

    @property
    def read_count(self):
        return self._read_count

    @property
    def max_offset(self):
        """Largest offset a window can start at."""
        return max(0, self._file_size - self._capacity)

    @property
    def closed(self):
        return self._fh is None

    def window(self) -> bytes:
        return bytes(self._buffer[:self._valid_length])

    # ---------------------------
    # Window movement
    # ---------------------------
    def tick(self, desired_offset: int) -> None:
        """Make the window start at ``desired_offset`` (clamped into the file).

        No I/O happens when the clamped target equals the current window offset.
        """
        target = clamp(int(desired_offset), 0, self.max_offset)
        if target == self._window_offset:
            return
        self._load(target)

    def _load(self, target):
        if self._fh is None:
            raise SourceReadFailed(f"{self._path} is closed")
        try:
            self._fh.seek(target)
            data = self._fh.read(self._capacity)
        except OSError as e:
            raise SourceReadFailed(f"Read at offset {target} of {self._path} failed: {e.strerror or e}") from e
        self._read_count += 1

        # commit only after the read succeeded
        n = len(data)
        self._buffer[:n] = data
        self._window_offset = target
        self._valid_length = n

    # ---------------------------
    # Teardown
    # ---------------------------
    def close(self) -> None:
        if self._fh is None:
            return
        fh, self._fh = self._fh, None
        self._buffer = bytearray()
        self._valid_length = 0
        fh.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        return (f"FileSource({self._path!r}, size={self._file_size}, capacity={self._capacity}, "
                f"offset={self._window_offset}, valid={self._valid_length})")
