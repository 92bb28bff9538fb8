"""
byteraster

Render the raw bytes of a file as a scrollable raster, one byte per pixel.
"""

from .controller import CancelToken, Controller, FixedOffset, ImageSink, OffsetProvider, RenderSink
from .errors import (
    ByteRasterError,
    ConfigError,
    InvalidViewport,
    PathTooLong,
    SourceError,
    SourceNotFound,
    SourceReadFailed,
    SourceUnreadable,
)
from .raster import PRESETS, RasterMapper, preset_policy
from .source import DEFAULT_BUFFER_SIZE, FileSource

__version__ = "0.1.0"
