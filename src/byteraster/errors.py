"""
errors.py

Exception types raised by the file source, the raster mapper and the CLI.
"""


class ByteRasterError(Exception):
    pass


# ---------------------------
# File source
# ---------------------------
class SourceError(ByteRasterError):
    """Base for failures of the backing file."""


class SourceNotFound(SourceError):
    pass


class SourceUnreadable(SourceError):
    """The file exists but cannot be opened or sized (permissions, directory, ...)."""


class SourceReadFailed(SourceError):
    """A seek or read failed while moving the window; the window is unchanged."""


# ---------------------------
# Configuration
# ---------------------------
class ConfigError(ByteRasterError):
    pass


class InvalidViewport(ConfigError):
    pass


class PathTooLong(ConfigError):
    pass
