"""
config.py

Application constants and the small parsing helpers shared by the CLI and
the viewer widgets.
"""

import os

from .errors import PathTooLong
from .source import DEFAULT_BUFFER_SIZE  # noqa: F401  (re-exported for the CLI)

WINDOW_PREFIX = "byteraster"

DEFAULT_WINDOW_W = 1024
DEFAULT_WINDOW_H = 768
DEFAULT_PALETTE = 'gray'

MAX_TITLE_LEN = 128
MAX_PATH_LEN = 4096

FRAME_MS = 16


def parse_number(text: str) -> int:
    """Parse a decimal or 0x-prefixed hex integer (e.g. "4096", "0x1000")."""
    s = str(text).strip()
    if s.lower().startswith("0x"):
        return int(s, 16)
    return int(s, 10)


def check_path(path) -> str:
    path = os.fspath(path)
    if len(path) > MAX_PATH_LEN:
        raise PathTooLong(f"Path is {len(path)} characters, the limit is {MAX_PATH_LEN}")
    return path


def window_title(path: str, max_len: int = MAX_TITLE_LEN) -> str:
    """'[prefix] - path', eliding the middle of the path to stay within max_len."""
    head = f"[{WINDOW_PREFIX}] - "
    title = head + path
    if len(title) <= max_len:
        return title
    room = max_len - len(head) - 3
    if room <= 0:
        return title[:max_len]
    left = room // 2
    right = room - left
    return head + path[:left] + "..." + path[len(path) - right:]
