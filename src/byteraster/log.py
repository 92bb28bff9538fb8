"""
log.py

Console diagnostics: "[INFO] - ..." on stdout, "[WARN] - ..." and
"[FAIL] - ..." on stderr. Output is flushed right away so messages interleave
correctly with the Tk event loop.
"""

import sys


def _emit(stream, tag: str, msg: str) -> None:
    print(f"[{tag}] - {msg}", file=stream)
    stream.flush()


def info(msg: str) -> None:
    _emit(sys.stdout, "INFO", msg)


def warn(msg: str) -> None:
    _emit(sys.stderr, "WARN", msg)


def fail(msg: str) -> None:
    _emit(sys.stderr, "FAIL", msg)
