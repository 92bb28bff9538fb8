"""
cli.py

Command-line entry point.

Run:
    byteraster -f some.bin
    byteraster --file some.bin --size 0x4000 --palette amber
    python -m byteraster -h
"""

import argparse
import signal
import sys

from . import log
from .config import DEFAULT_BUFFER_SIZE, DEFAULT_PALETTE, check_path, parse_number
from .controller import CancelToken, Controller
from .errors import ByteRasterError
from .raster import PRESETS, RasterMapper, preset_policy
from .source import FileSource

USAGE = ("  byteraster usage / options              \n"
         "----------------------------------------\n"
         " -f  --file     :    Input file          \n"
         " -s  --size     :    Buffer size         \n"
         " -p  --palette  :    Color preset        \n"
         " -h  --help     :    Print help          \n")


class UsageError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def print_help():
    sys.stdout.write(USAGE)
    sys.stdout.write("palettes: " + ", ".join(p['name'] for p in PRESETS) + "\n")
    sys.stdout.flush()


def _size_arg(text):
    try:
        return parse_number(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid buffer size: {text!r}") from None


def build_parser():
    parser = _Parser(prog="byteraster", add_help=False)
    parser.add_argument("-f", "--file", default="")
    parser.add_argument("-s", "--size", type=_size_arg, default=DEFAULT_BUFFER_SIZE)
    parser.add_argument("-p", "--palette", choices=[p['name'] for p in PRESETS], default=DEFAULT_PALETTE)
    parser.add_argument("-h", "--help", action='store_true')
    return parser


def _open_viewer(source, token):
    # Tk is only touched once a file is open, so --help and bad paths never create a window
    from .viewer import RasterViewerApp
    return RasterViewerApp(source, token)


def _window_errors():
    # TclError when no display is available; ImportError when Tk is not installed
    try:
        from tkinter import TclError
    except ImportError:
        return (RuntimeError, ImportError)
    return (TclError, RuntimeError, ImportError)


def _install_interrupt(token):
    def handler(signum, frame):
        log.info("CTRL-C detected...")
        token.cancel()

    return signal.signal(signal.SIGINT, handler)


def main(argv=None, viewer_factory=None):
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        log.warn(str(e))
        print_help()
        return 0

    if args.help:
        print_help()
        return 0

    if not args.file:
        log.fail("No input file provided")
        print_help()
        return 1

    token = CancelToken()
    previous = _install_interrupt(token)
    source = viewer = None
    try:
        try:
            path = check_path(args.file)
            source = FileSource.open(path, args.size)
        except ByteRasterError as e:
            log.fail(f"Failed to read input file in argument: {e}")
            return 1
        log.info(f"Initially read {source.valid_length} bytes into the buffer")

        factory = viewer_factory if viewer_factory is not None else _open_viewer
        try:
            viewer = factory(source, token)
            w, h = viewer.viewport()
            mapper = RasterMapper(w, h, preset_policy(args.palette))
        except ByteRasterError as e:
            log.fail(f"Could not initialize raster display: {e}")
            return 1
        except _window_errors() as e:
            log.fail(f"Unable to create the window: {e}")
            return 1
        log.info("Initialized program and display")

        Controller(source, mapper, viewer, viewer).run(token)
    finally:
        if previous is not None:
            signal.signal(signal.SIGINT, previous)
        if source is not None:
            source.close()
        destroy = getattr(viewer, 'destroy', None)
        if destroy is not None:
            destroy()

    log.info("Closed the program successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
