"""
raster.py

Byte-to-pixel raster mapping. One byte fills one pixel cell, row-major,
starting at the top-left corner of the viewport. Cells past the end of the
available bytes get the background color.

The grid is kept as packed RGBA bytes; ``to_image`` copies it into a Pillow
image with one ``Image.frombytes`` call instead of writing pixels one by one.
"""

from PIL import Image

from .errors import ConfigError, InvalidViewport

BACKGROUND = (0, 0, 0, 0)   # transparent: padding never looks like a 0x00 byte
CELL_BYTES = 4              # RGBA

# ---------------------------
# Presets
# ---------------------------

# Every preset is a linear ramp scaled by a per-channel tint in [0, 1], so
# intensity is monotonic in the byte value.
PRESETS = [
    {'name': 'gray',  'label': 'Grayscale (0..255)', 'tint': (1.0, 1.0, 1.0)},
    {'name': 'red',   'label': 'Red ramp',           'tint': (1.0, 0.0, 0.0)},
    {'name': 'green', 'label': 'Green ramp',         'tint': (0.0, 1.0, 0.0)},
    {'name': 'blue',  'label': 'Blue ramp',          'tint': (0.0, 0.0, 1.0)},
    {'name': 'amber', 'label': 'Amber phosphor',     'tint': (1.0, 0.75, 0.0)},
    {'name': 'cyan',  'label': 'Cyan phosphor',      'tint': (0.0, 0.85, 1.0)},
]

PRESETS_BY_NAME = {p['name']: p for p in PRESETS}


def ramp_policy(tint):
    tr, tg, tb = tint

    def policy(value: int):
        return (round(value * tr), round(value * tg), round(value * tb), 255)

    return policy


def preset_policy(name: str):
    try:
        preset = PRESETS_BY_NAME[name]
    except KeyError:
        raise ConfigError(f"Unknown palette {name!r} (choose from {', '.join(PRESETS_BY_NAME)})") from None
    return ramp_policy(preset['tint'])


def intensity(color) -> float:
    """Perceived brightness of an RGB(A) color, alpha ignored (Rec. 601 weights)."""
    r, g, b = color[:3]
    return 0.299 * r + 0.587 * g + 0.114 * b


def _pack(color, what):
    if len(color) == 3:
        color = (*color, 255)
    if len(color) != CELL_BYTES:
        raise ConfigError(f"{what} must be an RGB or RGBA tuple, got {color!r}")
    try:
        return bytes(int(c) for c in color)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{what} has an invalid channel value: {color!r}") from e


def build_lut(policy):
    """Tabulate ``policy`` for every byte value; it must be a pure function."""
    return [_pack(policy(v), f"color for byte {v}") for v in range(256)]


# ---------------------------
# Mapper
# ---------------------------

class RasterMapper:
    def __init__(self, width, height, policy=None, background=BACKGROUND):
        if width <= 0 or height <= 0:
            raise InvalidViewport(f"Viewport must be positive, got {width}x{height}")
        self.policy = policy if policy is not None else preset_policy('gray')
        self._lut = build_lut(self.policy)
        self._background = _pack(background, "background color")
        self._width = int(width)
        self._height = int(height)
        self._grid = bytearray(self._background * self.grid_capacity)

    @property
    def viewport_width(self):
        return self._width

    @property
    def viewport_height(self):
        return self._height

    @property
    def size(self):
        return self._width, self._height

    @property
    def grid_capacity(self):
        return self._width * self._height

    @property
    def background_color(self):
        return tuple(self._background)

    def resize(self, width, height) -> bool:
        """Reallocate the grid for a new viewport.

        Window managers can report transient zero-sized windows; such sizes
        are ignored and False is returned.
        """
        if width <= 0 or height <= 0:
            return False
        width, height = int(width), int(height)
        if (width, height) == (self._width, self._height):
            return True
        self._width, self._height = width, height
        self._grid = bytearray(self._background * self.grid_capacity)
        return True

    def draw(self, buffer, valid_length: int) -> None:
        valid_length = max(0, min(int(valid_length), len(buffer)))
        n = min(valid_length, self.grid_capacity)
        lut = self._lut
        body = b"".join([lut[v] for v in buffer[:n]])
        # same total length every draw, so views handed out stay valid
        self._grid[:] = body + self._background * (self.grid_capacity - n)

    def render_target(self) -> memoryview:
        """Read-only view of the grid, valid until the next draw() or resize()."""
        return memoryview(self._grid).toreadonly()

    def color_at(self, index: int):
        if not 0 <= index < self.grid_capacity:
            raise IndexError(f"cell {index} outside grid of {self.grid_capacity}")
        start = index * CELL_BYTES
        return tuple(self._grid[start:start + CELL_BYTES])


def to_image(grid, width: int, height: int):
    """Wrap a packed RGBA grid as a Pillow image (copied, so it outlives the grid)."""
    return Image.frombytes("RGBA", (width, height), bytes(grid))


def mapper_image(mapper: RasterMapper):
    return to_image(mapper.render_target(), mapper.viewport_width, mapper.viewport_height)
