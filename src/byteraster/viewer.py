"""
viewer.py

Tk front end: a window that is both the offset provider (scroll/seek input)
and the render sink (shows the raster through Pillow's ImageTk) for the
frame loop in controller.py.

Dependencies:
 - tkinter (stdlib)
 - Pillow (pip install pillow) for rendering & saving PNG
"""

import os
import tkinter as tk
from tkinter import ttk, filedialog, messagebox

from PIL import ImageTk

from . import scroll
from .config import DEFAULT_WINDOW_H, DEFAULT_WINDOW_W, FRAME_MS, window_title
from .controller import OffsetProvider, RenderSink
from .raster import to_image
from .source import clamp


class RasterViewerApp(tk.Tk, OffsetProvider, RenderSink):
    def __init__(self, source, token, width=DEFAULT_WINDOW_W, height=DEFAULT_WINDOW_H):
        super().__init__()
        self.title(window_title(source.path))
        self.geometry(f"{width}x{height}")
        self.configure(bg='black')

        # State
        self.source = source
        self.token = token
        self.offset = source.window_offset
        self._syncing = False

        # images
        self._tk_image = None
        self._current_image = None

        self._make_ui()
        self._bind_canvas_keys()
        self.protocol("WM_DELETE_WINDOW", self.token.cancel)
        # map the window so the first viewport() query sees real geometry
        self.update()

    # ---------------------------
    # UI
    # ---------------------------
    def _make_ui(self):
        # status bar first so it keeps its row when the window shrinks
        self.status_var = tk.StringVar(value="")
        self.status = ttk.Label(self, anchor='w', textvariable=self.status_var, relief='sunken')
        self.status.pack(side='bottom', fill='x')

        controls = ttk.Frame(self, padding=4)
        controls.pack(side='top', fill='x')

        ttk.Label(controls, text="Offset:").pack(side='left')
        self.offset_var = tk.StringVar(value=str(self.offset))
        self.offset_entry = ttk.Entry(controls, width=16, textvariable=self.offset_var)
        self.offset_entry.pack(side='left', padx=(4, 4))
        self.offset_entry.bind("<Return>", lambda e: (self.apply_offset(), self.canvas.focus_set()))
        ttk.Button(controls, text="Go", command=self.apply_offset).pack(side='left')

        self.save_btn = ttk.Button(controls, text="Save PNG...", command=self.save_png)
        self.save_btn.pack(side='right')

        self.scale_var = tk.DoubleVar(value=self.offset)
        self.scale = ttk.Scale(controls, from_=0, to=max(1, self.source.max_offset),
                               variable=self.scale_var, command=self.on_scale)
        self.scale.pack(side='left', fill='x', expand=True, padx=(8, 8))
        if self.source.max_offset == 0:
            self.scale.state(['disabled'])

        self.canvas = tk.Canvas(self, bg='black', highlightthickness=0)
        self.canvas.pack(side='top', fill='both', expand=True)

        self.canvas.bind_all("<MouseWheel>", self._on_mousewheel)  # Windows / macOS
        self.canvas.bind_all("<Button-4>", self._on_mousewheel)    # Linux up
        self.canvas.bind_all("<Button-5>", self._on_mousewheel)    # Linux down
        self.canvas.focus_set()

    def _bind_canvas_keys(self):
        c = self.canvas
        c.bind("<Up>", lambda e: (self._move_offset(-1), "break"))
        c.bind("<Down>", lambda e: (self._move_offset(+1), "break"))
        c.bind("<Prior>", lambda e: (self._page_move(-1), "break"))  # PageUp
        c.bind("<Next>", lambda e: (self._page_move(+1), "break"))   # PageDown
        c.bind("<Home>", lambda e: (self._set_offset(0), "break"))
        c.bind("<End>", lambda e: (self._set_offset(self.source.max_offset), "break"))
        c.bind("<Button-1>", lambda e: c.focus_set())

    # ---------------------------
    # Offset input
    # ---------------------------
    def _set_offset(self, value):
        self.offset = clamp(int(value), 0, self.source.max_offset)
        self._syncing = True
        try:
            self.scale_var.set(self.offset)
        finally:
            self._syncing = False
        if self.focus_get() is not self.offset_entry:
            self.offset_var.set(str(self.offset))

    def _move_offset(self, delta_bytes):
        self._set_offset(scroll.move(self.offset, delta_bytes, self.source.max_offset))

    def _page_move(self, direction):
        """Move by 2/3 of the buffered window. direction: -1 PageUp, +1 PageDown."""
        self._move_offset(direction * scroll.page_step(self.source.buffer_capacity))

    def _on_mousewheel(self, event):
        row = scroll.wheel_row(self.canvas.winfo_width(), self.source.buffer_capacity)
        step = scroll.wheel_step(getattr(event, 'delta', 0), getattr(event, 'num', None), row)
        if step:
            self._move_offset(step)

    def on_scale(self, value):
        if self._syncing:
            return
        self.offset = scroll.scale_offset(value, self.source.max_offset)
        self.offset_var.set(str(self.offset))

    def apply_offset(self):
        s = self.offset_var.get()
        try:
            v = scroll.parse_offset(s)
        except ValueError as e:
            messagebox.showerror("Bad offset", f"Could not parse offset: {e}")
            return
        self._set_offset(v)
        self.offset_var.set(str(self.offset))

    def desired_offset(self, current):
        return self.offset

    # ---------------------------
    # Rendering
    # ---------------------------
    def viewport(self):
        return max(1, self.canvas.winfo_width()), max(1, self.canvas.winfo_height())

    def present(self, grid, width, height):
        img = to_image(grid, width, height)
        self._current_image = img
        self._tk_image = ImageTk.PhotoImage(img)
        self.canvas.delete("raster")
        self.canvas.create_image(0, 0, anchor='nw', image=self._tk_image, tags=("raster",))
        self._update_status(width, height)

        # pump Tk events, then pace the loop
        self.update()
        if not self.token.cancelled:
            self.after(FRAME_MS)

    def save_png(self):
        if self._current_image is None:
            messagebox.showinfo("Nothing to save", "There is no rendered image to save.")
            return
        fn = filedialog.asksaveasfilename(defaultextension=".png", filetypes=[("PNG image", "*.png")])
        if not fn:
            return
        try:
            self._current_image.save(fn, "PNG")
            messagebox.showinfo("Saved", f"Saved PNG: {fn}")
        except OSError as e:
            messagebox.showerror("Error saving PNG", str(e))

    # ---------------------------
    # Status
    # ---------------------------
    def _update_status(self, w, h):
        src = self.source
        status = (f"File: {os.path.basename(src.path)} size={src.file_size} bytes | "
                  f"offset={src.window_offset} (0x{src.window_offset:X}) valid={src.valid_length}/{src.buffer_capacity} | "
                  f"view={w}x{h} | reads={src.read_count}")
        self.status_var.set(status)
