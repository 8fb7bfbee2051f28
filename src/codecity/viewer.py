"""
Interactive Tk viewer.

Shows the rendered city in a window and forwards pointer events to the
session's InteractionController:

    mouse move        hover (details panel follows the pointer)
    left click        select the hovered building
    wheel             zoom about the pointer
    middle drag       pan

The side panel carries the details, statistics and legend text, the git
display toggles, the layout strategy selector and an "Open..." button used
as the fallback when the default snapshot cannot be loaded.
"""

import logging
import tkinter as tk
from tkinter import filedialog, messagebox, ttk
from typing import Optional

from PIL import ImageTk

from .config import LAYOUT_GRID, LAYOUT_QUADRANT, VisualOptions
from .models import BuildingPlacement
from .panels import building_details, format_stats, legend, project_stats
from .parser import LoadError, load_city_data, load_with_fallback
from .session import CitySession

logger = logging.getLogger(__name__)

TOGGLES = (
    ("show_frequency", "Color by change frequency"),
    ("show_age", "Fade by file age"),
    ("show_recent_glow", "Glow recent changes"),
    ("color_blind", "Color-blind mode"),
)


class CityViewer(tk.Tk):
    """Main window: canvas on the left, panels and controls on the right."""

    def __init__(self, options: Optional[VisualOptions] = None) -> None:
        super().__init__()
        self.title("Code City")
        self.geometry("1400x900")

        self.session = CitySession(
            options=options,
            width=1000,
            height=860,
            on_hover=self._on_hover,
            on_select=self._show_details,
        )
        self._photo: Optional[ImageTk.PhotoImage] = None

        self._build()

    def _build(self) -> None:
        self.columnconfigure(0, weight=1)
        self.rowconfigure(0, weight=1)

        self.canvas = tk.Canvas(self, highlightthickness=0, background="#2c3e50")
        self.canvas.grid(row=0, column=0, sticky="nsew")
        self._image_id = self.canvas.create_image(0, 0, anchor="nw")

        side = ttk.Frame(self, padding=10, width=320)
        side.grid(row=0, column=1, sticky="ns")

        ttk.Label(side, text="Details", font=("TkDefaultFont", 11, "bold")).pack(anchor="w")
        self.details = ttk.Label(side, text="Hover over a building", justify="left", wraplength=300)
        self.details.pack(anchor="w", pady=(0, 12))

        ttk.Label(side, text="Project", font=("TkDefaultFont", 11, "bold")).pack(anchor="w")
        self.stats = ttk.Label(side, text="", justify="left", font=("TkFixedFont", 9))
        self.stats.pack(anchor="w", pady=(0, 12))

        ttk.Label(side, text="Layout", font=("TkDefaultFont", 11, "bold")).pack(anchor="w")
        self.layout_var = tk.StringVar(value=self.session.options.layout_strategy)
        for value, label in ((LAYOUT_QUADRANT, "Quadrant (downtown)"), (LAYOUT_GRID, "Grid")):
            ttk.Radiobutton(
                side,
                text=label,
                value=value,
                variable=self.layout_var,
                command=self._change_layout,
            ).pack(anchor="w")

        self.git_frame = ttk.Frame(side)
        ttk.Label(self.git_frame, text="Git", font=("TkDefaultFont", 11, "bold")).pack(
            anchor="w", pady=(12, 0)
        )
        self.toggle_vars = {}
        for name, label in TOGGLES:
            var = tk.BooleanVar(value=getattr(self.session.options, name))
            self.toggle_vars[name] = var
            ttk.Checkbutton(
                self.git_frame,
                text=label,
                variable=var,
                command=lambda n=name: self._toggle(n),
            ).pack(anchor="w")
        self.legend = ttk.Label(self.git_frame, text="", justify="left", wraplength=300)
        self.legend.pack(anchor="w", pady=(6, 0))

        ttk.Button(side, text="Open...", command=self._open_file).pack(
            anchor="w", side="bottom", pady=(12, 0)
        )
        self.status = ttk.Label(side, text="", wraplength=300)
        self.status.pack(anchor="w", side="bottom")

        self.canvas.bind("<Configure>", self._on_resize)
        self.canvas.bind("<Motion>", self._on_motion)
        self.canvas.bind("<Button-1>", self._on_click)
        self.canvas.bind("<ButtonPress-2>", self._on_button_down)
        self.canvas.bind("<ButtonRelease-2>", self._on_button_up)
        self.canvas.bind("<Leave>", self._on_leave)
        self.canvas.bind("<MouseWheel>", self._on_wheel)
        # X11 reports wheel notches as buttons 4 and 5
        self.canvas.bind("<Button-4>", lambda e: self._wheel_at(e.x, e.y, -1))
        self.canvas.bind("<Button-5>", lambda e: self._wheel_at(e.x, e.y, 1))

    def load_source(self, source: str) -> None:
        """Load a snapshot, asking for a file once if the default fails."""
        try:
            data = load_with_fallback(source, self._choose_file)
        except LoadError as e:
            self.status.configure(text=f"Error: {e}")
            self.redraw()
            return
        self._apply_data(data, source)

    def _choose_file(self, error: LoadError) -> Optional[str]:
        messagebox.showwarning("Code City", f"{error}\n\nPlease select a data.json file.")
        path = filedialog.askopenfilename(
            title="Select city data", filetypes=[("JSON", "*.json"), ("All files", "*")]
        )
        return path or None

    def _open_file(self) -> None:
        path = filedialog.askopenfilename(
            title="Select city data", filetypes=[("JSON", "*.json"), ("All files", "*")]
        )
        if not path:
            return
        try:
            data = load_city_data(path)
        except LoadError as e:
            self.status.configure(text=f"Error: {e}")
            return
        self._apply_data(data, path)

    def _apply_data(self, data, source: str) -> None:
        self.session.load(data)
        self.stats.configure(text=format_stats(project_stats(data)))
        self.details.configure(text="Hover over a building")
        self.status.configure(text=f"Loaded {source}")
        if self.session.mapper is not None:
            self.git_frame.pack(anchor="w", fill="x")
            self.legend.configure(text=legend(self.session.options))
        else:
            self.git_frame.pack_forget()
        self.redraw()

    def redraw(self) -> None:
        image = self.session.render_image()
        self._photo = ImageTk.PhotoImage(image)
        self.canvas.itemconfigure(self._image_id, image=self._photo)

    def _on_hover(self, building: Optional[BuildingPlacement]) -> None:
        self.canvas.configure(cursor="hand2" if building is not None else "")
        if building is not None:
            self._show_details(building)

    def _show_details(self, building: BuildingPlacement) -> None:
        self.details.configure(text=building_details(building, self.session.mapper))

    def _change_layout(self) -> None:
        self.session.set_strategy(self.layout_var.get())
        self.redraw()

    def _toggle(self, name: str) -> None:
        self.session.set_option(name, self.toggle_vars[name].get())
        self.legend.configure(text=legend(self.session.options))
        self.redraw()

    def _on_resize(self, event) -> None:
        if event.width < 2 or event.height < 2:
            return
        self.session.resize(event.width, event.height)
        self.redraw()

    def _on_motion(self, event) -> None:
        if self.session.controller.pointer_move(event.x, event.y):
            self.redraw()

    def _on_click(self, _event) -> None:
        if self.session.controller.click():
            self.redraw()

    def _on_button_down(self, event) -> None:
        self.session.controller.button_down(event.num, event.x, event.y)
        self.canvas.configure(cursor="fleur")

    def _on_button_up(self, event) -> None:
        self.session.controller.button_up(event.num)
        self.canvas.configure(cursor="")

    def _on_leave(self, _event) -> None:
        self.session.controller.pointer_leave()
        self.canvas.configure(cursor="")

    def _on_wheel(self, event) -> None:
        # Positive MouseWheel delta means wheel up, which zooms in
        self._wheel_at(event.x, event.y, -event.delta)

    def _wheel_at(self, x: int, y: int, delta: float) -> None:
        if self.session.controller.wheel(x, y, delta):
            self.redraw()


def launch(source: str, options: Optional[VisualOptions] = None) -> None:
    """Open the viewer window and block until it is closed."""
    app = CityViewer(options)
    app.after(0, lambda: app.load_source(source))
    app.mainloop()
