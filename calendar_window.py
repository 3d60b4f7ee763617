"""Month calendar window (tkinter) hosting a reactive CalendarRoot."""

from datetime import date, datetime
from tkinter import font as tkfont
import tkinter as tk

from calendar_logic import shift_month
from calendar_view import CalendarRoot, Node
from settings import CalendarConfig
from signals import Signal

# Colours
ACCENT = "#0078D4"
HEADER_BG = "#F3F3F3"
GRID_BG = "white"
WEEKEND_FG = "#CC0000"


class CalendarWindow:
    """Single-month calendar: navigate months, click a day to highlight it."""

    def __init__(self, config: CalendarConfig | None = None) -> None:
        self.root = tk.Tk()
        self.root.title("Calendar")
        self.root.resizable(False, False)
        self.root.configure(bg=GRID_BG)

        self._setup_fonts()

        self.date: Signal[datetime] = Signal(datetime.now().astimezone())
        self.active: Signal[date | None] = Signal(date.today())
        self.view = CalendarRoot(self.date, config=config, active=self.active)

        # Widget-to-date mapping (filled during _draw_grid)
        self._widget_dates: dict[int, date] = {}
        # Node-key-to-widget mapping for single-cell updates
        self._key_widgets: dict[str, tk.Label] = {}

        self._build_shell()
        self._draw_grid()
        self._subscription = self.view.subscribe(self._on_view_change)

        self.root.bind("<Escape>", self._on_escape)
        self.root.protocol("WM_DELETE_WINDOW", self.close)

    # ------------------------------------------------------------------
    # Fonts
    # ------------------------------------------------------------------
    def _setup_fonts(self) -> None:
        families = tkfont.families(self.root)
        base = "Segoe UI" if "Segoe UI" in families else "TkDefaultFont"
        self.font_normal = tkfont.Font(family=base, size=9)
        self.font_bold = tkfont.Font(family=base, size=9, weight="bold")
        self.font_header = tkfont.Font(family=base, size=10, weight="bold")
        self.font_nav = tkfont.Font(family=base, size=12, weight="bold")

    # ------------------------------------------------------------------
    # Build shell (once): nav bar + grid placeholder
    # ------------------------------------------------------------------
    def _build_shell(self) -> None:
        outer = tk.Frame(self.root, bg=GRID_BG)
        outer.pack(padx=6, pady=4)

        # Navigation row: ◀  Today  ▶
        nav = tk.Frame(outer, bg=GRID_BG)
        nav.pack(fill="x", pady=(0, 2))

        btn_prev = tk.Label(
            nav, text="◀", font=self.font_nav, bg=GRID_BG, cursor="hand2"
        )
        btn_prev.pack(side="left", padx=6)
        btn_prev.bind("<Button-1>", lambda _e: self.navigate(-1))

        btn_next = tk.Label(
            nav, text="▶", font=self.font_nav, bg=GRID_BG, cursor="hand2"
        )
        btn_next.pack(side="right", padx=6)
        btn_next.bind("<Button-1>", lambda _e: self.navigate(1))

        btn_today = tk.Label(
            nav, text="Today", font=self.font_bold, bg=GRID_BG, fg=ACCENT,
            cursor="hand2",
        )
        btn_today.pack(side="top")
        btn_today.bind("<Button-1>", lambda _e: self.go_today())

        self._grid_frame = tk.Frame(outer, bg=GRID_BG)
        self._grid_frame.pack()

    # ------------------------------------------------------------------
    # Full redraw from the view's node tree
    # ------------------------------------------------------------------
    def _draw_grid(self) -> None:
        for child in self._grid_frame.winfo_children():
            child.destroy()
        self._widget_dates.clear()
        self._key_widgets.clear()

        rows = self.view.thead.children + self.view.tbody.children
        for r, row in enumerate(rows):
            col = 0
            for node in row.children:
                if not node.pad:
                    lbl = tk.Label(self._grid_frame, width=3 * node.colspan)
                    lbl.grid(row=r, column=col, columnspan=node.colspan, sticky="we")
                    self._configure_label(lbl, node)
                    self._key_widgets[node.key] = lbl
                    if node.tag == "td":
                        d = date.fromisoformat(node.key)
                        self._widget_dates[id(lbl)] = d
                        lbl.configure(cursor="hand2")
                        lbl.bind("<Button-1>", self._on_press)
                col += node.colspan

    def _configure_label(self, lbl: tk.Label, node: Node) -> None:
        if node.tag == "th":
            font = self.font_header if node.key == "month" else self.font_bold
            lbl.configure(text=node.text, font=font, bg=HEADER_BG, fg="#333333")
            return
        d = date.fromisoformat(node.key)
        if node.active:
            bg, fg = ACCENT, "white"
        elif d.weekday() >= 5:
            bg, fg = GRID_BG, WEEKEND_FG
        else:
            bg, fg = GRID_BG, "black"
        lbl.configure(
            text=node.text, bg=bg, fg=fg,
            font=self.font_bold if node.active else self.font_normal,
        )

    # ------------------------------------------------------------------
    # View notifications: single cells in place, anything else redraws
    # ------------------------------------------------------------------
    def _on_view_change(self, node: Node) -> None:
        lbl = self._key_widgets.get(node.key)
        if node.tag == "td" and lbl is not None:
            self._configure_label(lbl, node)
        elif node.key == "title" and "month" in self._key_widgets:
            self._configure_label(self._key_widgets["month"], node.children[0])
        else:
            self._draw_grid()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def _on_press(self, event: tk.Event) -> None:
        d = self._widget_dates.get(id(event.widget))
        if d:
            self.active.set(d)

    def _on_escape(self, _event: tk.Event) -> None:
        if self.active.get() is not None:
            self.active.set(None)
        else:
            self.close()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def navigate(self, direction: int) -> None:
        self.date.set(shift_month(self.date.get(), direction))

    def go_today(self) -> None:
        self.date.set(datetime.now().astimezone())
        self.active.set(date.today())

    def close(self) -> None:
        self._subscription.cancel()
        self.view.dispose()
        self.root.destroy()
