"""Reactive month view: header, week rows and day cells.

The view produces a tree of :class:`Node` objects and keeps it current as
its input signals change. Hosts register a listener with
:meth:`CalendarRoot.subscribe` and receive the smallest subtree that changed:
a single cell ``td`` for highlight or text updates, a header ``tr`` for title
or class updates, or the ``tbody`` when the set of weeks changes.
"""

import html
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Iterator

from calendar_logic import (
    DAY_LABELS,
    calendar_day,
    day_key,
    leading_padding,
    month_title,
    month_weeks,
    ordered_weeks,
    week_key,
)
from settings import CalendarConfig
from signals import Emitter, Signal, Subscription, as_signal

logger = logging.getLogger(__name__)

Listener = Callable[["Node"], None]


@dataclass(eq=False)
class Node:
    """One rendered element. Mutated in place when its component refreshes."""

    tag: str
    key: str = ""
    classes: str = ""
    text: str = ""
    colspan: int = 1
    active: bool = False
    pad: bool = False
    children: list["Node"] = field(default_factory=list)

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.walk()


class Header:
    """Month title row plus the M..S weekday label row."""

    def __init__(self, date_signal: Signal, config: Signal[CalendarConfig],
                 notify: Listener) -> None:
        self._date = date_signal
        self._config = config
        self._notify = notify

        self.title = Node("th", key="month", colspan=7)
        self.title_row = Node("tr", key="title", children=[self.title])
        self.labels = [Node("th", key=f"weekday-{i}", text=label)
                       for i, label in enumerate(DAY_LABELS)]
        self.label_row = Node("tr", key="weekdays", children=list(self.labels))
        self.rows = [self.title_row, self.label_row]

        self._subs = [
            date_signal.subscribe(self._on_date),
            config.subscribe(self._on_config),
        ]
        self._refresh_title()
        self._refresh_classes()

    def _refresh_title(self) -> bool:
        config = self._config.get()
        text = month_title(self._date.get())
        changed = (text, config.month_classes) != (self.title.text, self.title.classes)
        self.title.text = text
        self.title.classes = config.month_classes
        return changed

    def _refresh_classes(self) -> bool:
        config = self._config.get()
        changed = (self.label_row.classes != config.header_classes
                   or any(n.classes != config.cell_classes for n in self.labels))
        self.label_row.classes = config.header_classes
        for n in self.labels:
            n.classes = config.cell_classes
        return changed

    def _on_date(self, _value) -> None:
        if self._refresh_title():
            self._notify(self.title_row)

    def _on_config(self, _value) -> None:
        if self._refresh_title():
            self._notify(self.title_row)
        if self._refresh_classes():
            self._notify(self.label_row)

    def dispose(self) -> None:
        for sub in self._subs:
            sub.cancel()


class Cell:
    """A single day. Tracks the active date and config on its own."""

    def __init__(self, day: date, config: Signal[CalendarConfig],
                 active: Signal | None, notify: Listener) -> None:
        self.day = day
        self._config = config
        self._active = active
        self._notify = notify
        self.node = Node("td", key=day_key(day))

        # Render first: a renderer error must not leave subscriptions behind.
        self._refresh()
        self._subs: list[Subscription] = [config.subscribe(self._on_change)]
        if active is not None:
            self._subs.append(active.subscribe(self._on_change))

    def is_active(self) -> bool:
        if self._active is None:
            return False
        current = self._active.get()
        return current is not None and calendar_day(current) == self.day

    def _refresh(self) -> bool:
        config = self._config.get()
        active = self.is_active()
        text = config.cell_text(self.day)
        classes = config.cell_class(active)
        node = self.node
        changed = (text, classes, active) != (node.text, node.classes, node.active)
        node.text, node.classes, node.active = text, classes, active
        return changed

    def _on_change(self, _value) -> None:
        if self._refresh():
            self._notify(self.node)

    def dispose(self) -> None:
        for sub in self._subs:
            sub.cancel()


class Week:
    """One table row: optional leading padding, then a cell per day."""

    def __init__(self, days: list[date], config: Signal[CalendarConfig],
                 active: Signal | None, notify: Listener) -> None:
        self.key = week_key(days)
        self.padding = leading_padding(days)
        self.cells: list[Cell] = []
        try:
            for d in days:
                self.cells.append(Cell(d, config, active, notify))
        except BaseException:
            self.dispose()
            raise

        children: list[Node] = []
        if self.padding > 0:
            children.append(Node("td", key=f"{self.key}/pad", colspan=self.padding, pad=True))
        children.extend(c.node for c in self.cells)
        self.node = Node("tr", key=self.key, children=children)

    def dispose(self) -> None:
        for cell in self.cells:
            cell.dispose()


class CalendarRoot:
    """A month grid bound to a reference date, an active date and a config.

    ``date`` and ``active`` may be signals or plain values; ``config`` may be
    a :class:`CalendarConfig` or a signal holding one. Exceptions raised by a
    custom cell renderer propagate to whoever triggered the render.
    """

    def __init__(self, date: "Signal | date | datetime",
                 config: "Signal[CalendarConfig] | CalendarConfig | None" = None,
                 active: "Signal | date | datetime | None" = None) -> None:
        self.date = as_signal(date)
        self.config = as_signal(config if config is not None else CalendarConfig())
        self.active = as_signal(active) if active is not None else None
        self._changes = Emitter()
        self._weeks: dict[str, Week] = {}

        # Subscribe before any cell does, so a rebuild always runs ahead of
        # highlight refreshes triggered by the same change.
        self._date_sub = self.date.subscribe(self._on_date)

        self.header = Header(self.date, self.config, self._changes.emit)
        self.thead = Node("thead", children=list(self.header.rows))
        self.tbody = Node("tbody")
        self.node = Node("table", children=[self.thead, self.tbody])
        try:
            self._rebuild()
        except BaseException:
            self.dispose()
            raise

    @property
    def weeks(self) -> list[Week]:
        return list(self._weeks.values())

    def cells(self) -> Iterator[Cell]:
        for week in self._weeks.values():
            yield from week.cells

    def subscribe(self, listener: Listener) -> Subscription:
        return self._changes.subscribe(listener)

    def _rebuild(self) -> bool:
        """Reconcile week rows against the current reference date.

        Returns True when the rows changed.
        """
        old = self._weeks
        weeks: dict[str, Week] = {}
        created: list[Week] = []
        try:
            for days in ordered_weeks(month_weeks(self.date.get())):
                key = week_key(days)
                week = old.get(key)
                if week is None:
                    week = Week(days, self.config, self.active, self._changes.emit)
                    created.append(week)
                weeks[key] = week
        except BaseException:
            # Leave the previous rows in place and drop the half-built ones.
            for week in created:
                week.dispose()
            raise
        for key, stale in old.items():
            if key not in weeks:
                stale.dispose()
        reused = len(weeks) - len(created)

        changed = list(weeks) != [n.key for n in self.tbody.children]
        self._weeks = weeks
        self.tbody.children = [w.node for w in weeks.values()]
        logger.debug("calendar rebuilt: %d weeks, %d reused", len(weeks), reused)
        return changed

    def _on_date(self, _value) -> None:
        if self._rebuild():
            self._changes.emit(self.tbody)

    def dispose(self) -> None:
        self._date_sub.cancel()
        self.header.dispose()
        for week in self._weeks.values():
            week.dispose()
        self._weeks = {}
        self.tbody.children = []


def render_html(node: Node) -> str:
    """Serialise a node tree to HTML markup."""
    attrs = []
    if node.classes:
        attrs.append(f'class="{html.escape(node.classes)}"')
    if node.colspan != 1:
        attrs.append(f'colspan="{node.colspan}"')
    if node.key:
        attrs.append(f'data-key="{html.escape(node.key)}"')
    open_tag = " ".join([node.tag] + attrs)
    inner = html.escape(node.text) + "".join(render_html(c) for c in node.children)
    return f"<{open_tag}>{inner}</{node.tag}>"
