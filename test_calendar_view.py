import re
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest

from calendar_logic import DAY_LABELS, format_day
from calendar_view import CalendarRoot, render_html
from settings import CalendarConfig
from signals import Signal

STYLED = CalendarConfig(
    header_classes="hdr", month_classes="month", cell_classes="day", active_classes="active",
)


def day_nodes(root):
    return [cell.node for cell in root.cells()]


def active_nodes(root):
    return [n for n in root.node.walk() if "active" in n.classes.split()]


def test_february_2024_layout():
    root = CalendarRoot(date(2024, 2, 1))
    rows = root.tbody.children
    assert len(rows) == 5
    pad = rows[0].children[0]
    assert pad.colspan == 3
    assert pad.text == ""
    assert rows[0].children[1].key == "2024-02-01"
    assert rows[-1].children[-1].text == "29"
    assert [n.text for n in day_nodes(root)][:3] == ["01", "02", "03"]


def test_week_starting_monday_has_no_padding():
    root = CalendarRoot(date(2024, 4, 10))
    first_row = root.tbody.children[0]
    assert first_row.children[0].key == "2024-04-01"
    assert len(first_row.children) == 7
    assert all(n.colspan == 1 for n in first_row.children)


def test_december_2024_rows_in_date_order():
    root = CalendarRoot(datetime(2024, 12, 15, 12, 0, tzinfo=timezone.utc))
    keys = [row.key for row in root.tbody.children]
    assert keys == sorted(keys)
    assert keys[-1] == "2024-12-30"
    assert [n.key for n in root.tbody.children[-1].children] == ["2024-12-30", "2024-12-31"]


def test_header():
    root = CalendarRoot(date(2024, 2, 14), config=STYLED)
    title_row, label_row = root.thead.children
    assert title_row.children[0].text == "February 2024"
    assert title_row.children[0].colspan == 7
    assert title_row.children[0].classes == "month"
    assert label_row.classes == "hdr"
    assert [n.text for n in label_row.children] == DAY_LABELS
    assert all(n.classes == "day" for n in label_row.children)


def test_exactly_one_active_cell():
    root = CalendarRoot(date(2024, 2, 1), config=STYLED, active=Signal(date(2024, 2, 14)))
    active = active_nodes(root)
    assert len(active) == 1
    assert active[0].key == "2024-02-14"
    assert active[0].classes == "day active"
    assert active[0].active


def test_active_date_outside_month_highlights_nothing():
    root = CalendarRoot(date(2024, 2, 1), config=STYLED, active=date(2024, 3, 1))
    assert active_nodes(root) == []


def test_active_datetime_compared_by_calendar_day():
    tz = timezone(timedelta(hours=9))
    root = CalendarRoot(date(2024, 2, 1), config=STYLED,
                        active=datetime(2024, 2, 14, 23, 59, tzinfo=tz))
    assert [n.key for n in active_nodes(root)] == ["2024-02-14"]


@pytest.mark.parametrize("month", range(1, 13))
def test_no_active_date_never_highlights(month):
    ref = Signal(date(2023, month, 1))
    root = CalendarRoot(ref, config=STYLED)
    assert active_nodes(root) == []
    ref.set(date(2024, month, 1))
    assert active_nodes(root) == []
    assert all(n.classes == "day" for n in day_nodes(root))


def test_active_change_updates_only_two_cells():
    active = Signal(date(2024, 2, 14))
    root = CalendarRoot(date(2024, 2, 1), config=STYLED, active=active)
    weeks_before = root.weeks
    changed = []
    root.subscribe(changed.append)

    active.set(date(2024, 2, 20))

    assert [n.key for n in changed] == ["2024-02-14", "2024-02-20"]
    assert all(n.tag == "td" for n in changed)
    assert root.weeks == weeks_before
    assert [n.key for n in active_nodes(root)] == ["2024-02-20"]


def test_reference_change_within_month_keeps_rows():
    ref = Signal(date(2024, 2, 1))
    root = CalendarRoot(ref)
    weeks_before = root.weeks
    changed = []
    root.subscribe(changed.append)

    ref.set(date(2024, 2, 20))

    assert changed == []
    assert all(a is b for a, b in zip(root.weeks, weeks_before))


def test_reference_change_rebuilds_before_highlighting():
    ref = Signal(date(2024, 2, 1))
    active = Signal(date(2024, 3, 5))
    root = CalendarRoot(ref, config=STYLED, active=active)
    assert active_nodes(root) == []
    changed = []
    root.subscribe(changed.append)

    ref.set(date(2024, 3, 1))

    assert changed[0] is root.tbody
    assert root.header.title_row in changed
    assert root.header.title.text == "March 2024"
    assert [n.key for n in active_nodes(root)] == ["2024-03-05"]
    assert len(day_nodes(root)) == 31


def test_one_signal_driving_reference_and_active():
    shared = Signal(date(2024, 2, 10))
    root = CalendarRoot(shared, config=STYLED, active=shared)
    assert [n.key for n in active_nodes(root)] == ["2024-02-10"]

    shared.set(date(2024, 3, 20))
    assert [n.key for n in active_nodes(root)] == ["2024-03-20"]
    # root + header, plus one per March cell; February cells are gone
    assert shared.subscriber_count == 2 + 31

    shared.set(date(2024, 3, 21))
    assert [n.key for n in active_nodes(root)] == ["2024-03-21"]


def test_config_change_reaches_every_cell():
    config = Signal(CalendarConfig(cell_classes="a"))
    root = CalendarRoot(date(2024, 2, 1), config=config)
    changed = []
    root.subscribe(changed.append)

    config.set(replace(config.get(), cell_classes="b", month_classes="m"))

    assert all(n.classes == "b" for n in day_nodes(root))
    assert all(n.classes == "b" for n in root.header.labels)
    assert root.header.title.classes == "m"
    assert root.tbody not in changed
    assert root.header.label_row in changed
    assert len([n for n in changed if n.tag == "td"]) == 29


def test_custom_renderer_text():
    root = CalendarRoot(date(2024, 2, 1),
                        config=CalendarConfig(cell_renderer=lambda d: "Day " + str(d.day)))
    texts = [n.text for n in day_nodes(root)]
    assert len(texts) == 29
    assert all(re.fullmatch(r"Day [1-9]\d?", t) for t in texts)
    assert texts[0] == "Day 1"
    assert texts[-1] == "Day 29"


def test_renderer_errors_propagate():
    def broken(_d):
        raise RuntimeError("renderer failed")

    with pytest.raises(RuntimeError, match="renderer failed"):
        CalendarRoot(date(2024, 2, 1), config=CalendarConfig(cell_renderer=broken))

    config = Signal(CalendarConfig())
    CalendarRoot(date(2024, 2, 1), config=config)
    with pytest.raises(RuntimeError, match="renderer failed"):
        config.set(CalendarConfig(cell_renderer=broken))


def test_dispose_releases_subscriptions():
    ref = Signal(date(2024, 2, 1))
    active = Signal(None)
    config = Signal(CalendarConfig())
    root = CalendarRoot(ref, config=config, active=active)
    assert active.subscriber_count == 29
    root.dispose()
    assert ref.subscriber_count == 0
    assert active.subscriber_count == 0
    assert config.subscriber_count == 0


def test_render_html():
    root = CalendarRoot(date(2024, 2, 1), config=STYLED, active=date(2024, 2, 1))
    markup = render_html(root.node)
    assert markup.startswith("<table><thead>")
    assert '<th class="month" colspan="7" data-key="month">February 2024</th>' in markup
    assert '<td colspan="3" data-key="2024-02-01/pad"></td>' in markup
    assert '<td class="day active" data-key="2024-02-01">01</td>' in markup
    assert '<td class="day" data-key="2024-02-29">29</td>' in markup


def test_render_html_escapes_text():
    root = CalendarRoot(date(2024, 2, 1), config=CalendarConfig(cell_renderer=lambda d: "<b>"))
    assert "&lt;b&gt;" in render_html(root.node)
    assert "<b>" not in render_html(root.node)


def test_same_instant_in_another_timezone_moves_the_month():
    ref = Signal(datetime(2024, 2, 29, 23, 30, tzinfo=timezone.utc))
    active = Signal(datetime(2024, 2, 29, 23, 30, tzinfo=timezone.utc))
    root = CalendarRoot(ref, config=STYLED, active=active)
    assert root.header.title.text == "February 2024"

    later_zone = datetime(2024, 3, 1, 0, 30, tzinfo=timezone(timedelta(hours=1)))
    ref.set(later_zone)
    active.set(later_zone)

    assert root.header.title.text == "March 2024"
    assert root.tbody.children[0].children[1].key == "2024-03-01"
    assert [n.key for n in active_nodes(root)] == ["2024-03-01"]


def test_failed_rebuild_keeps_old_rows_and_leaks_nothing():
    def renderer(d):
        if d == date(2024, 3, 15):
            raise RuntimeError("no text for the 15th")
        return format_day(d)

    ref = Signal(date(2024, 2, 1))
    active = Signal(None)
    config = Signal(CalendarConfig(cell_renderer=renderer))
    root = CalendarRoot(ref, config=config, active=active)
    feb_keys = [row.key for row in root.tbody.children]

    with pytest.raises(RuntimeError, match="15th"):
        ref.set(date(2024, 3, 1))

    assert [row.key for row in root.tbody.children] == feb_keys
    assert active.subscriber_count == 29
    changed = []
    root.subscribe(changed.append)
    active.set(date(2024, 2, 3))
    assert [n.key for n in changed] == ["2024-02-03"]

    root.dispose()
    assert active.subscriber_count == 0
    assert config.subscriber_count == 0
    assert ref.subscriber_count == 0


def test_failed_first_render_leaks_nothing():
    def broken(_d):
        raise RuntimeError("renderer failed")

    ref = Signal(date(2024, 2, 1))
    active = Signal(None)
    with pytest.raises(RuntimeError):
        CalendarRoot(ref, config=CalendarConfig(cell_renderer=broken), active=active)
    assert ref.subscriber_count == 0
    assert active.subscriber_count == 0


def test_padding_is_marked_and_empty_text_cells_are_not():
    root = CalendarRoot(date(2024, 2, 1), config=CalendarConfig(cell_renderer=lambda d: ""))
    first_row = root.tbody.children[0].children
    assert first_row[0].pad
    assert not any(n.pad for n in first_row[1:])
    assert sum(n.pad for n in root.node.walk()) == 1
