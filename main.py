"""Entry point: loads settings and runs the calendar window."""

import logging

from calendar_window import CalendarWindow
from settings import load_settings


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    cal_win = CalendarWindow(config=load_settings())

    # tkinter main loop on the main thread
    cal_win.root.mainloop()


if __name__ == "__main__":
    main()
