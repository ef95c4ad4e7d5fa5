"""Terminal Matrix client: curses render loop, component model and login flow."""

__version__ = "0.1.0"
APP_NAME = "matrix-tui"
