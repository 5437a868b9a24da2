from collections import deque

from loguru import logger

MODES = ("console", "log")


class Notifier:
    """Operator alerts for things a rerun cannot fix by itself."""

    def __init__(self, mode="console", keep=100):
        if mode not in MODES:
            raise ValueError(f"unknown notifier mode {mode!r}; expected one of {MODES}")
        self.mode = mode
        # most recent alerts only
        self.sent: deque[tuple[str, str]] = deque(maxlen=keep)

    def notify(self, title: str, message: str):
        self.sent.append((title, message))
        if self.mode == "console":
            print(f"[stale-cleaner] {title}: {message}")
        else:
            logger.warning(f"{title}: {message}")
