from __future__ import annotations

import threading
from typing import Iterable, Iterator, Optional


class IterableLineSource:
    """Line source over any iterable of strings (lists, open text files)."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines: Iterator[str] = iter(lines)

    def read_line(self, cancelled: threading.Event) -> Optional[str]:
        if cancelled.is_set():
            return None
        return next(self._lines, None)
