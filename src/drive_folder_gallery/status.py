"""Console status lines and progress bars shared by the scraper and sampler."""

from __future__ import annotations

import sys
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Optional, TextIO

from tqdm import tqdm


def format_status(action: str, detail: str) -> str:
    """Return ``action`` and ``detail`` joined into one status line."""

    action = action.strip()
    detail = detail.strip()
    if not action:
        return detail
    if not detail:
        return action
    return f"{action} {detail}"


@dataclass
class StatusReporter(AbstractContextManager["StatusReporter"]):
    """Print status lines while keeping an optional progress bar at the bottom.

    The bar is only created once a total is known, so the scraper can
    start logging before it knows how many tiles the folder holds.
    """

    total: Optional[int] = None
    description: str = ""
    unit: str = "item"
    disable: Optional[bool] = None
    stream: TextIO = field(default_factory=lambda: sys.stdout)

    def __post_init__(self) -> None:
        self._bar = None
        if self.disable is None:
            self.disable = not self.stream.isatty()
        if self.total is not None:
            self.set_total(self.total)

    def _new_bar(self, total: int):
        return tqdm(
            total=total,
            desc=self.description,
            unit=self.unit,
            dynamic_ncols=True,
            leave=False,
            file=self.stream,
            disable=self.disable,
        )

    def log(self, message: str) -> None:
        if self._bar is not None:
            tqdm.write(message, file=self.stream)
        else:
            print(message, file=self.stream, flush=True)

    def log_status(self, action: str, detail: str) -> None:
        self.log(format_status(action, detail))

    def warn(self, message: str) -> None:
        self.log(f"Warning: {message}")

    def set_total(self, total: int) -> None:
        if self._bar is None:
            self._bar = self._new_bar(total)
        else:
            self._bar.total = total
            self._bar.refresh()

    def set_count(self, count: int) -> None:
        """Move the bar to an absolute ``count``, growing the total if needed."""

        if self._bar is None:
            self.set_total(count)
        if count > (self._bar.total or 0):
            self._bar.total = count
        self._bar.n = count
        self._bar.refresh()

    def advance(self, amount: int = 1) -> None:
        if self._bar is None:
            return
        self._bar.update(amount)

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    def __exit__(self, exc_type, exc, exc_tb):
        self.close()
        return False
