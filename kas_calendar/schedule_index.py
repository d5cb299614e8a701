"""Lookup of the schedule window covering a given date.

Windows are kept in the order the schedule directory returned them. When
windows overlap, the first one in stored order wins; overlaps and
out-of-order start dates are reported as warnings but never reordered.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .data_models import ScheduleWindow
from .utils import DEFAULT_PAY_DAY

logger = logging.getLogger(__name__)


def _effective_end(windows: Sequence[ScheduleWindow], i: int) -> Tuple[Optional[date], bool]:
    """Return ``(end, inclusive)`` for window ``i``.

    An explicit end date is inclusive. An open window ends (exclusively) where
    the next window starts; the last open window is unbounded (``None``).
    """
    window = windows[i]
    if window.end_date is not None:
        return window.end_date, True
    if i + 1 < len(windows):
        return windows[i + 1].start_date, False
    return None, False


def _covers(windows: Sequence[ScheduleWindow], i: int, target: date) -> bool:
    if target < windows[i].start_date:
        return False
    end, inclusive = _effective_end(windows, i)
    if end is None:
        return True
    return target <= end if inclusive else target < end


def resolve_window(windows: Sequence[ScheduleWindow], target: date) -> Optional[ScheduleWindow]:
    """Return the first window whose effective interval contains ``target``."""
    for i in range(len(windows)):
        if _covers(windows, i, target):
            return windows[i]
    return None


def find_overlaps(windows: Sequence[ScheduleWindow]) -> List[Tuple[int, int]]:
    """Return index pairs of windows whose effective intervals intersect.

    Only windows with an explicit end can overlap a later window; an open
    window is cut off by its successor by construction.
    """
    overlaps: List[Tuple[int, int]] = []
    for i in range(len(windows)):
        end_i, incl_i = _effective_end(windows, i)
        for j in range(i + 1, len(windows)):
            end_j, incl_j = _effective_end(windows, j)
            # i starts before j ends and j starts before i ends
            if end_j is not None:
                if windows[i].start_date > end_j or (not incl_j and windows[i].start_date == end_j):
                    continue
            if end_i is not None:
                if windows[j].start_date > end_i or (not incl_i and windows[j].start_date == end_i):
                    continue
            overlaps.append((i, j))
    return overlaps


def find_ordering_problems(windows: Sequence[ScheduleWindow]) -> List[int]:
    """Return indices of windows that start before their predecessor."""
    return [
        i for i in range(1, len(windows))
        if windows[i].start_date < windows[i - 1].start_date
    ]


class ScheduleWindowIndex:
    """Immutable snapshot of the schedule windows with date lookup."""

    def __init__(self, windows: Iterable[ScheduleWindow] = ()) -> None:
        self._windows: Tuple[ScheduleWindow, ...] = tuple(windows)
        for i in find_ordering_problems(self._windows):
            logger.warning(
                "Schedule window %d (start %s) starts before window %d (start %s); "
                "keeping stored order",
                i, self._windows[i].start_date, i - 1, self._windows[i - 1].start_date,
            )
        for i, j in find_overlaps(self._windows):
            logger.warning(
                "Schedule windows %d and %d overlap; dates in both resolve to window %d",
                i, j, i,
            )

    def __len__(self) -> int:
        return len(self._windows)

    def __iter__(self) -> Iterator[ScheduleWindow]:
        return iter(self._windows)

    def __bool__(self) -> bool:
        return bool(self._windows)

    @property
    def windows(self) -> Tuple[ScheduleWindow, ...]:
        return self._windows

    @property
    def default_pay_day(self) -> int:
        """Pay day of the first configured window, or Friday without windows."""
        if self._windows:
            return self._windows[0].pay_day_of_week
        return DEFAULT_PAY_DAY

    def resolve(self, target: date) -> Optional[ScheduleWindow]:
        return resolve_window(self._windows, target)
