"""
Derived stop and trip figures.

Pure functions over StopRecord snapshots. Nothing here stores state or
raises on missing data: unavailable figures come back as None (or NaN for
rates), never as a fabricated zero.
"""

import enum
import math
from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional, Sequence

from triplog.app.domain.stops.formatting import parse_time_to_hhmm
from triplog.app.domain.stops.sequence import StopRecord

END_OF_DAY = time(23, 59, 59)
PLACEHOLDER = "—"


def mileage_between(a: StopRecord, b: StopRecord) -> Optional[float]:
    """
    Miles driven from stop a to stop b.

    A consistent odometer pair (b read higher than a) always wins over the
    manually entered mileage_to_next on a.
    """
    if a.odometer_reading is not None and b.odometer_reading is not None:
        if b.odometer_reading > a.odometer_reading:
            return b.odometer_reading - a.odometer_reading
    return a.mileage_to_next


def total_mileage(stops: Sequence[StopRecord]) -> float:
    return sum(mileage_between(a, b) or 0 for a, b in zip(stops, stops[1:]))


def expected_at(stop: StopRecord) -> Optional[datetime]:
    """Expected arrival; a stop with a date but no time is due by 23:59:59."""
    if stop.expected_date is None:
        return None
    if stop.expected_time:
        hour, minute = (int(part) for part in parse_time_to_hhmm(stop.expected_time).split(":"))
        return datetime.combine(stop.expected_date, time(hour, minute))
    return datetime.combine(stop.expected_date, END_OF_DAY)


def is_late(stop: StopRecord) -> bool:
    expected = expected_at(stop)
    if expected is None or stop.completed_at is None:
        return False
    completed = stop.completed_at
    if completed.tzinfo is not None:
        expected = expected.replace(tzinfo=completed.tzinfo)
    return completed > expected


def revenue_per_mile(revenue: Optional[float], miles: Optional[float]) -> float:
    if revenue is None or not miles or miles <= 0:
        return math.nan
    return revenue / miles


def format_rate(rate: Optional[float]) -> str:
    """Render a per-mile rate, or a dash when it is unavailable."""
    if rate is None or math.isnan(rate):
        return PLACEHOLDER
    return f"${rate:.2f}/mi"


def last_odometer_before(stops: Sequence[StopRecord], stop_id: str) -> Optional[float]:
    """Most recent odometer reading on a stop ahead of stop_id."""
    ids = [s.id for s in stops]
    if stop_id not in ids:
        return None
    for stop in reversed(stops[:ids.index(stop_id)]):
        if stop.odometer_reading is not None:
            return stop.odometer_reading
    return None


class AmountField(str, enum.Enum):
    NET = "net"
    TAX = "tax"
    TOTAL = "total"


@dataclass
class AmountReconciler:
    """
    Keeps net, tax (GST) and total consistent on an expense form.

    Whichever field the user touched last decides the direction:
    net -> total = net + tax; total -> net = max(total - tax, 0);
    tax -> recompute total if net is filled, otherwise net if total is.
    """
    net: Optional[float] = None
    tax: Optional[float] = None
    total: Optional[float] = None
    last_edited: Optional[AmountField] = None

    def edit(self, field: AmountField, value: Optional[float]) -> "AmountReconciler":
        field = AmountField(field)
        setattr(self, field.value, value)
        self.last_edited = field
        self.reconcile()
        return self

    def reconcile(self) -> None:
        net = self.net or 0.0
        tax = self.tax or 0.0
        total = self.total or 0.0

        if self.last_edited == AmountField.NET or (self.last_edited == AmountField.TAX and self.net is not None):
            self.total = round(net + tax, 2)
        elif self.last_edited == AmountField.TOTAL or (self.last_edited == AmountField.TAX and self.total is not None):
            self.net = round(max(total - tax, 0.0), 2)
