"""
Stop sequence model.

Holds the ordered stops of one open trip and enforces the structural rules:
contiguous zero-based ordering, an empty start pinned first, a reposition
pinned last, and a floor of two stops.
"""

import copy
import enum
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional

from triplog.app.core.exceptions import FailedPreconditionError, ResourceNotFoundError
from triplog.app.domain.stops.formatting import parse_odometer, parse_time_to_hhmm
from triplog.app.models.enums import StopStatus, StopType

MIN_STOPS = 2


def new_placeholder_id() -> str:
    """Client-side id for a stop that has not been saved yet."""
    return str(uuid.uuid4())


class Direction(str, enum.Enum):
    UP = "up"
    DOWN = "down"


@dataclass
class StopRecord:
    """One stop of the open trip, as held in memory."""
    id: str = field(default_factory=new_placeholder_id)
    type: StopType = StopType.STOP
    order: int = 0
    name: str = ""
    address: str = ""
    location_id: Optional[str] = None
    odometer_reading: Optional[float] = None
    mileage_to_next: Optional[float] = None
    status: StopStatus = StopStatus.PENDING
    completed_at: Optional[datetime] = None
    expected_date: Optional[date] = None
    expected_time: Optional[str] = None
    notes: str = ""

    def __post_init__(self):
        self.type = StopType(self.type)
        self.status = StopStatus(self.status)

    @property
    def is_complete(self) -> bool:
        return self.status == StopStatus.COMPLETE


EDITABLE_FIELDS = frozenset({
    "type",
    "name",
    "address",
    "location_id",
    "odometer_reading",
    "mileage_to_next",
    "status",
    "completed_at",
    "expected_date",
    "expected_time",
    "notes",
})


def validate_arrangement(stops: List[StopRecord]) -> None:
    """
    Check the boundary rules for an ordered list of stops.

    Raises:
        ValueError: more than one empty start/reposition, or one of them
            away from its end of the trip
    """
    last = len(stops) - 1
    starts = [i for i, s in enumerate(stops) if s.type.pinned_first]
    repositions = [i for i, s in enumerate(stops) if s.type.pinned_last]

    if len(starts) > 1:
        raise ValueError("A trip can only have one empty start stop")
    if starts and starts[0] != 0:
        raise ValueError("The empty start stop must be the first stop")
    if len(repositions) > 1:
        raise ValueError("A trip can only have one reposition stop")
    if repositions and repositions[0] != last:
        raise ValueError("The reposition stop must be the last stop")


class StopSequence:
    """
    Ordered stop list for one trip that keeps the boundary rules.

    All operations are synchronous and local. Persisting them is the job of
    PersistenceSynchronizer, which uses snapshot()/restore() to roll back.
    """

    def __init__(
        self,
        trip_id: str,
        stops: Iterable[StopRecord] = (),
        clock: Callable[[], datetime] = datetime.now,
    ):
        stops = list(stops)
        validate_arrangement(stops)
        self.trip_id = trip_id
        self._stops: List[StopRecord] = stops
        self._clock = clock
        self._renumber()

    def __len__(self) -> int:
        return len(self._stops)

    def __iter__(self):
        return iter(self._stops)

    @property
    def stops(self) -> List[StopRecord]:
        return list(self._stops)

    @property
    def stop_ids(self) -> List[str]:
        return [s.id for s in self._stops]

    def index_of(self, stop_id: str) -> int:
        for index, stop in enumerate(self._stops):
            if stop.id == stop_id:
                return index
        raise ResourceNotFoundError("Stop", stop_id)

    def get(self, stop_id: str) -> StopRecord:
        return self._stops[self.index_of(stop_id)]

    def snapshot(self) -> List[StopRecord]:
        """Deep copy of the current list, safe to keep across mutations."""
        return copy.deepcopy(self._stops)

    def restore(self, snapshot: List[StopRecord]) -> None:
        self._stops = copy.deepcopy(snapshot)

    def _renumber(self) -> None:
        for index, stop in enumerate(self._stops):
            stop.order = index

    # Structural operations

    def insert_stop(self, after_order: int, stop: Optional[StopRecord] = None) -> Optional[StopRecord]:
        """
        Insert a stop right after position after_order (-1 inserts at the top).

        Returns the inserted stop, or None when the insert would put a stop
        ahead of the empty start, behind the reposition, or outside the list.
        """
        if after_order < -1 or after_order >= len(self._stops):
            return None

        stop = stop or StopRecord(name="New Stop")
        position = after_order + 1
        candidate = self._stops[:position] + [stop] + self._stops[position:]
        try:
            validate_arrangement(candidate)
        except ValueError:
            return None

        self._stops = candidate
        self._renumber()
        return stop

    def remove_stop(self, stop_id: str) -> StopRecord:
        """
        Remove a stop and close the gap in the ordering.

        Raises:
            ResourceNotFoundError: no stop with this id
            FailedPreconditionError: the trip would drop below two stops
        """
        index = self.index_of(stop_id)
        if len(self._stops) - 1 < MIN_STOPS:
            raise FailedPreconditionError(
                f"A trip must have at least {MIN_STOPS} stops.",
                details={"trip_id": self.trip_id, "stop_id": stop_id, "stop_count": len(self._stops)}
            )
        removed = self._stops.pop(index)
        self._renumber()
        return removed

    def move_stop(self, index: int, direction: Direction) -> bool:
        """
        Swap the stop at index with its neighbour.

        Boundary stops never move and are never displaced; any such request,
        like an out-of-range one, is ignored. Returns True if a swap happened.
        """
        direction = Direction(direction)
        target = index - 1 if direction == Direction.UP else index + 1
        if not (0 <= index < len(self._stops)) or not (0 <= target < len(self._stops)):
            return False

        moving = self._stops[index]
        neighbour = self._stops[target]
        if moving.type.is_boundary:
            return False
        if direction == Direction.UP and neighbour.type.pinned_first:
            return False
        if direction == Direction.DOWN and neighbour.type.pinned_last:
            return False

        self._stops[index], self._stops[target] = neighbour, moving
        self._renumber()
        return True

    # Field operations

    def set_stop_field(self, stop_id: str, field_name: str, value) -> StopRecord:
        """
        Set one field of a stop.

        Completing a stop stamps completed_at (unless already set); reopening
        it clears the stamp. Editing name or address detaches the saved
        location the stop was filled from.

        Raises:
            ValueError: unknown field, or a type change that breaks the
                boundary rules
        """
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown stop field: {field_name}")
        stop = self.get(stop_id)

        if field_name == "type":
            new_type = StopType(value)
            candidate = [copy.copy(s) for s in self._stops]
            candidate[stop.order].type = new_type
            validate_arrangement(candidate)
            stop.type = new_type
        elif field_name == "status":
            stop.status = StopStatus(value)
            if stop.status == StopStatus.COMPLETE:
                if stop.completed_at is None:
                    stop.completed_at = self._clock()
            else:
                stop.completed_at = None
        elif field_name in ("name", "address"):
            value = value or ""
            if value != getattr(stop, field_name):
                stop.location_id = None
            setattr(stop, field_name, value)
        elif field_name in ("odometer_reading", "mileage_to_next"):
            setattr(stop, field_name, parse_odometer(value))
        elif field_name == "expected_date":
            stop.expected_date = date.fromisoformat(value) if isinstance(value, str) and value else (value or None)
        elif field_name == "expected_time":
            stop.expected_time = parse_time_to_hhmm(value) if value and str(value).strip() else None
        elif field_name == "completed_at":
            value = datetime.fromisoformat(value) if isinstance(value, str) and value else (value or None)
            # Driver wall-clock time, same frame as expected_date/expected_time
            stop.completed_at = value.replace(tzinfo=None) if value is not None else None
        elif field_name == "notes":
            stop.notes = value or ""
        else:
            setattr(stop, field_name, value)
        return stop

    def select_location(self, stop_id: str, location_id: str, name: str, address: str) -> StopRecord:
        """Fill a stop from a saved location (copied, not live-linked)."""
        stop = self.get(stop_id)
        stop.name = name or ""
        stop.address = address or ""
        stop.location_id = location_id
        return stop

    def current_stop_index(self) -> int:
        """Index of the first pending stop; len(self) once all are complete."""
        for index, stop in enumerate(self._stops):
            if not stop.is_complete:
                return index
        return len(self._stops)
