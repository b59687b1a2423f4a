"""
Unit tests for the stop sequence model.

Covers ordering, the boundary lock on empty start / reposition stops,
the two-stop floor and field edits.
"""

import itertools
import random
from datetime import datetime

import pytest

from triplog.app.core.exceptions import FailedPreconditionError, ResourceNotFoundError
from triplog.app.domain.stops.sequence import (
    Direction, StopRecord, StopSequence, validate_arrangement
)
from triplog.app.models.enums import StopStatus, StopType

FIXED_NOW = datetime(2026, 2, 6, 15, 30)


def make_sequence(*types, clock=lambda: FIXED_NOW) -> StopSequence:
    stops = [StopRecord(id=f"s{i}", type=t, name=f"Stop {i}") for i, t in enumerate(types)]
    return StopSequence("trip-1", stops, clock=clock)


def full_trip() -> StopSequence:
    return make_sequence(
        StopType.EMPTY_START, StopType.PICKUP, StopType.STOP,
        StopType.DELIVERY, StopType.REPOSITION,
    )


def assert_contiguous(sequence: StopSequence):
    assert [s.order for s in sequence] == list(range(len(sequence)))


# Construction

def test_constructor_renumbers_orders():
    stops = [StopRecord(id="a", order=7), StopRecord(id="b", order=3)]
    sequence = StopSequence("trip-1", stops)
    assert [s.order for s in sequence] == [0, 1]


def test_constructor_rejects_empty_start_not_first():
    with pytest.raises(ValueError):
        make_sequence(StopType.PICKUP, StopType.EMPTY_START)


def test_constructor_rejects_reposition_not_last():
    with pytest.raises(ValueError):
        make_sequence(StopType.REPOSITION, StopType.DELIVERY)


def test_constructor_rejects_two_empty_starts():
    with pytest.raises(ValueError):
        validate_arrangement([
            StopRecord(type=StopType.EMPTY_START),
            StopRecord(type=StopType.EMPTY_START),
        ])


def test_empty_sequence_is_allowed():
    sequence = StopSequence("trip-1")
    assert len(sequence) == 0
    assert sequence.current_stop_index() == 0


# insert_stop

def test_insert_defaults_to_intermediate_stop_and_renumbers():
    sequence = full_trip()
    inserted = sequence.insert_stop(1)

    assert inserted is not None
    assert inserted.type == StopType.STOP
    assert sequence.stop_ids[2] == inserted.id
    assert sequence.stop_ids[3:] == ["s2", "s3", "s4"]
    assert_contiguous(sequence)


def test_insert_before_empty_start_is_ignored():
    sequence = full_trip()
    before = sequence.stop_ids

    assert sequence.insert_stop(-1) is None
    assert sequence.stop_ids == before


def test_insert_after_reposition_is_ignored():
    sequence = full_trip()
    before = sequence.stop_ids

    assert sequence.insert_stop(4) is None
    assert sequence.stop_ids == before


def test_insert_at_top_without_empty_start():
    sequence = make_sequence(StopType.PICKUP, StopType.DELIVERY)
    inserted = sequence.insert_stop(-1)

    assert sequence.stop_ids[0] == inserted.id
    assert_contiguous(sequence)


def test_insert_out_of_range_is_ignored():
    sequence = make_sequence(StopType.PICKUP, StopType.DELIVERY)
    assert sequence.insert_stop(5) is None
    assert sequence.insert_stop(-2) is None
    assert len(sequence) == 2


def test_insert_second_empty_start_is_ignored():
    sequence = full_trip()
    assert sequence.insert_stop(1, StopRecord(type=StopType.EMPTY_START)) is None
    assert len(sequence) == 5


# remove_stop

def test_remove_renumbers_followers():
    sequence = full_trip()
    removed = sequence.remove_stop("s2")

    assert removed.id == "s2"
    assert sequence.stop_ids == ["s0", "s1", "s3", "s4"]
    assert_contiguous(sequence)


def test_remove_below_floor_raises_and_keeps_list():
    sequence = make_sequence(StopType.PICKUP, StopType.DELIVERY)

    with pytest.raises(FailedPreconditionError) as exc_info:
        sequence.remove_stop("s0")

    assert exc_info.value.status_code == 409
    assert sequence.stop_ids == ["s0", "s1"]
    assert_contiguous(sequence)


def test_remove_unknown_stop_raises_not_found():
    sequence = full_trip()
    with pytest.raises(ResourceNotFoundError):
        sequence.remove_stop("nope")


# move_stop

def test_move_swaps_neighbours():
    sequence = full_trip()
    assert sequence.move_stop(2, Direction.UP) is True
    assert sequence.stop_ids == ["s0", "s2", "s1", "s3", "s4"]
    assert_contiguous(sequence)


@pytest.mark.parametrize("index, direction", [
    (0, Direction.DOWN),   # empty start never moves
    (4, Direction.UP),     # reposition never moves
    (1, Direction.UP),     # would displace the empty start
    (3, Direction.DOWN),   # would displace the reposition
    (0, Direction.UP),     # out of bounds
    (4, Direction.DOWN),   # out of bounds
    (9, Direction.UP),     # out of bounds
])
def test_move_boundary_cases_are_noops(index, direction):
    sequence = full_trip()
    before = sequence.stop_ids

    assert sequence.move_stop(index, direction) is False
    assert sequence.stop_ids == before


def test_move_accepts_plain_strings():
    sequence = full_trip()
    assert sequence.move_stop(1, "down") is True
    assert sequence.stop_ids[:3] == ["s0", "s2", "s1"]


def test_boundary_stops_never_move_under_random_moves():
    sequence = full_trip()
    rng = random.Random(42)

    for _ in range(200):
        sequence.move_stop(rng.randrange(-1, 6), rng.choice([Direction.UP, Direction.DOWN]))
        assert sequence.stops[0].id == "s0"
        assert sequence.stops[-1].id == "s4"
        assert_contiguous(sequence)


def test_contiguity_holds_for_mixed_operations():
    sequence = full_trip()
    rng = random.Random(7)
    counter = itertools.count()

    for _ in range(300):
        op = rng.choice(["insert", "remove", "move"])
        if op == "insert":
            sequence.insert_stop(rng.randrange(-1, len(sequence) + 1), StopRecord(id=f"n{next(counter)}"))
        elif op == "remove":
            try:
                sequence.remove_stop(rng.choice(sequence.stop_ids))
            except FailedPreconditionError:
                assert len(sequence) == 2
        else:
            sequence.move_stop(rng.randrange(len(sequence)), rng.choice(list(Direction)))

        assert_contiguous(sequence)
        assert len(set(sequence.stop_ids)) == len(sequence)
        validate_arrangement(sequence.stops)


# set_stop_field

def test_complete_sets_completed_at_once():
    sequence = full_trip()
    stop = sequence.set_stop_field("s0", "status", StopStatus.COMPLETE)

    assert stop.status == StopStatus.COMPLETE
    assert stop.completed_at == FIXED_NOW


def test_complete_keeps_existing_completed_at():
    sequence = full_trip()
    earlier = datetime(2026, 2, 6, 9, 0)
    sequence.set_stop_field("s0", "completed_at", earlier)
    stop = sequence.set_stop_field("s0", "status", "complete")

    assert stop.completed_at == earlier


def test_reopen_clears_completed_at():
    sequence = full_trip()
    sequence.set_stop_field("s0", "status", StopStatus.COMPLETE)
    stop = sequence.set_stop_field("s0", "status", StopStatus.PENDING)

    assert stop.completed_at is None


def test_completing_moves_current_stop_forward():
    sequence = full_trip()
    assert sequence.current_stop_index() == 0

    sequence.set_stop_field("s0", "status", StopStatus.COMPLETE)
    assert sequence.current_stop_index() == 1

    for stop_id in sequence.stop_ids:
        sequence.set_stop_field(stop_id, "status", StopStatus.COMPLETE)
    assert sequence.current_stop_index() == len(sequence)


def test_current_stop_is_first_pending_even_with_gaps():
    sequence = full_trip()
    sequence.set_stop_field("s2", "status", StopStatus.COMPLETE)
    assert sequence.current_stop_index() == 0


def test_editing_name_detaches_location():
    sequence = full_trip()
    sequence.select_location("s1", "loc-1", "Walmart DC", "1 Dock Rd, Bentonville, AR 72712")
    assert sequence.get("s1").location_id == "loc-1"

    stop = sequence.set_stop_field("s1", "name", "Walmart DC #2")
    assert stop.location_id is None
    assert stop.address == "1 Dock Rd, Bentonville, AR 72712"


def test_same_name_keeps_location():
    sequence = full_trip()
    sequence.select_location("s1", "loc-1", "Walmart DC", "1 Dock Rd")
    stop = sequence.set_stop_field("s1", "name", "Walmart DC")
    assert stop.location_id == "loc-1"


def test_odometer_and_time_are_normalized():
    sequence = full_trip()
    stop = sequence.set_stop_field("s1", "odometer_reading", "123,456 mi")
    assert stop.odometer_reading == 123456.0

    stop = sequence.set_stop_field("s1", "expected_time", "2:30 PM")
    assert stop.expected_time == "14:30"

    stop = sequence.set_stop_field("s1", "expected_date", "2026-02-06")
    assert stop.expected_date.isoformat() == "2026-02-06"


def test_type_change_breaking_boundary_raises():
    sequence = full_trip()
    with pytest.raises(ValueError):
        sequence.set_stop_field("s2", "type", StopType.REPOSITION)
    assert sequence.get("s2").type == StopType.STOP


def test_unknown_field_raises():
    sequence = full_trip()
    with pytest.raises(ValueError):
        sequence.set_stop_field("s1", "order", 3)


def test_snapshot_is_independent_copy():
    sequence = full_trip()
    snapshot = sequence.snapshot()
    sequence.set_stop_field("s1", "name", "Changed")
    sequence.remove_stop("s2")

    sequence.restore(snapshot)
    assert sequence.stop_ids == ["s0", "s1", "s2", "s3", "s4"]
    assert sequence.get("s1").name == "Stop 1"
