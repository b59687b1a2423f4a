"""
Command objects for stop mutations.

A command records the list before and after a local change plus the remote
writes that persist it, so undoing any command is the same operation:
restore the prior snapshot.
"""

import copy
import enum
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from triplog.app.domain.stops.sequence import StopRecord


class RemoteOpKind(str, enum.Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    REORDER = "reorder"


@dataclass(frozen=True)
class RemoteOp:
    """One write against the stops table."""
    kind: RemoteOpKind
    stop: Optional[StopRecord] = None
    stop_id: Optional[str] = None
    stop_ids: Tuple[str, ...] = ()

    @classmethod
    def insert(cls, stop: StopRecord) -> "RemoteOp":
        return cls(RemoteOpKind.INSERT, stop=copy.deepcopy(stop), stop_id=stop.id)

    @classmethod
    def update(cls, stop: StopRecord) -> "RemoteOp":
        return cls(RemoteOpKind.UPDATE, stop=copy.deepcopy(stop), stop_id=stop.id)

    @classmethod
    def delete(cls, stop_id: str) -> "RemoteOp":
        return cls(RemoteOpKind.DELETE, stop_id=stop_id)

    @classmethod
    def reorder(cls, stop_ids) -> "RemoteOp":
        """Rewrite stop_order for every stop of the trip, in list order."""
        return cls(RemoteOpKind.REORDER, stop_ids=tuple(stop_ids))


@dataclass
class StopCommand:
    action: str
    prior: List[StopRecord]
    after: List[StopRecord]
    remote_ops: List[RemoteOp] = field(default_factory=list)
    result: Any = None
