"""
Persistence synchronizer.

Applies each stop mutation to the in-memory sequence first, then writes it
to the store. If the store fails, the sequence goes back to the snapshot
taken before the mutation (all of it, never a partial undo) and a SyncError
is raised for the caller to show.
"""

import logging
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Callable, List, Optional, Protocol

from triplog.app.core.exceptions import SyncError
from triplog.app.domain.stops.commands import RemoteOp, RemoteOpKind, StopCommand
from triplog.app.domain.stops.sequence import Direction, StopRecord, StopSequence
from triplog.app.models.enums import StopStatus
from triplog.app.services.tenancy import TenantContext

logger = logging.getLogger(__name__)


class StopStore(Protocol):
    """Row-level writes against the stops table, scoped to one tenant."""

    def transaction(self) -> AbstractAsyncContextManager: ...

    async def insert_stop(self, tenant: TenantContext, trip_id: str, stop: StopRecord) -> None: ...

    async def update_stop(self, tenant: TenantContext, trip_id: str, stop: StopRecord) -> None: ...

    async def delete_stop(self, tenant: TenantContext, trip_id: str, stop_id: str) -> None: ...

    async def rewrite_order(self, tenant: TenantContext, trip_id: str, stop_ids: List[str]) -> None: ...


class PersistenceSynchronizer:
    """
    Bridges StopSequence operations to a StopStore.

    No retries and no read-back: a successful write leaves the local state
    as it is, a failed one restores the snapshot owned by that command only.
    """

    def __init__(self, sequence: StopSequence, store: StopStore, tenant: TenantContext):
        self.sequence = sequence
        self.store = store
        self.tenant = tenant
        self.history: List[StopCommand] = []

    def _record(self, action: str, mutate: Callable, remote_ops: Callable) -> Optional[StopCommand]:
        """Run a local mutation and wrap it in a command; None if it was a no-op."""
        prior = self.sequence.snapshot()
        try:
            result = mutate()
        except Exception:
            self.sequence.restore(prior)
            raise
        if result is None or result is False:
            return None
        return StopCommand(
            action=action,
            prior=prior,
            after=self.sequence.snapshot(),
            remote_ops=remote_ops(result),
            result=result,
        )

    async def execute(self, command: StopCommand) -> StopCommand:
        try:
            async with self.store.transaction():
                for op in command.remote_ops:
                    await self._send(op)
        except Exception as exc:
            self.sequence.restore(command.prior)
            logger.warning(
                "Rolled back '%s' on trip %s: %s",
                command.action, self.sequence.trip_id, exc,
            )
            raise SyncError(
                command.action,
                str(exc),
                details={"trip_id": self.sequence.trip_id},
            ) from exc
        self.history.append(command)
        return command

    async def _send(self, op: RemoteOp) -> None:
        trip_id = self.sequence.trip_id
        if op.kind == RemoteOpKind.INSERT:
            await self.store.insert_stop(self.tenant, trip_id, op.stop)
        elif op.kind == RemoteOpKind.UPDATE:
            await self.store.update_stop(self.tenant, trip_id, op.stop)
        elif op.kind == RemoteOpKind.DELETE:
            await self.store.delete_stop(self.tenant, trip_id, op.stop_id)
        elif op.kind == RemoteOpKind.REORDER:
            await self.store.rewrite_order(self.tenant, trip_id, list(op.stop_ids))

    # Operations

    async def insert_stop(self, after_order: int, stop: Optional[StopRecord] = None) -> Optional[StopRecord]:
        command = self._record(
            "add stop",
            lambda: self.sequence.insert_stop(after_order, stop),
            lambda inserted: [RemoteOp.insert(inserted), RemoteOp.reorder(self.sequence.stop_ids)],
        )
        if command is None:
            return None
        await self.execute(command)
        return command.result

    async def remove_stop(self, stop_id: str) -> StopRecord:
        # FailedPreconditionError comes straight from the model, before any write
        command = self._record(
            "delete stop",
            lambda: self.sequence.remove_stop(stop_id),
            lambda removed: [RemoteOp.delete(removed.id), RemoteOp.reorder(self.sequence.stop_ids)],
        )
        await self.execute(command)
        return command.result

    async def move_stop(self, index: int, direction: Direction) -> bool:
        command = self._record(
            "reorder stops",
            lambda: self.sequence.move_stop(index, direction),
            lambda _: [RemoteOp.reorder(self.sequence.stop_ids)],
        )
        if command is None:
            return False
        await self.execute(command)
        return True

    async def set_stop_field(self, stop_id: str, field_name: str, value) -> StopRecord:
        return await self.set_stop_fields(stop_id, {field_name: value})

    async def set_stop_fields(self, stop_id: str, values: dict, action: str = "save stop") -> StopRecord:
        """Apply several field edits as one command (one update, one rollback)."""
        def mutate():
            stop = None
            for field_name, value in values.items():
                stop = self.sequence.set_stop_field(stop_id, field_name, value)
            return stop or self.sequence.get(stop_id)

        command = self._record(action, mutate, lambda stop: [RemoteOp.update(stop)])
        await self.execute(command)
        return command.result

    async def complete_stop(self, stop_id: str, completed_at: Optional[datetime] = None) -> StopRecord:
        values = {"status": StopStatus.COMPLETE}
        if completed_at is not None:
            values = {"completed_at": completed_at, **values}
        return await self.set_stop_fields(stop_id, values, action="complete stop")

    async def uncomplete_stop(self, stop_id: str) -> StopRecord:
        return await self.set_stop_fields(stop_id, {"status": StopStatus.PENDING}, action="update stop")

    async def select_location(self, stop_id: str, location_id: str, name: str, address: str) -> StopRecord:
        command = self._record(
            "save stop",
            lambda: self.sequence.select_location(stop_id, location_id, name, address),
            lambda stop: [RemoteOp.update(stop)],
        )
        await self.execute(command)
        return command.result
