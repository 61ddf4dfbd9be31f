"""Live calendar state for one consumer of a sync adapter.

Mutations are applied locally first and then handed to the adapter as
fire-and-forget persist tasks, in order. Change notifications from the
adapter are turned into tokens on an invalidation queue; a single refetch
task drains the queue and replaces the local aggregate with whatever the
store returns, so the last refetch wins.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Callable

from loguru import logger

import calendar_model
from calendar_model import CalendarData, WorkoutPlan
from drag_controller import ActivationConstraint, DragController
from errors import CalendarError, Notice, describe_error, is_auth_error
from sync_adapter import SyncAdapter


class CalendarSession:
    def __init__(
        self,
        adapter: SyncAdapter,
        on_notice: Callable[[Notice], None] | None = None,
        constraints: dict[str, ActivationConstraint] | None = None,
    ) -> None:
        self.adapter = adapter
        self.on_notice = on_notice
        self.constraints = constraints
        self.calendar = CalendarData()
        self.notices: list[Notice] = []
        self.refetch_count = 0
        self.sign_in_required = False
        self._invalidations: asyncio.Queue | None = None
        self._refetch_task: asyncio.Task | None = None
        self._persist_lock = asyncio.Lock()
        self._persists: set[asyncio.Task] = set()
        self._generation = 0
        self._closed = False

    async def __aenter__(self) -> "CalendarSession":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def open(self) -> None:
        if self._refetch_task is not None:
            raise RuntimeError("session already open")
        self.calendar = await self.adapter.fetch()
        self._invalidations = asyncio.Queue()
        self.adapter.subscribe(self.invalidate)
        self._refetch_task = asyncio.create_task(self._refetch_loop())
        logger.info(
            f"Calendar session opened with {len(self.calendar.plans)} plans "
            f"and {len(self.calendar.scheduled_workouts)} scheduled days"
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.flush()
        self.adapter.unsubscribe()
        if self._refetch_task is not None:
            self._refetch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._refetch_task
            self._refetch_task = None
        logger.info("Calendar session closed")

    def invalidate(self) -> None:
        if self._closed or self._invalidations is None:
            return
        self._invalidations.put_nowait(None)

    async def _refetch_loop(self) -> None:
        queue = self._invalidations
        while True:
            await queue.get()
            drained = 1
            try:
                # Pending local persists land before the store is read back.
                await self.flush()
                while not queue.empty():
                    queue.get_nowait()
                    drained += 1
                generation = self._generation
                fetched = await self.adapter.fetch()
                if generation != self._generation or self._persists:
                    logger.debug("Refetch superseded by a local change")
                    continue
                self.calendar = fetched
                self.refetch_count += 1
                logger.debug(f"Refetched calendar after {drained} notification(s)")
            except Exception as e:
                self._report(e, "loading the calendar")
            finally:
                for _ in range(drained):
                    queue.task_done()

    def _report(self, exc: BaseException, context: str) -> None:
        if is_auth_error(exc):
            self.sign_in_required = True
        notice = Notice(level="error", message=describe_error(exc, context))
        self.notices.append(notice)
        if self.on_notice is not None:
            self.on_notice(notice)

    async def _persist(self, snapshot: CalendarData) -> bool:
        async with self._persist_lock:
            try:
                await self.adapter.persist(snapshot)
                return True
            except CalendarError as e:
                self._report(e, "saving the calendar")
                return False

    def _commit(self, updated: CalendarData) -> CalendarData:
        if self._invalidations is None or self._closed:
            raise RuntimeError("session not open")
        if updated is self.calendar:
            return updated
        self.calendar = updated
        self._generation += 1
        task = asyncio.get_running_loop().create_task(self._persist(updated))
        self._persists.add(task)
        task.add_done_callback(self._persists.discard)
        return updated

    async def flush(self) -> None:
        """Wait for every persist scheduled so far."""
        while self._persists:
            await asyncio.gather(*list(self._persists))

    async def settle(self) -> None:
        """Wait for pending persists and the refetches they triggered."""
        await self.flush()
        if self._invalidations is not None and self._refetch_task is not None:
            await self._invalidations.join()

    def add_plan_to_date(self, plan_id: str, date_key: str) -> CalendarData:
        return self._commit(
            calendar_model.add_plan_to_date(self.calendar, plan_id, date_key)
        )

    def remove_plan_from_date(self, plan_id: str, date_key: str) -> CalendarData:
        return self._commit(
            calendar_model.remove_plan_from_date(self.calendar, plan_id, date_key)
        )

    def add_plan(
        self,
        name: str,
        color: str,
        exercises=(),
        duration: int | None = None,
    ) -> WorkoutPlan:
        updated, plan = calendar_model.add_plan(
            self.calendar, name, color, exercises, duration
        )
        self._commit(updated)
        return plan

    def update_plan(self, plan_id: str, **updates) -> CalendarData:
        return self._commit(
            calendar_model.update_plan(self.calendar, plan_id, **updates)
        )

    def delete_plan(self, plan_id: str) -> CalendarData:
        return self._commit(calendar_model.delete_plan(self.calendar, plan_id))

    def plans_for_date(self, date_key: str) -> list[WorkoutPlan]:
        return calendar_model.plans_for_date(self.calendar, date_key)

    def controller(self) -> DragController:
        return DragController(
            lambda: self.calendar, self.add_plan_to_date, self.constraints
        )
