"""Adapters between a calendar session and the store that holds its data.

An adapter persists whole ``CalendarData`` aggregates and tells subscribers
that *something* changed. Notifications carry no payload; consumers fetch
again rather than trusting a pushed delta.
"""

from __future__ import annotations

import asyncio
import copy
import sqlite3
from abc import ABC, abstractmethod
from typing import Callable

from loguru import logger

from calendar_model import CalendarData
from db import AsyncCalendarRepository
from errors import PersistError


class SyncAdapter(ABC):
    def __init__(self) -> None:
        self._listeners: list[Callable[[], None]] = []

    @abstractmethod
    async def fetch(self) -> CalendarData:
        """Return the store's current aggregate."""

    @abstractmethod
    async def persist(self, calendar: CalendarData) -> None:
        """Store ``calendar``; raise PersistError when the store rejects it."""

    @property
    def subscribed(self) -> bool:
        return bool(self._listeners)

    def subscribe(self, on_change: Callable[[], None]) -> None:
        self._listeners.append(on_change)

    def unsubscribe(self) -> None:
        if not self._listeners:
            return
        self._listeners.clear()
        logger.debug(f"{type(self).__name__} unsubscribed")

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception as e:
                logger.exception(f"Change listener failed: {e}")


class MemorySyncAdapter(SyncAdapter):
    """Keeps the aggregate in memory; stands in for a local cache or a remote table."""

    def __init__(self, initial: CalendarData | None = None, delay: float = 0.0) -> None:
        super().__init__()
        self._stored = (initial or CalendarData()).to_dict()
        self.delay = delay
        self.fail_next: PersistError | None = None
        self.persist_count = 0

    async def fetch(self) -> CalendarData:
        return CalendarData.from_dict(copy.deepcopy(self._stored))

    async def persist(self, calendar: CalendarData) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error
        self._stored = calendar.to_dict()
        self.persist_count += 1
        self._notify()

    def push_remote(self, calendar: CalendarData) -> None:
        """Replace the stored aggregate as another device would, then notify."""
        self._stored = calendar.to_dict()
        self._notify()


class SqliteSyncAdapter(SyncAdapter):
    """Persists the aggregate into the ``workout_plans`` and ``workout_schedule`` tables."""

    def __init__(self, db_path: str = "workout.db") -> None:
        super().__init__()
        self.repo = AsyncCalendarRepository(db_path)

    async def fetch(self) -> CalendarData:
        return await self.repo.load()

    async def persist(self, calendar: CalendarData) -> None:
        try:
            await self.repo.save(calendar)
        except sqlite3.Error as e:
            raise PersistError(str(e)) from e
        self._notify()
