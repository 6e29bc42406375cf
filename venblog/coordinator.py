"""Rebuild coordination for the venblog dev loop.

Change events can arrive from several threads (file watcher, settle timers)
while a build is running. ``RebuildCoordinator`` serialises builds and
coalesces every event that arrives during a build into a single follow-up
pass: a rebuild always rescans the whole posts directory, so one extra run
captures the latest state.

Key classes:
- CoordinatorState: IDLE or BUILDING.
- RebuildCoordinator: Single-slot latch around a build callable.
"""

from __future__ import annotations

import enum
import threading
from collections.abc import Callable
from typing import Any


class CoordinatorState(enum.Enum):
    IDLE = "idle"
    BUILDING = "building"


class RebuildCoordinator:
    """Runs at most one build at a time and never drops a change.

    Attributes:
        build: Callable performing one full build.
        on_error: Called with the exception when a build raises; the
            coordinator stays usable afterwards.
        state: Current CoordinatorState.
        pending: True when a change arrived during the current build.
        builds_run: Number of build passes started so far.
    """

    def __init__(
        self,
        build: Callable[[], Any],
        on_error: Callable[[Exception], None] | None = None,
    ):
        self.build = build
        self.on_error = on_error
        self.state = CoordinatorState.IDLE
        self.pending = False
        self.builds_run = 0
        self._lock = threading.Lock()

    @property
    def building(self) -> bool:
        return self.state is CoordinatorState.BUILDING

    def request(self) -> bool:
        """Ask for a rebuild.

        If a build is already running the request is folded into the pending
        flag and this returns immediately. Otherwise the caller's thread runs
        the build, then keeps running follow-up passes while new requests
        arrived in the meantime.

        Without an ``on_error`` handler a failed build does not cancel the
        follow-up pass; only the error of the last pass is raised.

        Returns:
            True if this call ran the build(s), False if it was coalesced.
        """
        with self._lock:
            if self.state is CoordinatorState.BUILDING:
                self.pending = True
                return False
            self.state = CoordinatorState.BUILDING
            self.pending = False

        while True:
            error = self._run_once()
            with self._lock:
                if not self.pending:
                    self.state = CoordinatorState.IDLE
                    break
                self.pending = False
        if error is not None:
            raise error
        return True

    def _run_once(self) -> Exception | None:
        self.builds_run += 1
        try:
            self.build()
        except Exception as exc:
            if self.on_error is None:
                return exc
            self.on_error(exc)
        return None

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"RebuildCoordinator(state={self.state.value}, pending={self.pending})"
