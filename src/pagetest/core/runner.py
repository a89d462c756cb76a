"""Test runner draining the registration queue one case at a time."""
from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Set, Union

from pagetest.reporting.base import ReportManager, Reporter
from pagetest.utils import maybe_await

from .models import TestAction, TestCase
from .results import Failure, RunResult, RunSummary

DEFAULT_DEBOUNCE_S = 0.05
DEFAULT_LOAD_DELAY_S = 0.1

AlertCallback = Callable[[str], Union[Any, Awaitable[Any]]]


class RunnerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    REPORTING = "reporting"


class TestRunner:
    """Owns the pending queue, the run lifecycle and the per-run counters.

    Runs move ``IDLE -> RUNNING -> REPORTING -> IDLE``. Registrations are
    accepted in every state; a run captures and clears the queue in one step,
    so anything registered while it executes lands in the next batch.
    Requests that arrive while a run is active are served by a follow-up
    run once the active one has reported.
    """

    __test__ = False

    def __init__(
        self,
        *,
        reporters: Sequence[Reporter] = (),
        alert: Optional[AlertCallback] = None,
        debounce: float = DEFAULT_DEBOUNCE_S,
        load_delay: float = DEFAULT_LOAD_DELAY_S,
    ) -> None:
        self.passed = 0
        self.failed = 0
        self.total = 0
        self.started_at = 0.0
        self.results: List[RunResult] = []
        self.run_count = 0
        self.any_failed = False
        self.state = RunnerState.IDLE
        self.completed = False
        self._queue: List[TestCase] = []
        self._report = ReportManager(reporters)
        self._alert = alert
        self._debounce = debounce
        self._load_delay = load_delay
        self._content_loaded = False
        self._auto_run_scheduled = False
        self._rerun_requested = False
        self._timers: Set[asyncio.TimerHandle] = set()
        self._tasks: Set[asyncio.Future] = set()
        self._task_errors: List[BaseException] = []

    @property
    def pending(self) -> int:
        return len(self._queue)

    def enqueue_test(self, name: str, action: TestAction) -> TestCase:
        case = TestCase(name=name, action=action)
        self._queue.append(case)
        if self._content_loaded:
            self.schedule_auto_run()
        return case

    def content_loaded(self) -> None:
        """Initial-content-loaded signal: later registrations auto-run."""

        self._content_loaded = True
        self.schedule_auto_run()

    def resources_loaded(self) -> None:
        """Full-resource-loaded signal: request a run after the load delay."""

        self._call_later(self._load_delay, self.schedule_auto_run)

    def schedule_auto_run(self) -> None:
        """Request a run; requests inside one debounce window collapse into one."""

        if self._auto_run_scheduled:
            return
        if self._call_later(self._debounce, self._fire_auto_run):
            self._auto_run_scheduled = True

    def start(self) -> None:
        self.passed = 0
        self.failed = 0
        self.total = 0
        self.results = []
        self.started_at = time.perf_counter()

    async def run_pending_tests(self) -> Optional[bool]:
        """Run the current batch; ``None`` when there was nothing to do.

        Returns ``True`` when every case in the batch passed.
        """

        if self.state is not RunnerState.IDLE:
            self._rerun_requested = True
            return None
        if not self._queue:
            return None
        self.state = RunnerState.RUNNING
        try:
            self.start()
            batch, self._queue = self._queue, []
            self.total = len(batch)
            self._report.start(self.total)
            done = 0
            try:
                for index, case in enumerate(batch, start=1):
                    result = await self._execute_case(case)
                    done = index
                    if result.passed:
                        self.passed += 1
                    else:
                        self.failed += 1
                    self.results.append(result)
                    self._report.handle_result(result, index, self.total)
            except BaseException:
                # Cases that never finished go back to the front of the queue.
                self._queue[:0] = batch[done:]
                raise
            self.state = RunnerState.REPORTING
            outcome = await self._log_summary()
        finally:
            self.state = RunnerState.IDLE
            if self._rerun_requested:
                self._rerun_requested = False
                if self._queue:
                    self.schedule_auto_run()
        self.run_count += 1
        if not outcome:
            self.any_failed = True
        return outcome

    def summary(self) -> RunSummary:
        return RunSummary.from_results(self.results, self.started_at)

    async def join(self) -> None:
        """Wait until no run is armed or in flight."""

        loop = asyncio.get_running_loop()
        while self._timers or self._tasks:
            if self._tasks:
                await asyncio.wait(set(self._tasks))
                continue
            wake_at = min(handle.when() for handle in self._timers)
            await asyncio.sleep(max(wake_at - loop.time(), 0.0))
        if self._task_errors:
            raise self._task_errors.pop(0)

    def cancel_scheduled(self) -> None:
        for handle in list(self._timers):
            handle.cancel()
        self._timers.clear()
        self._auto_run_scheduled = False

    async def _execute_case(self, case: TestCase) -> RunResult:
        start = time.perf_counter()
        try:
            await maybe_await(case.action())
        except (Exception, SystemExit) as exc:
            duration = time.perf_counter() - start
            return RunResult(
                name=case.name,
                passed=False,
                error=Failure.from_exception(exc),
                duration_s=duration,
            )
        return RunResult(name=case.name, passed=True, duration_s=time.perf_counter() - start)

    async def _log_summary(self) -> bool:
        summary = self.summary()
        self._report.complete(list(self.results), summary)
        if self.failed and self._alert is not None:
            notice = f"❌ {self.failed} of {self.total} tests failed. See console for details."
            await maybe_await(self._alert(notice))
        self.completed = True
        return self.failed == 0

    def _fire_auto_run(self) -> None:
        self._auto_run_scheduled = False
        task = asyncio.ensure_future(self.run_pending_tests())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _call_later(self, delay: float, callback: Callable[[], None]) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Outside an event loop the caller triggers runs explicitly.
            return False
        handle: Optional[asyncio.TimerHandle] = None

        def fire() -> None:
            self._timers.discard(handle)  # type: ignore[arg-type]
            callback()

        handle = loop.call_later(delay, fire)
        self._timers.add(handle)
        return True

    def _task_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self._task_errors.append(task.exception())  # type: ignore[arg-type]
