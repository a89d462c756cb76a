from __future__ import annotations

import asyncio

from pagetest.core import assertions
from pagetest.core.runner import RunnerState, TestRunner
from pagetest.reporting.base import Reporter


class RecordingReporter(Reporter):
    def __init__(self) -> None:
        self.events = []

    def on_start(self, total):
        self.events.append(("start", total))

    def on_case_result(self, result, index, total):
        self.events.append(("case", result.name, index, total))

    def on_complete(self, results, summary):
        self.events.append(("complete", [r.name for r in results], summary.passed, summary.failed))


def test_scenario_pass_and_fail() -> None:
    runner = TestRunner()
    runner.enqueue_test("a+b", lambda: assertions.equal(1 + 1, 2))
    runner.enqueue_test("bad", lambda: assertions.equal(1, 2))
    outcome = asyncio.run(runner.run_pending_tests())
    assert outcome is False
    assert [(r.name, r.passed) for r in runner.results] == [("a+b", True), ("bad", False)]
    assert runner.results[1].error.is_assertion
    assert (runner.passed, runner.failed, runner.total) == (1, 1, 2)


def test_results_follow_registration_order_despite_durations() -> None:
    order = []

    def make(name, delay):
        async def action():
            await asyncio.sleep(delay)
            order.append(name)

        return action

    runner = TestRunner()
    runner.enqueue_test("slow", make("slow", 0.02))
    runner.enqueue_test("fast", make("fast", 0))
    runner.enqueue_test("sync", lambda: order.append("sync"))
    assert asyncio.run(runner.run_pending_tests()) is True
    assert order == ["slow", "fast", "sync"]
    assert [r.name for r in runner.results] == ["slow", "fast", "sync"]


def test_failures_are_isolated() -> None:
    def explode():
        raise ValueError("kaput")

    runner = TestRunner()
    runner.enqueue_test("one", explode)
    runner.enqueue_test("two", lambda: None)
    runner.enqueue_test("three", explode)
    asyncio.run(runner.run_pending_tests())
    assert runner.failed == 2
    assert runner.passed == 1
    error = runner.results[0].error
    assert error.kind == "error"
    assert error.message == "kaput"
    assert error.describe() == ["ValueError: kaput"]


def test_second_trigger_without_registrations_is_a_noop() -> None:
    reporter = RecordingReporter()
    runner = TestRunner(reporters=[reporter])
    runner.enqueue_test("only", lambda: None)

    async def scenario():
        first = await runner.run_pending_tests()
        second = await runner.run_pending_tests()
        return first, second

    assert asyncio.run(scenario()) == (True, None)
    assert [event[0] for event in reporter.events] == ["start", "case", "complete"]
    assert runner.pending == 0


def test_counters_reset_between_batches() -> None:
    runner = TestRunner()
    runner.enqueue_test("fails", lambda: assertions.ok(False))

    async def scenario():
        await runner.run_pending_tests()
        runner.enqueue_test("passes", lambda: None)
        await runner.run_pending_tests()

    asyncio.run(scenario())
    assert (runner.total, runner.passed, runner.failed) == (1, 1, 0)
    assert [r.name for r in runner.results] == ["passes"]
    assert (runner.run_count, runner.any_failed) == (2, True)


def test_registration_during_run_lands_in_next_batch() -> None:
    runner = TestRunner()

    def registers_more():
        runner.enqueue_test("late", lambda: None)

    runner.enqueue_test("early", registers_more)

    async def scenario():
        await runner.run_pending_tests()
        first = [r.name for r in runner.results]
        await runner.run_pending_tests()
        return first, [r.name for r in runner.results]

    assert asyncio.run(scenario()) == (["early"], ["late"])


def test_reentrant_trigger_requests_follow_up_run() -> None:
    runner = TestRunner(debounce=0)
    observed = {}

    async def body():
        observed["state"] = runner.state
        observed["nested"] = await runner.run_pending_tests()
        runner.enqueue_test("follow-up", lambda: None)

    runner.enqueue_test("outer", body)

    async def scenario():
        await runner.run_pending_tests()
        await runner.join()

    asyncio.run(scenario())
    assert observed == {"state": RunnerState.RUNNING, "nested": None}
    assert (runner.run_count, runner.any_failed) == (2, False)
    assert [r.name for r in runner.results] == ["follow-up"]
    assert runner.state is RunnerState.IDLE


def test_auto_run_debounces_registrations() -> None:
    reporter = RecordingReporter()
    runner = TestRunner(reporters=[reporter], debounce=0.01)

    async def scenario():
        runner.content_loaded()
        for index in range(3):
            runner.enqueue_test(f"t{index}", lambda: None)
        await runner.join()

    asyncio.run(scenario())
    starts = [event for event in reporter.events if event[0] == "start"]
    assert starts == [("start", 3)]
    assert (runner.run_count, runner.any_failed) == (1, False)


def test_resources_loaded_triggers_run_after_delay() -> None:
    runner = TestRunner(debounce=0, load_delay=0.01)
    runner.enqueue_test("queued before load", lambda: None)

    async def scenario():
        runner.resources_loaded()
        assert runner.pending == 1
        await runner.join()

    asyncio.run(scenario())
    assert runner.completed
    assert (runner.run_count, runner.any_failed) == (1, False)


def test_registration_before_content_loaded_does_not_schedule() -> None:
    runner = TestRunner(debounce=0)

    async def scenario():
        runner.enqueue_test("waiting", lambda: None)
        await runner.join()

    asyncio.run(scenario())
    assert runner.pending == 1
    assert runner.run_count == 0


def test_alert_receives_failure_notice() -> None:
    notices = []

    async def alert(message):
        notices.append(message)

    runner = TestRunner(alert=alert)
    runner.enqueue_test("bad", lambda: assertions.equal(1, 2))
    runner.enqueue_test("good", lambda: None)
    asyncio.run(runner.run_pending_tests())
    assert notices == ["❌ 1 of 2 tests failed. See console for details."]


def test_no_alert_when_everything_passes() -> None:
    notices = []
    runner = TestRunner(alert=notices.append)
    runner.enqueue_test("good", lambda: None)
    asyncio.run(runner.run_pending_tests())
    assert notices == []
    assert runner.summary().all_passed


def test_reporter_sees_each_case_in_order() -> None:
    reporter = RecordingReporter()
    runner = TestRunner(reporters=[reporter])
    runner.enqueue_test("x", lambda: None)
    runner.enqueue_test("y", lambda: assertions.ok(None))
    asyncio.run(runner.run_pending_tests())
    assert reporter.events == [
        ("start", 2),
        ("case", "x", 1, 2),
        ("case", "y", 2, 2),
        ("complete", ["x", "y"], 1, 1),
    ]


def test_system_exit_in_a_case_is_a_failure() -> None:
    def leaves():
        raise SystemExit(3)

    runner = TestRunner()
    runner.enqueue_test("exits", leaves)
    runner.enqueue_test("after", lambda: None)
    assert asyncio.run(runner.run_pending_tests()) is False
    assert [(r.name, r.passed) for r in runner.results] == [("exits", False), ("after", True)]
    assert runner.results[0].error.describe() == ["SystemExit: 3"]
    assert runner.pending == 0
    assert runner.state is RunnerState.IDLE


class Abort(BaseException):
    pass


def test_interrupted_batch_requeues_unfinished_cases() -> None:
    calls = []

    def interrupt_once():
        calls.append("interrupted")
        if len(calls) == 1:
            raise Abort

    runner = TestRunner()
    runner.enqueue_test("first", lambda: None)
    runner.enqueue_test("interrupted", interrupt_once)
    runner.enqueue_test("never started", lambda: None)

    async def scenario():
        try:
            await runner.run_pending_tests()
        except Abort:
            return "interrupted"
        return "finished"

    assert asyncio.run(scenario()) == "interrupted"
    assert runner.pending == 2
    assert runner.state is RunnerState.IDLE
    assert runner.run_count == 0

    runner.enqueue_test("registered later", lambda: None)
    assert asyncio.run(runner.run_pending_tests()) is True
    assert [r.name for r in runner.results] == ["interrupted", "never started", "registered later"]


def test_any_failed_sticks_after_a_later_passing_run() -> None:
    runner = TestRunner()
    runner.enqueue_test("fails", lambda: assertions.ok(False))
    asyncio.run(runner.run_pending_tests())
    for index in range(3):
        runner.enqueue_test(f"pass {index}", lambda: None)
        asyncio.run(runner.run_pending_tests())
    assert runner.run_count == 4
    assert runner.any_failed
