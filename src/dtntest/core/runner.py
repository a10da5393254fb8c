"""Test execution orchestration."""

import logging
from typing import Mapping, Optional

from rich.console import Console

from dtntest import debug
from dtntest.config import RunConfiguration
from dtntest.core.registry import TestRegistry
from dtntest.core.selection import Selection, resolve_selection
from dtntest.models import SweepSummary, TestOutcome, TestStatus
from dtntest.modes import ModeRunner, run_mode

log = logging.getLogger(__name__)

# Long running or destructive tests that are never run a second time.
NON_RETRYABLE_TESTS = frozenset(
    {
        "stress",
        "fuzz",
        "fuzz_initial",
        "cnx_stress",
        "cnx_ddos",
        "eccf_corrupted_fuzz",
    }
)


def format_tried_line(tried: int, failed: int) -> str:
    """Format the aggregate line, e.g. "Tried 4 tests, 1 fails."."""
    return f"Tried {tried} tests, {failed} fail{'s' if failed == 1 else ''}."


class TestHarness:
    """Runs the registered tests one at a time and reports on them."""

    __test__ = False

    def __init__(
        self,
        registry: TestRegistry,
        console: Optional[Console] = None,
        mode_runners: Optional[Mapping[str, ModeRunner]] = None,
    ):
        """Initialize the harness.

        Args:
            registry: The tests, in ordinal order
            console: Sink for progress and summary lines (default: stdout)
            mode_runners: Runners for the alternate modes, keyed by mode name
        """
        self.registry = registry
        self.console = console or Console(soft_wrap=True, highlight=False)
        self.mode_runners = dict(mode_runners or {})
        self._outcomes: list[TestOutcome] = []

    def run(self, config: RunConfiguration) -> SweepSummary:
        """Run one invocation: select, sweep, report and optionally retry.

        Raises:
            UnknownTestError: If the configuration names an unknown test
        """
        selection = resolve_selection(self.registry, config)
        self._outcomes = [
            TestOutcome(ordinal=i, name=test.name, status=selection.statuses[i])
            for i, test in enumerate(self.registry)
        ]
        summary = SweepSummary(outcomes=self._outcomes)
        log.debug("%d of %d tests selected", len(selection.selected()), len(self.registry))

        if config.suspend_debug:
            debug.suspend()
        else:
            debug.resume()

        if config.mode is not None:
            summary.mode_result = run_mode(config.mode, self.mode_runners)

        self._sweep(selection, summary)
        self._report(summary)

        if summary.failed > 0 and config.suspend_debug and config.retry_failed:
            self._retry(summary)

        log.debug("Sweep finished: %s", summary.to_dict())
        return summary

    def run_one(self, ordinal: int) -> int:
        """Invoke one test, printing its start and result lines."""
        test = self.registry.entry(ordinal)
        self._emit(f"Starting test number {ordinal}, {test.name}")

        try:
            result = test.run()
        except Exception:
            log.exception("Test %s raised an exception", test.name)
            result = -1

        if result == 0:
            self._emit("    Success.")
        else:
            self._emit(f"    Fails, error: {result}.")
        return result

    def _sweep(self, selection: Selection, summary: SweepSummary) -> None:
        for outcome in self._outcomes:
            if outcome.status == TestStatus.EXCLUDED:
                if outcome.ordinal in selection.explicit_exclusions and not selection.auto_bypass:
                    self._emit(f"Test number {outcome.ordinal} ({outcome.name}) is bypassed.")
                continue
            if not selection.in_range(outcome.ordinal):
                continue

            summary.tried += 1
            outcome.record(self.run_one(outcome.ordinal))
            if outcome.status == TestStatus.FAILED:
                summary.failed += 1

    def _report(self, summary: SweepSummary) -> None:
        if summary.tried > 1:
            self._emit(format_tried_line(summary.tried, summary.failed))
        if summary.failed > 0:
            self._emit("Failed test(s): " + " ".join(summary.failed_names))

    def _retry(self, summary: SweepSummary) -> None:
        """Run each failed test a second time, with debug output resumed."""
        debug.resume()
        summary.retried = True

        for outcome in self._outcomes:
            if outcome.status != TestStatus.FAILED:
                continue
            if outcome.name in NON_RETRYABLE_TESTS:
                self._emit(f"Cannot retry {outcome.name}:")
                continue

            self._emit(f"Retrying {outcome.name}:")
            outcome.record(self.run_one(outcome.ordinal))
            if outcome.passed_on_retry:
                log.info("Test %s passed on second try", outcome.name)

        if summary.still_failing:
            self._emit("Still failing: " + " ".join(summary.still_failing))
        else:
            self._emit("All tests pass after second try.")

    def _emit(self, line: str) -> None:
        self.console.print(line, markup=False, highlight=False, emoji=False)
        self.console.file.flush()
