"""Data models for test status and sweep results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TestStatus(str, Enum):
    """Status of a registered test within one harness invocation."""

    __test__ = False

    NOT_RUN = "not_run"
    EXCLUDED = "excluded"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class TestOutcome:
    """Represents the state of a single registered test."""

    __test__ = False

    ordinal: int
    name: str
    status: TestStatus = TestStatus.NOT_RUN
    error_code: Optional[int] = None
    attempts: int = 0
    passed_on_retry: bool = False

    def record(self, result: int) -> None:
        """Apply the result code of one invocation."""
        self.attempts += 1
        if result == 0:
            if self.status == TestStatus.FAILED:
                self.passed_on_retry = True
            self.status = TestStatus.SUCCESS
        else:
            self.status = TestStatus.FAILED
            self.error_code = result

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "ordinal": self.ordinal,
            "name": self.name,
            "status": self.status.value,
            "error_code": self.error_code,
            "attempts": self.attempts,
            "passed_on_retry": self.passed_on_retry,
        }


@dataclass
class SweepSummary:
    """Aggregate result of a harness invocation."""

    tried: int = 0
    failed: int = 0
    outcomes: list[TestOutcome] = field(default_factory=list)
    retried: bool = False
    mode_result: Optional[int] = None

    @property
    def failed_names(self) -> list[str]:
        """Names of tests that failed during the sweep, in ordinal order."""
        return [
            o.name for o in self.outcomes
            if o.status == TestStatus.FAILED or o.passed_on_retry
        ]

    @property
    def still_failing(self) -> list[str]:
        """Names of tests currently marked as failed."""
        return [o.name for o in self.outcomes if o.status == TestStatus.FAILED]

    @property
    def success(self) -> bool:
        if self.mode_result:
            return False
        return not self.still_failing

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def status_of(self, name: str) -> TestStatus:
        """Look up the status of a test by name."""
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome.status
        raise KeyError(name)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "tried": self.tried,
            "failed": self.failed,
            "retried": self.retried,
            "mode_result": self.mode_result,
            "success": self.success,
            "still_failing": self.still_failing,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
