"""Resolution of which registered tests run in an invocation."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from dtntest.config import RunConfiguration
from dtntest.core.registry import TestRegistry
from dtntest.models import TestStatus

log = logging.getLogger(__name__)


@dataclass
class Selection:
    """Initial status of every registered test, by ordinal.

    ``auto_bypass`` is set when every test was excluded up front because an
    alternate mode or a list of tests was given; such exclusions are silent.
    ``explicit_exclusions`` holds the ordinals excluded with ``-x``.
    """

    statuses: list[TestStatus]
    auto_bypass: bool = False
    explicit_exclusions: set[int] = field(default_factory=set)
    first_test: int = 0
    last_test: Optional[int] = None

    def in_range(self, ordinal: int) -> bool:
        """Check whether an ordinal falls in the execution range."""
        if ordinal < self.first_test:
            return False
        return self.last_test is None or ordinal <= self.last_test

    def selected(self) -> list[int]:
        """Ordinals that will actually be executed."""
        return [
            i for i, status in enumerate(self.statuses)
            if status == TestStatus.NOT_RUN and self.in_range(i)
        ]


def resolve_selection(registry: TestRegistry, config: RunConfiguration) -> Selection:
    """Compute the initial status of every test.

    Raises:
        UnknownTestError: If an excluded or selected name is not registered
    """
    excluded = {registry.lookup(name) for name in config.excluded}
    selected = [registry.lookup(name) for name in config.selected]

    selection = Selection(
        statuses=[TestStatus.NOT_RUN] * registry.count(),
        explicit_exclusions=excluded,
        first_test=config.first_test,
        last_test=config.last_test,
    )

    if config.mode is not None:
        log.debug("Alternate mode %s requested, bypassing the test sweep", config.mode.name)
        selection.auto_bypass = True
        selection.statuses = [TestStatus.EXCLUDED] * registry.count()
    elif config.has_selection_list:
        # The list of tests to run takes precedence over -x.
        selection.auto_bypass = True
        selection.statuses = [TestStatus.EXCLUDED] * registry.count()
        for ordinal in selected:
            selection.statuses[ordinal] = TestStatus.NOT_RUN
    else:
        for ordinal in excluded:
            selection.statuses[ordinal] = TestStatus.EXCLUDED

    return selection
