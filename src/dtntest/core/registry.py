"""Ordered catalog of named, runnable tests."""

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from dtntest.core.errors import UnknownTestError


@dataclass(frozen=True)
class TestCase:
    """A named test body.

    ``run`` takes no arguments and returns an integer result code,
    0 for success and anything else as the failure code.
    """

    __test__ = False

    name: str
    run: Callable[[], int]


class TestRegistry:
    """Read-only, ordered collection of test cases.

    The position of a test in the registry is its ordinal, used for
    range selection and in progress output.
    """

    __test__ = False

    def __init__(self, tests: Iterable[TestCase]):
        self._tests: tuple[TestCase, ...] = tuple(tests)
        self._index: dict[str, int] = {}
        for ordinal, test in enumerate(self._tests):
            if test.name in self._index:
                raise ValueError(f"Duplicate test name: {test.name}")
            self._index[test.name] = ordinal

    def find(self, name: str) -> Optional[int]:
        """Return the ordinal of a test, or None if it is not registered."""
        return self._index.get(name)

    def lookup(self, name: str) -> int:
        """Return the ordinal of a test.

        Raises:
            UnknownTestError: If no test has this name
        """
        ordinal = self.find(name)
        if ordinal is None:
            raise UnknownTestError(name)
        return ordinal

    def entry(self, ordinal: int) -> TestCase:
        """Return the test at the given ordinal."""
        if ordinal < 0 or ordinal >= len(self._tests):
            raise IndexError(f"Invalid test number {ordinal}")
        return self._tests[ordinal]

    def count(self) -> int:
        return len(self._tests)

    def names(self) -> list[str]:
        return [test.name for test in self._tests]

    def __len__(self) -> int:
        return len(self._tests)

    def __iter__(self) -> Iterator[TestCase]:
        return iter(self._tests)

    def __contains__(self, name: object) -> bool:
        return name in self._index
