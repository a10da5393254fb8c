"""Shared fixtures for the harness tests."""

import io
from typing import Iterable, Union

import pytest
from rich.console import Console

from dtntest import debug
from dtntest.core.registry import TestCase, TestRegistry


class ScriptedTest:
    """A test body returning a scripted sequence of results."""

    def __init__(self, name: str, results: Union[int, Iterable[int]], calls: list[str]):
        self.name = name
        self.results = [results] if isinstance(results, int) else list(results)
        self.calls = calls

    def __call__(self) -> int:
        self.calls.append(self.name)
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


@pytest.fixture(autouse=True)
def reset_debug_output():
    """Leave the debug logger enabled between tests."""
    debug.resume()
    yield
    debug.resume()


@pytest.fixture
def output():
    """A console writing to a string buffer."""
    buffer = io.StringIO()
    console = Console(file=buffer, soft_wrap=True, highlight=False, width=200)
    return console, buffer


@pytest.fixture
def calls():
    """Names of the tests invoked, in call order."""
    return []


@pytest.fixture
def make_registry(calls):
    """Build a registry from a mapping of test name to scripted results."""

    def factory(results: dict) -> TestRegistry:
        return TestRegistry(
            TestCase(name=name, run=ScriptedTest(name, outcome, calls))
            for name, outcome in results.items()
        )

    return factory
