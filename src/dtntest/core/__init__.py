"""Core test selection and execution functionality."""

from dtntest.core.registry import TestCase, TestRegistry
from dtntest.core.runner import TestHarness

__all__ = ["TestCase", "TestRegistry", "TestHarness"]
