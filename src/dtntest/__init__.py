"""
dtntest - test harness for the picoquic DTN test suite.

This package provides tools to:
- Select tests by name, by exclusion or by ordinal range
- Run them one at a time and report failures for CI
- Retry failed tests with debug output enabled
"""

__version__ = "0.1.0"
__author__ = "dtntest Team"
