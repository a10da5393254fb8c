"""Configuration management for the DTN test harness."""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from dtntest.modes import MODE_NAMES, AlternateMode

DEFAULT_TEST_PROGRAM = "picoquic_dtn_test"
DEFAULT_SOLUTION_DIR = "../picoquic"
DTN_TEST_NAMES = ("dtn_basic", "dtn_data", "dtn_silence", "dtn_twenty")


def _validate_timeout(v: Optional[int]) -> Optional[int]:
    if v is not None and v < 1:
        raise ValueError("Timeout must be at least 1 second")
    return v


class TestEntryConfig(BaseModel):
    """A single test of the suite."""

    __test__ = False

    name: str = Field(description="Unique test name")
    command: Optional[str] = Field(
        default=None,
        description="Command to run (default: '<test_program> <name>')",
    )
    timeout_seconds: Optional[int] = Field(default=None, description="Per-test timeout, none by default")
    environment: dict[str, str] = Field(default_factory=dict, description="Additional environment variables")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Test name cannot be empty")
        if v.startswith("-"):
            raise ValueError(f"Test name cannot start with '-': {v}")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: Optional[int]) -> Optional[int]:
        return _validate_timeout(v)


class SuiteConfig(BaseModel):
    """The test suite: which tests exist and how to launch them."""

    name: str = Field(default="picoquic-dtn", description="Suite name")
    test_program: str = Field(default=DEFAULT_TEST_PROGRAM, description="Program running one named test")
    solution_dir: str = Field(default=DEFAULT_SOLUTION_DIR, description="Path to the protocol sources")
    working_directory: str = Field(default=".", description="Directory to run tests in")
    timeout_seconds: Optional[int] = Field(default=None, description="Default per-test timeout")
    environment: dict[str, str] = Field(default_factory=dict, description="Environment for every test")
    tests: list[TestEntryConfig] = Field(default_factory=list, description="Tests, in ordinal order")
    modes: dict[str, str] = Field(
        default_factory=dict,
        description="Command templates for the alternate modes, keyed by mode name",
    )

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: Optional[int]) -> Optional[int]:
        return _validate_timeout(v)

    @field_validator("tests")
    @classmethod
    def validate_tests(cls, v: list[TestEntryConfig]) -> list[TestEntryConfig]:
        seen: set[str] = set()
        for entry in v:
            if entry.name in seen:
                raise ValueError(f"Duplicate test name: {entry.name}")
            seen.add(entry.name)
        return v

    @field_validator("modes")
    @classmethod
    def validate_modes(cls, v: dict[str, str]) -> dict[str, str]:
        unknown = set(v) - set(MODE_NAMES)
        if unknown:
            raise ValueError(f"Unknown modes: {sorted(unknown)}, expected one of {MODE_NAMES}")
        return v

    def test_names(self) -> list[str]:
        return [entry.name for entry in self.tests]

    def command_for(self, entry: TestEntryConfig) -> str:
        """Get the command line that runs a test."""
        if entry.command:
            return entry.command
        return f"{self.test_program} {entry.name}"

    @classmethod
    def from_file(cls, path: Path | str) -> "SuiteConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "SuiteConfig":
        """Find and load configuration file, searching up the directory tree."""
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        config_names = ["dtntest.json", ".dtntest.json"]

        current = start_dir.resolve()
        while True:
            for name in config_names:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Create dtntest.json or run 'dtn_ct --write-config'"
        )

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)


class RunConfiguration(BaseModel):
    """Options of one harness invocation, as given on the command line."""

    excluded: list[str] = Field(default_factory=list, description="Tests excluded with -x")
    selected: list[str] = Field(default_factory=list, description="Trailing list of tests to run")
    first_test: int = Field(default=0, description="First ordinal to run")
    last_test: Optional[int] = Field(default=None, description="Last ordinal to run, None for no limit")
    suspend_debug: bool = False
    retry_failed: bool = False
    solution_dir: Optional[str] = None
    show_help: bool = False
    mode: Optional[AlternateMode] = None

    @field_validator("first_test", "last_test")
    @classmethod
    def validate_ordinal(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError(f"Incorrect first/last: {v}")
        return v

    @property
    def has_selection_list(self) -> bool:
        return bool(self.selected)


def get_default_config() -> SuiteConfig:
    """Return the built-in DTN suite."""
    return SuiteConfig(tests=[TestEntryConfig(name=name) for name in DTN_TEST_NAMES])


def load_suite_config(config_path: Path | str | None = None) -> SuiteConfig:
    """Load the suite from a file, falling back to the built-in suite.

    An explicit path must exist; without one, the directory tree is
    searched and the built-in suite is used if nothing is found.
    """
    if config_path:
        return SuiteConfig.from_file(config_path)
    try:
        return SuiteConfig.find_and_load()
    except FileNotFoundError:
        return get_default_config()


def create_example_config(output_path: Path | str) -> Path:
    """Create an example configuration file."""
    output_path = Path(output_path)
    config = get_default_config()
    config.modes = {
        "stress": f"{DEFAULT_TEST_PROGRAM} -s {{minutes}}",
        "fuzz": f"{DEFAULT_TEST_PROGRAM} -f {{minutes}}",
    }
    config.to_file(output_path)
    return output_path
