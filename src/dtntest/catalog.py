"""Construction of the test registry and mode runners from a suite."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from dtntest.config import SuiteConfig
from dtntest.core.errors import SetupError
from dtntest.core.executor import CommandTest, TestExecutor
from dtntest.core.registry import TestCase, TestRegistry
from dtntest.modes import ModeRunner

SOLUTION_DIR_ENV = "PICOQUIC_SOLUTION_DIR"


def _base_environment(suite: SuiteConfig, solution_dir: str) -> dict[str, str]:
    return {**suite.environment, SOLUTION_DIR_ENV: solution_dir}


def build_registry(
    suite: SuiteConfig,
    base_dir: Path | str | None = None,
    solution_dir: Optional[str] = None,
) -> TestRegistry:
    """Build the registry of command tests described by a suite.

    Args:
        suite: The suite configuration
        base_dir: Directory that relative working directories refer to
        solution_dir: Overrides the suite's solution directory

    Raises:
        SetupError: If the suite has no tests or repeats a name
    """
    if not suite.tests:
        raise SetupError(f"Suite {suite.name} does not define any test")

    base_dir = Path(base_dir) if base_dir else Path.cwd()
    working_directory = (base_dir / suite.working_directory).resolve()
    environment = _base_environment(suite, solution_dir or suite.solution_dir)

    tests = []
    for entry in suite.tests:
        executor = TestExecutor(
            command=suite.command_for(entry),
            working_directory=working_directory,
            timeout_seconds=entry.timeout_seconds or suite.timeout_seconds,
            environment={**environment, **entry.environment},
        )
        tests.append(TestCase(name=entry.name, run=CommandTest(executor)))

    try:
        return TestRegistry(tests)
    except ValueError as e:
        raise SetupError(str(e)) from e


class CommandModeRunner:
    """Runs an alternate mode by formatting its command template."""

    def __init__(self, template: str, working_directory: Path, environment: dict[str, str]):
        self.template = template
        self.working_directory = working_directory
        self.environment = environment

    def __call__(self, mode: BaseModel) -> int:
        fields = {k: ("-" if v is None else v) for k, v in mode.model_dump().items()}
        try:
            command = self.template.format(**fields)
        except KeyError as e:
            raise SetupError(f"Unknown field {e} in the {mode.name} command template") from e

        executor = TestExecutor(
            command=command,
            working_directory=self.working_directory,
            environment=self.environment,
        )
        return CommandTest(executor)()


def build_mode_runners(
    suite: SuiteConfig,
    base_dir: Path | str | None = None,
    solution_dir: Optional[str] = None,
) -> dict[str, ModeRunner]:
    """Build a runner for every alternate mode the suite has a command for."""
    base_dir = Path(base_dir) if base_dir else Path.cwd()
    working_directory = (base_dir / suite.working_directory).resolve()
    environment = _base_environment(suite, solution_dir or suite.solution_dir)

    return {
        name: CommandModeRunner(template, working_directory, environment)
        for name, template in suite.modes.items()
    }
