"""Subprocess-backed test bodies.

This module runs one test command, captures its output, and exposes the
command as a zero-argument runnable that returns the exit code.
"""

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dtntest.debug import debug_log


@dataclass
class RawTestOutput:
    """Raw output from test command execution."""

    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int
    command: str


class TestExecutor:
    """Executes test commands and captures output."""

    __test__ = False

    def __init__(
        self,
        command: str,
        working_directory: Path,
        timeout_seconds: Optional[int] = None,
        environment: Optional[dict[str, str]] = None,
    ):
        """Initialize test executor.

        Args:
            command: The test command to execute (e.g., "picoquic_dtn_test dtn_basic")
            working_directory: Directory to run command in
            timeout_seconds: Maximum time to allow for execution, None waits forever
            environment: Additional environment variables to set
        """
        self.command = command
        self.working_directory = working_directory
        self.timeout_seconds = timeout_seconds
        self.environment = environment or {}

    def execute(self) -> RawTestOutput:
        """Execute the test command and capture output.

        Returns:
            RawTestOutput with stdout, stderr, exit code, and duration.
            Timeouts and launch errors are reported with exit code -1.
        """
        env = {**os.environ, **self.environment}

        start_time = time.time()

        try:
            result = subprocess.run(
                self.command,
                shell=True,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                cwd=self.working_directory,
                timeout=self.timeout_seconds,
                env=env,
            )

            duration_ms = int((time.time() - start_time) * 1000)

            return RawTestOutput(
                stdout=result.stdout,
                stderr=result.stderr,
                exit_code=result.returncode,
                duration_ms=duration_ms,
                command=self.command,
            )

        except subprocess.TimeoutExpired:
            duration_ms = self.timeout_seconds * 1000

            return RawTestOutput(
                stdout="",
                stderr=f"Test execution timed out after {self.timeout_seconds} seconds",
                exit_code=-1,
                duration_ms=duration_ms,
                command=self.command,
            )

        except OSError as e:
            duration_ms = int((time.time() - start_time) * 1000)

            return RawTestOutput(
                stdout="",
                stderr=f"Error executing test command: {str(e)}",
                exit_code=-1,
                duration_ms=duration_ms,
                command=self.command,
            )


class CommandTest:
    """A test body that runs a command; its exit code is the result.

    Output of the command is forwarded line by line to the debug log.
    """

    def __init__(self, executor: TestExecutor):
        self.executor = executor

    def __call__(self) -> int:
        output = self.executor.execute()
        for line in output.stdout.splitlines():
            debug_log.debug(line)
        for line in output.stderr.splitlines():
            debug_log.debug(line)
        return output.exit_code

    def __repr__(self) -> str:
        return f"CommandTest({self.executor.command!r})"
