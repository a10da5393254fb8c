"""Command-line argument parsing for the harness.

The flag syntax does not fit a declarative parser: ``-x`` takes every
following token up to the next flag, and a trailing list of test names
selects the tests to run. Arguments are read through an explicit cursor.
"""

from typing import Any, Optional, Sequence

from pydantic import BaseModel, ValidationError

from dtntest.config import RunConfiguration
from dtntest.core.errors import UsageError
from dtntest.modes import (
    ConnectionFloodMode,
    ConnectionStressMode,
    CorruptedFileFuzzMode,
    FuzzMode,
    StressMode,
)

# Number of values each flag requires. -x takes one or more.
FLAG_ARITY = {
    "x": 1,
    "o": 2,
    "s": 1,
    "f": 1,
    "F": 1,
    "c": 2,
    "d": 3,
    "S": 1,
    "n": 0,
    "r": 0,
    "h": 0,
}

MODE_FLAGS = {
    "s": (StressMode, ("minutes",)),
    "f": (FuzzMode, ("minutes",)),
    "F": (CorruptedFileFuzzMode, ("rounds",)),
    "c": (ConnectionStressMode, ("minutes", "connections")),
    "d": (ConnectionFloodMode, ("packets", "interval_us", "log_dir")),
}


def is_flag(token: str) -> bool:
    return token.startswith("-") and token != "-"


class ArgumentCursor:
    """Position in the argument list, advanced as flags consume values."""

    def __init__(self, args: Sequence[str]):
        self._args = list(args)
        self.position = 0

    def has_next(self) -> bool:
        return self.position < len(self._args)

    def peek(self) -> Optional[str]:
        if self.has_next():
            return self._args[self.position]
        return None

    def next(self) -> str:
        if not self.has_next():
            raise UsageError("Unexpected end of arguments")
        token = self._args[self.position]
        self.position += 1
        return token

    def take(self, flag: str, count: int) -> list[str]:
        """Consume exactly ``count`` values for ``flag``, whatever they look like."""
        if self.position + count > len(self._args):
            raise UsageError(f"option requires more arguments -- {flag}")
        values = self._args[self.position:self.position + count]
        self.position += count
        return values

    def take_until_flag(self) -> list[str]:
        """Consume values up to the next flag or the end of the arguments."""
        values = []
        while self.has_next() and not is_flag(self._args[self.position]):
            values.append(self.next())
        return values

    def rest(self) -> list[str]:
        values = self._args[self.position:]
        self.position = len(self._args)
        return values


def describe_validation_error(exc: ValidationError) -> str:
    """Turn a pydantic validation error into a one-line usage message."""
    messages = []
    for error in exc.errors():
        if error["type"] == "value_error" and "error" in error.get("ctx", {}):
            messages.append(str(error["ctx"]["error"]))
        else:
            field = error["loc"][-1] if error["loc"] else "argument"
            messages.append(f"Incorrect {field}: {error.get('input')}")
    return "; ".join(messages)


def _build(model_cls: type[BaseModel], **values: Any) -> BaseModel:
    try:
        return model_cls(**values)
    except ValidationError as e:
        raise UsageError(describe_validation_error(e)) from e


def parse_arguments(args: Sequence[str]) -> RunConfiguration:
    """Parse harness arguments into a run configuration.

    Raises:
        UsageError: On unknown flags, missing or malformed values, or when
            more than one alternate mode is requested
    """
    cursor = ArgumentCursor(args)
    options: dict[str, Any] = {"excluded": [], "selected": []}
    modes: dict[str, BaseModel] = {}

    while cursor.has_next():
        token = cursor.next()
        if token == "--":
            options["selected"].extend(cursor.rest())
            break
        if token == "--help":
            options["show_help"] = True
            break
        if not is_flag(token):
            options["selected"].append(token)
            continue
        if token.startswith("--"):
            raise UsageError(f"unrecognized option '{token}'")
        if _parse_flag_cluster(token[1:], cursor, options, modes):
            break

    if len(modes) > 1:
        flags = ", ".join(f"-{flag}" for flag in MODE_FLAGS)
        raise UsageError(f"Only one of {flags} can be used, got: {', '.join(modes)}")
    if modes:
        options["mode"] = next(iter(modes.values()))

    return _build(RunConfiguration, **options)


def _parse_flag_cluster(
    chars: str,
    cursor: ArgumentCursor,
    options: dict[str, Any],
    modes: dict[str, BaseModel],
) -> bool:
    """Handle one token of single-letter flags such as ``-nr`` or ``-s5``.

    Returns True when help was requested and parsing should stop.
    """
    i = 0
    while i < len(chars):
        flag = chars[i]
        i += 1
        if flag not in FLAG_ARITY:
            raise UsageError(f"invalid option -- '{flag}'")

        arity = FLAG_ARITY[flag]
        if arity == 0:
            if flag == "h":
                options["show_help"] = True
                return True
            if flag == "n":
                options["suspend_debug"] = True
            elif flag == "r":
                options["retry_failed"] = True
            continue

        # The first value may be attached to the flag, as in -s5.
        attached = chars[i:]
        values = [attached] if attached else []

        if flag == "x":
            values += cursor.take_until_flag()
            if not values:
                raise UsageError("option requires an argument -- x")
            options["excluded"].extend(values)
            return False

        values += cursor.take(flag, arity - len(values))
        if flag == "o":
            options["first_test"], options["last_test"] = values
        elif flag == "S":
            options["solution_dir"] = values[0]
        else:
            model_cls, fields = MODE_FLAGS[flag]
            mode = _build(model_cls, **dict(zip(fields, values)))
            modes[mode.name] = mode
        return False

    return False


def format_usage(prog: str, test_names: Sequence[str]) -> str:
    """Build the usage text, listing the valid test names."""
    lines = [
        "PicoQUIC DTN test execution",
        f"Usage: {prog} [-x <excluded>] [<list of tests>]",
        "",
        f"Usage: {prog} [test1 [test2 ..[testN]]]",
        "",
        f"   Or: {prog} [-x test]*",
        "Valid test names are: ",
    ]
    for start in range(0, len(test_names), 4):
        lines.append("    " + ", ".join(test_names[start:start + 4]) + ",")
    lines += [
        "Options: ",
        "  -x test           Do not run the specified test.",
        "  -o n1 n2          Only run test numbers in range [n1,n2]",
        "  -s nnn            Run stress for nnn minutes.",
        "  -f nnn            Run fuzz for nnn minutes.",
        "  -c nnn ccc        Run connection stress for nnn minutes, ccc connections.",
        "  -d ppp uuu dir    Run connection ddos for ppp packets, uuu usec intervals,",
        "                    logs in dir. No logs if dir=\"-\"",
        "  -F nnn            Run the corrupt file fuzzer nnn times.",
        "  -n                Disable debug prints.",
        "  -r                Retry failed tests with debug print enabled.",
        "  -h                Print this help message",
        "  -S solution_dir   Set the path to the source files to find the default files",
        "  --config file     Load the test suite from a JSON file",
        "  --write-config file",
        "                    Write an example test suite file and exit",
    ]
    return "\n".join(lines)
