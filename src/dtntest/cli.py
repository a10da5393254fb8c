"""Command-line interface for the DTN test harness."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from dtntest import __version__, debug
from dtntest.catalog import build_mode_runners, build_registry
from dtntest.config import create_example_config, load_suite_config
from dtntest.core.arguments import format_usage, parse_arguments
from dtntest.core.errors import SetupError, UsageError
from dtntest.core.runner import TestHarness

PROG_NAME = "dtn_ct"
TRAILING_ARGS_KEY = "dtntest.trailing_args"

console = Console(soft_wrap=True, highlight=False)
err_console = Console(stderr=True, soft_wrap=True, highlight=False)


class HarnessCommand(click.Command):
    """Command handing the harness flags over to the harness parser.

    click consumes the first ``--``; the number of arguments after it is
    recorded so that the separator can be put back.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if "--" in args:
            ctx.meta[TRAILING_ARGS_KEY] = len(args) - args.index("--") - 1
        return super().parse_args(ctx, args)


def harness_arguments(ctx: click.Context, args: Sequence[str]) -> list[str]:
    """Rebuild the harness arguments, with the ``--`` separator restored."""
    trailing = ctx.meta.get(TRAILING_ARGS_KEY)
    if trailing is None:
        return list(args)
    split = len(args) - trailing
    return [*args[:split], "--", *args[split:]]


def print_usage(test_names: Sequence[str]) -> None:
    """Print the usage text on the error stream."""
    err_console.print(format_usage(PROG_NAME, test_names), markup=False, emoji=False)


@click.command(
    cls=HarnessCommand,
    context_settings={"ignore_unknown_options": True},
    add_help_option=False,
)
@click.version_option(version=__version__, prog_name=PROG_NAME)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Path to the test suite file (default: dtntest.json, else the built-in DTN tests)",
)
@click.option(
    "--write-config",
    type=click.Path(dir_okay=False),
    help="Write an example test suite file and exit",
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Optional[str],
    write_config: Optional[str],
    args: tuple[str, ...],
) -> None:
    """Run the DTN test suite.

    Tests run one at a time in the order of the suite. Use -h for the
    list of tests and options.
    """
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    debug.push_stream(sys.stderr)

    if write_config:
        output_path = Path(write_config)
        if output_path.exists():
            err_console.print(f"[yellow]Configuration file already exists:[/yellow] {escape(str(output_path))}")
            sys.exit(1)
        create_example_config(output_path)
        console.print(f"[green]Created configuration file:[/green] {escape(str(output_path))}")
        return

    try:
        suite = load_suite_config(config_path)
    except (FileNotFoundError, json.JSONDecodeError, ValidationError) as e:
        err_console.print(f"[red]Error loading test suite:[/red] {escape(str(e))}")
        sys.exit(1)

    try:
        run_config = parse_arguments(harness_arguments(ctx, args))
    except UsageError as e:
        err_console.print(str(e), markup=False)
        print_usage(suite.test_names())
        sys.exit(1)

    if run_config.show_help:
        print_usage(suite.test_names())
        sys.exit(0)

    base_dir = Path(config_path).parent if config_path else Path.cwd()

    try:
        registry = build_registry(suite, base_dir, run_config.solution_dir)
        mode_runners = build_mode_runners(suite, base_dir, run_config.solution_dir)
        summary = TestHarness(registry, console, mode_runners).run(run_config)
    except UsageError as e:
        err_console.print(str(e), markup=False)
        print_usage(suite.test_names())
        sys.exit(1)
    except SetupError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    sys.exit(summary.exit_code)


if __name__ == "__main__":
    main()
