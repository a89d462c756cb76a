"""CLI entry point for pagetest."""
from __future__ import annotations

import shlex
import sys
from typing import Optional, Tuple

import click

from pagetest import __version__
from pagetest.config import ConfigError, SuperviseOptions, load_config, resolve_config
from pagetest.host.console import Console
from pagetest.host.environment import HostEnvironment
from pagetest.supervisor import ProtocolError, run_supervisor

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
PROTOCOL_ERROR_EXIT = 2


def _print_version(_: click.Context, __: click.Parameter, value: bool) -> None:
    if not value or click.get_current_context().resilient_parsing:
        return
    click.echo(f"pagetest {__version__}")
    raise click.exceptions.Exit()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--version",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show the pagetest version and exit.",
)
def cli() -> None:
    """Top level CLI group for pagetest."""


@cli.command()
@click.argument("page", type=click.Path(exists=True, dir_okay=False))
@click.argument("test_files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in console output.")
def host(page: str, test_files: Tuple[str, ...], no_color: bool) -> None:
    """Open PAGE as a hosted environment and run the tests its TEST_FILES register."""

    try:
        env = HostEnvironment.from_file(page, console=Console(use_color=not no_color))
        for path in test_files:
            env.load_test_module(path)
    except Exception as exc:  # pragma: no cover - CLI error translation
        raise click.ClickException(str(exc)) from exc
    raise click.exceptions.Exit(env.main())


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML supervisor config.",
)
@click.option("--url", type=str, help="URL of a page that runs the tests.")
@click.option("--page", type=click.Path(exists=True, dir_okay=False), help="Local page to serve and open.")
@click.option("--root", type=click.Path(exists=True, file_okay=False), help="Directory served for --page.")
@click.option("--command", "command", type=str, help="Command line that starts a hosted environment.")
@click.option("--timeout", type=float, help="Seconds to wait for the run to complete.")
@click.option("--headed", is_flag=True, help="Show the browser window.")
@click.option("--no-wait", is_flag=True, help="Always wait the full timeout instead of the completion flag.")
@click.option(
    "--report",
    "report_format",
    type=click.Choice(["terminal", "json"]),
    help="Report format (terminal by default).",
)
@click.option("--report-path", type=str, help="When --report json, write to this path.")
@click.option("--junit", type=str, help="Also write a JUnit XML report to this path.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in terminal output.")
def supervise(
    config_path: Optional[str],
    url: Optional[str],
    page: Optional[str],
    root: Optional[str],
    command: Optional[str],
    timeout: Optional[float],
    headed: bool,
    no_wait: bool,
    report_format: Optional[str],
    report_path: Optional[str],
    junit: Optional[str],
    no_color: bool,
) -> None:
    """Run a hosted environment, read its console report and judge it."""

    options = SuperviseOptions(
        page=page,
        url=url,
        command=tuple(shlex.split(command)) if command else (),
        root=root,
        timeout=timeout,
        headed=headed,
        no_wait=no_wait,
        report_format=report_format,
        report_path=report_path,
        junit=junit,
    )
    try:
        config = resolve_config(load_config(config_path) if config_path else None, options)
        exit_code = run_supervisor(config, use_color=not no_color)
    except ProtocolError as err:
        click.echo(click.style("Protocol error: ", fg="red") + str(err), err=True)
        raise click.exceptions.Exit(PROTOCOL_ERROR_EXIT)
    except ConfigError as err:
        raise click.UsageError(str(err)) from err
    except Exception as exc:  # pragma: no cover - CLI error translation
        raise click.ClickException(str(exc)) from exc
    raise click.exceptions.Exit(exit_code)


def main(argv: Optional[list[str]] = None) -> int:
    """Program entry point for console_scripts shim."""

    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=argv, prog_name="pagetest", standalone_mode=True)
    except click.ClickException as err:  # pragma: no cover - click handles display
        err.show()
        return err.exit_code
    except SystemExit as exc:  # click may raise exit code
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
