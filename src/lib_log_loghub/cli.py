"""Click command group for configuration checks and dry runs.

Purpose
-------
Give operators a quick way to verify ``LOGHUB_*`` settings before deploying
and to watch what the handler would submit, without credentials or network.

Contents
--------
* :func:`cli` - root group with traceback and ``.env`` toggles.
* ``info`` - metadata banner.
* ``check-config`` - validate the environment and print effective values.
* ``send-test`` - emit sample records through the console producer.
* :func:`main` - entry point wrapping :func:`lib_cli_exit_tools.run_cli`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import fields

import lib_cli_exit_tools
import rich_click as click
from click.core import ParameterSource
from rich.console import Console
from rich.table import Table

from . import __init__conf__
from . import config as loghub_config
from .adapters.console_producer import RichConsoleProducer
from .adapters.handler import LoghubHandler
from .domain.context import bind
from .domain.errors import ConfigurationError
from .domain.settings import AppenderSettings, ProducerConfig, ProjectConfig, build_settings
from .lib_log_loghub import summary_info

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_SECRET_FIELDS = {"access_key", "sts_token"}
_DRY_RUN_DEFAULTS = {
    "projectName": "dry-run",
    "logstore": "dry-run",
    "endpoint": "localhost",
    "accessKeyId": "dry-run",
    "accessKey": "dry-run",
}


def _mask(value: object) -> str:
    if not value:
        return ""
    return "********"


def _settings_table(settings: AppenderSettings) -> Table:
    table = Table(title="Effective Loghub settings")
    table.add_column("setting")
    table.add_column("value")
    for item in fields(settings):
        if item.name == "formatter":
            continue
        value = getattr(settings, item.name)
        table.add_row(item.name, _mask(value) if item.name in _SECRET_FIELDS else repr(value))
    return table


def _parse_assignments(values: Sequence[str]) -> dict[str, str]:
    attributes: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {raw!r}", param_hint="--set")
        attributes[key.strip()] = value
    return attributes


@click.group(
    help="Loghub logging handler utilities",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=True,
)
@click.option(
    "--traceback/--no-traceback",
    default=False,
    help="Show full Python traceback on errors",
)
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=False,
    help="Load environment variables from a nearby .env before running commands.",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool, use_dotenv: bool) -> None:
    """Root command storing global flags and loading ``.env`` when requested."""

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback

    explicit: bool | None = None
    if ctx.get_parameter_source("use_dotenv") is not ParameterSource.DEFAULT:
        explicit = use_dotenv
    if loghub_config.should_use_dotenv(explicit=explicit, env_value=os.getenv(loghub_config.DOTENV_ENV_VAR)):
        loghub_config.enable_dotenv()

    if ctx.invoked_subcommand is None:
        click.echo(summary_info(), nl=False)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print resolved metadata so users can inspect installation details."""

    click.echo(summary_info(), nl=False)


@cli.command("check-config", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--set", "assignments", multiple=True, metavar="KEY=VALUE", help="Override one camelCase attribute.")
def cli_check_config(assignments: Sequence[str]) -> None:
    """Validate ``LOGHUB_*`` settings and print the effective values."""

    attributes = loghub_config.attributes_from_env()
    attributes.pop("producerFactory", None)
    attributes.update(_parse_assignments(assignments))
    try:
        settings = build_settings(attributes)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    Console(soft_wrap=True).print(_settings_table(settings))


@cli.command("send-test", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--message", default="lib_log_loghub test record", show_default=True, help="Message text to emit.")
@click.option("--count", type=click.IntRange(min=1), default=1, show_default=True, help="Number of records.")
@click.option(
    "--level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="INFO",
    show_default=True,
)
@click.option("--with-exception", is_flag=True, help="Attach a chained exception to each record.")
@click.option("--context", "context_pairs", multiple=True, metavar="KEY=VALUE", help="Bind a context field.")
@click.option("--set", "assignments", multiple=True, metavar="KEY=VALUE", help="Override one camelCase attribute.")
@click.option("--no-color", is_flag=True, help="Disable colored output.")
def cli_send_test(
    message: str,
    count: int,
    level: str,
    with_exception: bool,
    context_pairs: Sequence[str],
    assignments: Sequence[str],
    no_color: bool,
) -> None:
    """Emit sample records through the handler and print what would be sent."""

    attributes = dict(_DRY_RUN_DEFAULTS)
    attributes.update(loghub_config.attributes_from_env())
    attributes.pop("producerFactory", None)
    attributes.update(_parse_assignments(assignments))

    def _factory(project_config: ProjectConfig, producer_config: ProducerConfig) -> RichConsoleProducer:
        return RichConsoleProducer(project_config, producer_config, console=Console(soft_wrap=True, no_color=no_color), no_color=no_color)

    try:
        handler = LoghubHandler.from_attributes(attributes, producer_factory=_factory)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    demo_logger = logging.getLogger("lib_log_loghub_send_test")
    demo_logger.propagate = False
    demo_logger.setLevel(logging.DEBUG)
    demo_logger.addHandler(handler)
    numeric_level = logging.getLevelName(level.upper())
    try:
        with bind(**_parse_assignments(context_pairs)):
            for index in range(count):
                if with_exception:
                    try:
                        try:
                            raise KeyError("lookup failed")
                        except KeyError as cause:
                            raise RuntimeError("sample failure") from cause
                    except RuntimeError:
                        demo_logger.log(numeric_level, "%s #%d", message, index + 1, exc_info=True)
                else:
                    demo_logger.log(numeric_level, "%s #%d", message, index + 1)
    finally:
        demo_logger.removeHandler(handler)
        handler.close()
    click.echo(f"emitted {count} record(s)")


def main(argv: Sequence[str] | None = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with error handling and return the exit code.

    Traceback preferences changed by ``--traceback`` are restored afterwards
    so embedding hosts keep their own settings.
    """

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        return lib_cli_exit_tools.run_cli(
            cli,
            argv=list(argv) if argv is not None else None,
            prog_name=__init__conf__.shell_command,
        )
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


__all__ = ["cli", "main"]
