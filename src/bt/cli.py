"""CLI entry point for bt. Uses Click for argument parsing."""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import sys

import click

from bt.config import Config, resolve_config
from bt.http import TransportError
from bt.login import LoginContext, LoginError, login

logger = logging.getLogger(__name__)


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def _setup_logging(log_level: str) -> None:
    log_file = os.environ.get("BT_LOG_FILE")
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        filename=log_file or None,
    )


def common_options(func):
    """Options shared by every command that talks to the API."""

    @click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
    @click.option(
        "--project", "-p", envvar="BRAINTRUST_DEFAULT_PROJECT", default=None,
        help="Override active project",
    )
    @click.option(
        "--api-key", envvar="BRAINTRUST_API_KEY", default=None,
        help="Override stored API key (or via BRAINTRUST_API_KEY)",
    )
    @click.option(
        "--api-url", envvar="BRAINTRUST_API_URL", default=None,
        help="Override API URL (or via BRAINTRUST_API_URL)",
    )
    @click.option(
        "--app-url", envvar="BRAINTRUST_APP_URL", default=None,
        help="Override app URL (or via BRAINTRUST_APP_URL)",
    )
    @click.option(
        "--org-name", envvar="BRAINTRUST_ORG_NAME", default=None,
        help="Organization to use when the API key has several",
    )
    @click.option(
        "--log-level",
        type=click.Choice(["debug", "info", "warning", "error"]),
        default="warning",
        help="Logging level (logs go to stderr, or BT_LOG_FILE if set)",
    )
    @functools.wraps(func)
    def wrapper(*args, log_level, **kwargs):
        _setup_logging(log_level)
        overrides = {key: kwargs.pop(key) for key in _CONFIG_OPTIONS}
        # An unset --json leaves the config file value in place
        overrides["json_output"] = overrides["json_output"] or None
        return func(*args, config=resolve_config(**overrides), **kwargs)

    return wrapper


_CONFIG_OPTIONS = ("json_output", "project", "api_key", "api_url", "app_url", "org_name")


def _login(config: Config) -> LoginContext:
    try:
        return _run(login(config))
    except LoginError as e:
        raise click.ClickException(str(e)) from e


@click.group(invoke_without_command=True)
@click.version_option(package_name="bt-cli", prog_name="bt")
@click.pass_context
def main(ctx):
    """Braintrust CLI."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

def run_one_shot(dispatcher, query: str, stream=None):
    """Run *query* through *dispatcher*, with a spinner if it is slow."""
    from bt.tui.spinner import SPINNER_DELAY, SPINNER_INTERVAL, Spinner

    stream = stream or sys.stderr
    dispatcher.submit(query)
    result = dispatcher.wait(SPINNER_DELAY)
    if result is not None:
        return result

    if not stream.isatty():
        return dispatcher.wait()

    spinner = Spinner("Running query...", stream)
    try:
        while result is None:
            spinner.tick()
            result = dispatcher.wait(SPINNER_INTERVAL)
    finally:
        spinner.clear()
    return result


@main.command()
@click.argument("query", required=False)
@common_options
def sql(query, config):
    """Run SQL queries against Braintrust.

    With QUERY, run it once and print the result. Without it, open an
    interactive query terminal.
    """
    from bt.sql.dispatcher import QueryDispatcher
    from bt.sql.query import execute_query
    from bt.sql.table import format_response
    from bt.tui.terminal import TerminalError, is_interactive

    if query is None and not is_interactive():
        raise click.UsageError("interactive mode requires a TTY. Pass a QUERY to run it once.")

    ctx = _login(config)
    client = ctx.client()

    with QueryDispatcher(functools.partial(execute_query, client)) as dispatcher:
        if query is not None:
            result = run_one_shot(dispatcher, query)
            if result.error is not None:
                raise click.ClickException(result.error)
            click.echo(format_response(result.response, config.json_output))
            return

        from bt.sql.shell import run_interactive

        try:
            run_interactive(dispatcher, json_output=config.json_output)
        except TerminalError as e:
            raise click.ClickException(str(e)) from e


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

@main.group(invoke_without_command=True)
@common_options
@click.pass_context
def projects(ctx, config):
    """Manage projects."""
    ctx.obj = {"login": _login(config), "json_output": config.json_output}
    if ctx.invoked_subcommand is None:
        ctx.invoke(projects_list)


def _run_project_command(coro) -> None:
    try:
        _run(coro)
    except TransportError as e:
        raise click.ClickException(str(e)) from e


@projects.command("list")
@click.pass_obj
def projects_list(obj):
    """List all projects."""
    from bt.projects.commands import list_command
    _run_project_command(list_command(obj["login"].client(), obj["json_output"]))


@projects.command("create")
@click.argument("name", required=False)
@click.pass_obj
def projects_create(obj, name):
    """Create a new project."""
    from bt.projects.commands import create_command
    _run_project_command(create_command(obj["login"].client(), name))


@projects.command("view")
@click.argument("name", required=False)
@click.option("--name", "-n", "name_flag", default=None, help="Project name")
@click.pass_obj
def projects_view(obj, name, name_flag):
    """Open a project in the browser."""
    from bt.projects.commands import view_command
    _run_project_command(view_command(obj["login"].client(), obj["login"].app_url, name or name_flag))


@projects.command("delete")
@click.argument("name", required=False)
@click.pass_obj
def projects_delete(obj, name):
    """Delete a project."""
    from bt.projects.commands import delete_command
    _run_project_command(delete_command(obj["login"].client(), name))


@projects.command("switch")
@click.option("--name", "-n", default=None, help="Project name")
@click.pass_obj
def projects_switch(obj, name):
    """Switch to a project."""
    from bt.projects.commands import switch_command
    _run_project_command(switch_command(obj["login"].client(), name))


if __name__ == "__main__":
    main()
