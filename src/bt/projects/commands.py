"""Project commands: list, create, view, delete, switch."""

from __future__ import annotations

import json
import os

import click

from bt.http import ApiClient
from bt.projects.api import (
    Project,
    create_project,
    delete_project,
    get_project_by_name,
    list_projects,
    project_url,
)
from bt.tui.spinner import with_spinner


def _stdin_is_tty() -> bool:
    return click.get_text_stream("stdin").isatty()


def print_status(ok: bool, message: str) -> None:
    indicator = click.style("✓", fg="green") if ok else click.style("✗", fg="red")
    click.echo(f"{indicator} {message}")


def print_env_export(name: str, value: str, message: str) -> None:
    """Print a shell ``export`` line on stdout and how to apply it on stderr."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    click.echo(f'export {name}="{escaped}"')
    click.echo(message, err=True)
    if "fish" in os.environ.get("SHELL", ""):
        click.echo("Tip: <command> | source", err=True)
    else:
        click.echo("Tip: eval $(<command>)", err=True)


async def select_project(client: ApiClient) -> str:
    """Prompt for one of the organization's projects and return its name."""
    if not _stdin_is_tty():
        raise click.ClickException("interactive mode requires TTY")
    projects = await with_spinner("Loading projects...", list_projects(client))
    if not projects:
        raise click.ClickException("no projects found")

    names = sorted(project.name for project in projects)
    for idx, name in enumerate(names, 1):
        click.echo(f"  {idx}. {name}", err=True)
    choice = click.prompt(
        "Select project", type=click.IntRange(1, len(names)), default=1, err=True
    )
    return names[choice - 1]


async def _require_project(client: ApiClient, name: str) -> Project:
    project = await with_spinner("Loading project...", get_project_by_name(client, name))
    if project is None:
        raise click.ClickException(f"project '{name}' not found")
    return project


async def list_command(client: ApiClient, json_output: bool) -> None:
    projects = await with_spinner("Loading projects...", list_projects(client))
    if json_output:
        click.echo(json.dumps([p.model_dump() for p in projects]))
        return
    click.echo(click.style("Projects", bold=True))
    for project in projects:
        click.echo(project.name)


async def create_command(client: ApiClient, name: str | None) -> None:
    if not name:
        if not _stdin_is_tty():
            raise click.ClickException("project name required. Use: bt projects create <name>")
        name = click.prompt("Project name")

    if await get_project_by_name(client, name) is not None:
        raise click.ClickException(f"project '{name}' already exists")

    try:
        await with_spinner("Creating project...", create_project(client, name))
    except Exception:
        print_status(False, f"Failed to create '{name}'")
        raise
    print_status(True, f"Successfully created '{name}'")


async def view_command(client: ApiClient, app_url: str, name: str | None) -> None:
    if not name:
        if not _stdin_is_tty():
            raise click.ClickException("Must specify a project in non-TTY mode")
        name = await select_project(client)

    await _require_project(client, name)
    url = project_url(app_url, client.org_name, name)
    click.launch(url)
    print_status(True, f"Opened {url} in browser")


async def delete_command(client: ApiClient, name: str | None) -> None:
    if not name:
        if not _stdin_is_tty():
            raise click.ClickException("project name required. Use: bt projects delete <name>")
        name = await select_project(client)

    project = await _require_project(client, name)

    if _stdin_is_tty() and not click.confirm(f"Delete project '{project.name}'?", default=False):
        return

    try:
        await with_spinner("Deleting project...", delete_project(client, project.id))
    except Exception:
        print_status(False, f"Failed to delete '{project.name}'")
        raise
    print_status(True, f"Deleted '{project.name}'")


async def switch_command(client: ApiClient, name: str | None) -> None:
    if name:
        existing = await with_spinner("Loading project...", get_project_by_name(client, name))
        if existing is None:
            if not _stdin_is_tty():
                raise click.ClickException(f"project '{name}' not found")
            if not click.confirm(f"Project '{name}' not found. Create it?", default=False, err=True):
                raise click.ClickException(f"project '{name}' not found")
            await with_spinner("Creating project...", create_project(client, name))
    else:
        name = await select_project(client)

    print_env_export("BRAINTRUST_DEFAULT_PROJECT", name, f"Switched to {name}")
