"""Tests for bt.projects -- project API calls and commands."""

from __future__ import annotations

import json

import click
import pytest

import bt.projects.commands as commands
from bt.http import TransportError
from bt.projects.api import (
    create_project,
    delete_project,
    get_project_by_name,
    list_projects,
    project_url,
)

ALPHA = {"id": "p1", "name": "alpha", "org_id": "o1", "description": None}
BETA = {"id": "p2", "name": "beta", "org_id": "o1", "extra_field": 1}


@pytest.fixture
def tty(monkeypatch):
    monkeypatch.setattr(commands, "_stdin_is_tty", lambda: True)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


class TestProjectApi:
    async def test_list_projects(self, api) -> None:
        api.route("GET", "/v1/project", {"objects": [ALPHA, BETA]})
        projects = await list_projects(api.client())
        assert [p.name for p in projects] == ["alpha", "beta"]
        assert api.requests[-1].url.params["org_name"] == "acme"

    async def test_get_project_by_name(self, api) -> None:
        api.route("GET", "/v1/project", {"objects": [ALPHA]})
        project = await get_project_by_name(api.client(), "alpha")
        assert project is not None and project.id == "p1"
        assert api.requests[-1].url.params["name"] == "alpha"

    async def test_get_missing_project(self, api) -> None:
        api.route("GET", "/v1/project", {"objects": []})
        assert await get_project_by_name(api.client(), "nope") is None

    async def test_create_project(self, api) -> None:
        api.route("POST", "/v1/project", ALPHA)
        project = await create_project(api.client(), "alpha")
        assert project.name == "alpha"
        assert api.last_json() == {"name": "alpha", "org_name": "acme"}

    async def test_delete_project_quotes_id(self, api) -> None:
        api.route("DELETE", "/v1/project/p 1", text="")
        await delete_project(api.client(), "p 1")
        assert api.requests[-1].url.raw_path == b"/v1/project/p%201"

    async def test_malformed_list(self, api) -> None:
        api.route("GET", "/v1/project", {"projects": []})
        with pytest.raises(TransportError, match="failed to parse response"):
            await list_projects(api.client())

    def test_project_url_is_encoded(self) -> None:
        url = project_url("https://www.test/", "my org", "a/b")
        assert url == "https://www.test/app/my%20org/p/a%2Fb"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestListCommand:
    async def test_text_output(self, api, capsys) -> None:
        api.route("GET", "/v1/project", {"objects": [ALPHA, BETA]})
        await commands.list_command(api.client(), json_output=False)
        assert capsys.readouterr().out == "Projects\nalpha\nbeta\n"

    async def test_json_output(self, api, capsys) -> None:
        api.route("GET", "/v1/project", {"objects": [ALPHA]})
        await commands.list_command(api.client(), json_output=True)
        assert json.loads(capsys.readouterr().out) == [ALPHA]


class TestCreateCommand:
    async def test_creates_new_project(self, api, capsys) -> None:
        api.route("GET", "/v1/project", {"objects": []})
        api.route("POST", "/v1/project", ALPHA)
        await commands.create_command(api.client(), "alpha")
        assert capsys.readouterr().out == "✓ Successfully created 'alpha'\n"

    async def test_existing_project_is_an_error(self, api) -> None:
        api.route("GET", "/v1/project", {"objects": [ALPHA]})
        with pytest.raises(click.ClickException, match="already exists"):
            await commands.create_command(api.client(), "alpha")
        assert all(r.method == "GET" for r in api.requests)

    async def test_name_required_without_tty(self, api) -> None:
        with pytest.raises(click.ClickException, match="project name required"):
            await commands.create_command(api.client(), None)

    async def test_prompts_for_name_on_tty(self, api, tty, monkeypatch) -> None:
        monkeypatch.setattr(click, "prompt", lambda *args, **kwargs: "alpha")
        api.route("GET", "/v1/project", {"objects": []})
        api.route("POST", "/v1/project", ALPHA)
        await commands.create_command(api.client(), None)
        assert api.last_json()["name"] == "alpha"


class TestDeleteCommand:
    async def test_deletes_without_confirmation_off_tty(self, api, capsys) -> None:
        api.route("GET", "/v1/project", {"objects": [ALPHA]})
        api.route("DELETE", "/v1/project/p1", text="")
        await commands.delete_command(api.client(), "alpha")
        assert api.requests[-1].method == "DELETE"
        assert capsys.readouterr().out == "✓ Deleted 'alpha'\n"

    async def test_declined_confirmation_keeps_project(self, api, tty, monkeypatch) -> None:
        monkeypatch.setattr(click, "confirm", lambda *args, **kwargs: False)
        api.route("GET", "/v1/project", {"objects": [ALPHA]})
        await commands.delete_command(api.client(), "alpha")
        assert [r.method for r in api.requests] == ["GET"]

    async def test_missing_project(self, api) -> None:
        api.route("GET", "/v1/project", {"objects": []})
        with pytest.raises(click.ClickException, match="'ghost' not found"):
            await commands.delete_command(api.client(), "ghost")

    async def test_failed_delete_reports_and_raises(self, api, capsys) -> None:
        api.route("GET", "/v1/project", {"objects": [ALPHA]})
        api.route("DELETE", "/v1/project/p1", status=403, text="forbidden")
        with pytest.raises(TransportError):
            await commands.delete_command(api.client(), "alpha")
        assert capsys.readouterr().out == "✗ Failed to delete 'alpha'\n"


class TestSwitchCommand:
    async def test_prints_export_line(self, api, capsys, monkeypatch) -> None:
        monkeypatch.setenv("SHELL", "/bin/bash")
        api.route("GET", "/v1/project", {"objects": [ALPHA]})
        await commands.switch_command(api.client(), "alpha")
        captured = capsys.readouterr()
        assert captured.out == 'export BRAINTRUST_DEFAULT_PROJECT="alpha"\n'
        assert captured.err == "Switched to alpha\nTip: eval $(<command>)\n"

    async def test_fish_hint(self, api, capsys, monkeypatch) -> None:
        monkeypatch.setenv("SHELL", "/usr/bin/fish")
        api.route("GET", "/v1/project", {"objects": [ALPHA]})
        await commands.switch_command(api.client(), "alpha")
        assert capsys.readouterr().err.endswith("Tip: <command> | source\n")

    async def test_missing_project_off_tty(self, api) -> None:
        api.route("GET", "/v1/project", {"objects": []})
        with pytest.raises(click.ClickException, match="'ghost' not found"):
            await commands.switch_command(api.client(), "ghost")

    async def test_offers_to_create_missing_project(self, api, tty, monkeypatch, capsys) -> None:
        monkeypatch.setattr(click, "confirm", lambda *args, **kwargs: True)
        api.route("GET", "/v1/project", {"objects": []})
        api.route("POST", "/v1/project", ALPHA)
        await commands.switch_command(api.client(), "alpha")
        assert api.last_json() == {"name": "alpha", "org_name": "acme"}
        assert "BRAINTRUST_DEFAULT_PROJECT" in capsys.readouterr().out

    async def test_selects_project_interactively(self, api, tty, monkeypatch, capsys) -> None:
        monkeypatch.setattr(click, "prompt", lambda *args, **kwargs: 2)
        api.route("GET", "/v1/project", {"objects": [BETA, ALPHA]})
        await commands.switch_command(api.client(), None)
        assert capsys.readouterr().out == 'export BRAINTRUST_DEFAULT_PROJECT="beta"\n'


class TestViewCommand:
    async def test_opens_browser(self, api, monkeypatch, capsys) -> None:
        opened: list[str] = []
        monkeypatch.setattr(click, "launch", lambda url: opened.append(url))
        api.route("GET", "/v1/project", {"objects": [ALPHA]})
        await commands.view_command(api.client(), "https://www.test", "alpha")
        assert opened == ["https://www.test/app/acme/p/alpha"]
        assert "Opened https://www.test/app/acme/p/alpha in browser" in capsys.readouterr().out

    async def test_requires_name_off_tty(self, api) -> None:
        with pytest.raises(click.ClickException, match="Must specify a project"):
            await commands.view_command(api.client(), "https://www.test", None)


def test_env_export_escapes_quotes(capsys) -> None:
    commands.print_env_export("NAME", 'a"b\\c', "done")
    assert capsys.readouterr().out == 'export NAME="a\\"b\\\\c"\n'
