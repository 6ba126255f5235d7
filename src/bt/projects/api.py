"""Project endpoints of the Braintrust REST API."""

from __future__ import annotations

from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, ValidationError

from bt.http import ApiClient, TransportError

PROJECT_PATH = "/v1/project"


class Project(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    org_id: str
    description: str | None = None


def _parse_projects(payload: object) -> list[Project]:
    objects = payload.get("objects") if isinstance(payload, dict) else None
    if not isinstance(objects, list):
        raise TransportError("failed to parse response: missing 'objects'")
    try:
        return [Project.model_validate(obj) for obj in objects]
    except ValidationError as e:
        raise TransportError(f"failed to parse response: {e}") from e


async def list_projects(client: ApiClient) -> list[Project]:
    payload = await client.get(PROJECT_PATH, params={"org_name": client.org_name})
    return _parse_projects(payload)


async def get_project_by_name(client: ApiClient, name: str) -> Project | None:
    payload = await client.get(PROJECT_PATH, params={"org_name": client.org_name, "name": name})
    projects = _parse_projects(payload)
    return projects[0] if projects else None


async def create_project(client: ApiClient, name: str) -> Project:
    payload = await client.post(PROJECT_PATH, {"name": name, "org_name": client.org_name})
    try:
        return Project.model_validate(payload)
    except ValidationError as e:
        raise TransportError(f"failed to parse response: {e}") from e


async def delete_project(client: ApiClient, project_id: str) -> None:
    await client.delete(f"{PROJECT_PATH}/{quote(project_id, safe='')}")


def project_url(app_url: str, org_name: str, project_name: str) -> str:
    """Browser URL of a project in the web app."""
    return (
        f"{app_url.rstrip('/')}/app/{quote(org_name, safe='')}"
        f"/p/{quote(project_name, safe='')}"
    )
