"""bt projects: manage the organization's projects."""

from bt.projects.api import (
    Project,
    create_project,
    delete_project,
    get_project_by_name,
    list_projects,
    project_url,
)

__all__ = [
    "Project",
    "list_projects",
    "get_project_by_name",
    "create_project",
    "delete_project",
    "project_url",
]
