"""Staging modules.

- project: Staging project lifecycle (create, release, exit hooks)
- templates: Generated project files
"""

from tsxrender.staging.project import (
    StagingProject,
    create_staging_project,
    staged_project,
    release_all,
    install_exit_handlers,
)

__all__ = [
    "StagingProject",
    "create_staging_project",
    "staged_project",
    "release_all",
    "install_exit_handlers",
]
