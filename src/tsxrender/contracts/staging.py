"""Staging phase contract.

Enforces the guarantee that after staging, the project directory exists
and its entry module lives inside it.
"""

from pathlib import Path

from tsxrender.contracts.base import require


def assert_staged(project) -> None:
    """Enforce the staging phase contract.

    Parameters
    ----------
    project : StagingProject
        Project returned by the stager.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    root = Path(project.root_path)
    entry = Path(project.entry_path)
    require(root.is_absolute(), f"Staging contract violated: root '{root}' is not absolute")
    require(root.is_dir(), f"Staging contract violated: root '{root}' does not exist")
    require(entry.is_file(), f"Staging contract violated: missing entry module '{entry}'")
    require(
        root in entry.parents,
        f"Staging contract violated: entry '{entry}' is outside '{root}'"
    )
