"""Loading of per-module parameter override files."""

from pathlib import Path
from typing import Any, Union

import yaml

from ..errors import PersistenceError


def load_module_parameters(path: Union[str, Path], module_id: str) -> dict[str, Any]:
    """
    Load parameter overrides for one module from a parameters file.

    The file maps module ids to parameter overrides, for example::

        {"VotingModule": {"electionName": "Election 2025"}}

    JSON and YAML files are both accepted. A file without an entry for
    ``module_id`` yields no overrides.
    """
    path = Path(path)
    try:
        with open(path) as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise PersistenceError(
            f"Cannot read parameters file: {e}",
            operation="read",
            target=str(path)
        ) from e
    except yaml.YAMLError as e:
        raise PersistenceError(
            f"Parameters file is not valid JSON or YAML: {e}",
            operation="parse",
            target=str(path)
        ) from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise PersistenceError(
            "Parameters file must contain a mapping of module ids",
            operation="parse",
            target=str(path)
        )

    section = document.get(module_id, {})
    if not isinstance(section, dict):
        raise PersistenceError(
            f"Parameters for module '{module_id}' must be a mapping",
            operation="parse",
            target=str(path)
        )
    return dict(section)
