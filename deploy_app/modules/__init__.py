"""
Bundled deployment modules, keyed by module id.
"""
from ..graph.module import DeploymentModule
from .voting import voting_module

MODULES: dict[str, DeploymentModule] = {
    voting_module.module_id: voting_module,
}


class UnknownModule(LookupError):
    """No bundled module has the requested id."""
    pass


def get_module(module_id: str) -> DeploymentModule:
    """Look up a bundled module by id."""
    try:
        return MODULES[module_id]
    except KeyError:
        raise UnknownModule(
            f"Unknown module '{module_id}'; available: {', '.join(sorted(MODULES))}"
        ) from None


__all__ = ["MODULES", "UnknownModule", "get_module", "voting_module"]
