"""
Deployment journal persistence.
"""
from .deployment_store import DeploymentStore

__all__ = ["DeploymentStore"]
