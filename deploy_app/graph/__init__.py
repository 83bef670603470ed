"""
Deployment graph declarations and plan construction.
"""
from .builder import build
from .models import CallNode, ContractRef, CreateNode, ExecutionPlan, NodeKind
from .module import DeploymentModule, ModuleBuilder, build_module

__all__ = [
    "CallNode",
    "ContractRef",
    "CreateNode",
    "DeploymentModule",
    "ExecutionPlan",
    "ModuleBuilder",
    "NodeKind",
    "build",
    "build_module",
]
