"""
Module declaration surface.

A deployment module is a function that receives a ``ModuleBuilder`` and
returns the named contract references it produces::

    def voting(m):
        name = m.get_parameter("electionName", "Election 2024")
        voting = m.contract("TokenizedVoting", [name])
        m.call(voting, "startVoting", [])
        return {"tokenizedVoting": voting}

    module = build_module("VotingModule", voting)

The builder only records declarations. ``build_module`` hands them to the
graph builder once and stores the resulting immutable plan on the module.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from ..errors import DuplicateParameter, UnresolvedReference
from ..params.models import REQUIRED, Parameter, ParameterRef
from ..params.resolver import resolve
from .builder import build
from .models import CallNode, ContractRef, CreateNode, ExecutionPlan


class ModuleBuilder:
    """Collects parameter and node declarations for one module."""

    def __init__(self, module_id: str):
        self.module_id = module_id
        self._parameters: dict[str, Parameter] = {}
        self._nodes: list[Union[CreateNode, CallNode]] = []

    def _node_id(self, local_id: str) -> str:
        return f"{self.module_id}#{local_id}"

    def get_parameter(self, name: str, default: Any = REQUIRED) -> ParameterRef:
        """Declare a parameter and return a reference to its resolved value."""
        existing = self._parameters.get(name)
        if existing is not None:
            if existing.default != default:
                raise DuplicateParameter(
                    f"Parameter '{name}' redeclared with a different default",
                    parameter=name
                )
            return ParameterRef(name)

        self._parameters[name] = Parameter(name, default)
        return ParameterRef(name)

    def contract(
        self,
        contract_name: str,
        args: Iterable[Any] = (),
        id: Optional[str] = None,
        after: Iterable[Union[ContractRef, str]] = ()
    ) -> ContractRef:
        """Declare a contract creation and return a reference to its handle."""
        node = CreateNode(
            name=self._node_id(id or contract_name),
            contract=contract_name,
            args=tuple(args),
            after=tuple(self._after_ids(after))
        )
        self._nodes.append(node)
        return ContractRef(node.name, contract_name)

    def call(
        self,
        contract: ContractRef,
        method: str,
        args: Iterable[Any] = (),
        id: Optional[str] = None,
        after: Iterable[Union[ContractRef, str]] = ()
    ) -> str:
        """Declare a method call on a created contract; returns the call's node id."""
        if not isinstance(contract, ContractRef):
            raise UnresolvedReference(
                f"call('{method}') needs a contract reference returned by contract()",
                node_name=method,
                reference=str(contract)
            )

        local_target = contract.node.split("#", 1)[-1]
        node = CallNode(
            target=contract.node,
            method=method,
            args=tuple(args),
            name=self._node_id(id or f"{local_target}.{method}"),
            after=tuple(self._after_ids(after))
        )
        self._nodes.append(node)
        return node.name

    def _after_ids(self, after: Iterable[Union[ContractRef, str]]) -> list[str]:
        return [item.node if isinstance(item, ContractRef) else item for item in after]

    @property
    def parameters(self) -> tuple:
        return tuple(self._parameters.values())

    @property
    def nodes(self) -> tuple:
        return tuple(self._nodes)


@dataclass(frozen=True)
class DeploymentModule:
    """A built deployment module: parameters, plan, and named results."""

    module_id: str
    parameters: tuple
    plan: ExecutionPlan
    results: Mapping[str, str]

    def resolve(self, overrides: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        """Resolve this module's parameters against caller overrides."""
        return resolve(self.parameters, overrides)

    def handles(self, deployment_result: Mapping[str, Any]) -> dict[str, Any]:
        """Map the module's returned names to handles from a run's result."""
        return {
            name: deployment_result[node]
            for name, node in self.results.items()
            if node in deployment_result
        }


def build_module(
    module_id: str,
    definition: Callable[[ModuleBuilder], Optional[Mapping[str, ContractRef]]]
) -> DeploymentModule:
    """
    Run a module definition and build its execution plan.

    Raises the plan validation errors of ``build`` when the declarations are
    inconsistent.
    """
    builder = ModuleBuilder(module_id)
    returned = definition(builder) or {}

    results: dict[str, str] = {}
    for name, ref in returned.items():
        if not isinstance(ref, ContractRef):
            raise UnresolvedReference(
                f"Module '{module_id}' returned '{name}', which is not a contract reference",
                node_name=module_id,
                reference=name
            )
        results[name] = ref.node

    plan = build(builder.nodes, builder.parameters, module_id=module_id)

    return DeploymentModule(
        module_id=module_id,
        parameters=builder.parameters,
        plan=plan,
        results=results
    )
