"""
Deployment graph builder.

Turns an unordered collection of Create and Call declarations into an
ExecutionPlan. Validation happens entirely up front: a plan is either
returned whole or an error is raised and nothing is returned.
"""

from collections.abc import Iterable
from typing import Optional, Union

from ..errors import DependencyCycle, DuplicateNodeName, DuplicateParameter, UnresolvedReference
from ..logging.config import get_logger
from ..params.models import Parameter
from .models import CallNode, CreateNode, ExecutionPlan

logger = get_logger(__name__)

Node = Union[CreateNode, CallNode]


def build(
    nodes: Iterable[Node],
    parameters: Iterable[Parameter] = (),
    module_id: Optional[str] = None
) -> ExecutionPlan:
    """
    Build an execution plan from node declarations.

    Dependencies are a Call node's target, every ContractRef among a node's
    arguments and the node's explicit ``after`` list. The sort is stable:
    among nodes whose dependencies are satisfied, the one declared first
    goes next, so building the same declarations always yields the same
    order.

    Args:
        nodes: Create and Call declarations, in any order
        parameters: Declared parameters that ParameterRef arguments may name
        module_id: Owning module, recorded on the plan

    Returns:
        Immutable ExecutionPlan

    Raises:
        DuplicateNodeName: Two nodes share an id
        UnresolvedReference: A reference names an undeclared node or parameter,
            or a Call targets something that is not a Create node
        DependencyCycle: No order satisfies all dependencies
    """
    nodes = list(nodes)
    parameters = tuple(parameters)

    by_name = _index_nodes(nodes)
    param_names = _index_parameters(parameters)
    creates = {node.name for node in nodes if isinstance(node, CreateNode)}

    for node in nodes:
        _check_references(node, by_name, creates, param_names)

    ordered = _stable_topological_sort(nodes)

    logger.debug(
        "Built execution plan",
        module_id=module_id,
        node_count=len(ordered),
        order=[node.name for node in ordered]
    )
    return ExecutionPlan(nodes=tuple(ordered), parameters=parameters, module_id=module_id)


def _index_nodes(nodes: list[Node]) -> dict[str, Node]:
    by_name: dict[str, Node] = {}
    for node in nodes:
        if node.name in by_name:
            hint = ""
            if isinstance(node, CallNode):
                hint = "; give repeated calls distinct ids"
            raise DuplicateNodeName(
                f"Node name '{node.name}' declared more than once{hint}",
                node_name=node.name
            )
        by_name[node.name] = node
    return by_name


def _index_parameters(parameters: tuple) -> set[str]:
    names: set[str] = set()
    for param in parameters:
        if param.name in names:
            raise DuplicateParameter(
                f"Parameter '{param.name}' declared more than once",
                parameter=param.name
            )
        names.add(param.name)
    return names


def _check_references(
    node: Node,
    by_name: dict[str, Node],
    creates: set[str],
    param_names: set[str]
) -> None:
    if isinstance(node, CallNode) and node.target not in creates:
        reason = "is not a Create node" if node.target in by_name else "is not declared"
        raise UnresolvedReference(
            f"Call '{node.name}' targets '{node.target}', which {reason}",
            node_name=node.name,
            reference=node.target
        )

    for ref in node.contract_refs():
        if ref not in creates:
            raise UnresolvedReference(
                f"Node '{node.name}' uses the address of '{ref}', which is not a declared Create node",
                node_name=node.name,
                reference=ref
            )

    for ref in node.after:
        if ref not in by_name:
            raise UnresolvedReference(
                f"Node '{node.name}' must run after '{ref}', which is not declared",
                node_name=node.name,
                reference=ref
            )

    for ref in node.parameter_refs():
        if ref not in param_names:
            raise UnresolvedReference(
                f"Node '{node.name}' uses undeclared parameter '{ref}'",
                node_name=node.name,
                reference=ref
            )


def _stable_topological_sort(nodes: list[Node]) -> list[Node]:
    remaining = list(nodes)
    placed: set[str] = set()
    ordered: list[Node] = []

    while remaining:
        for i, node in enumerate(remaining):
            if all(dep in placed for dep in node.dependencies()):
                break
        else:
            stuck = [node.name for node in remaining]
            raise DependencyCycle(
                f"Dependency cycle among nodes: {', '.join(stuck)}",
                nodes=stuck
            )
        ordered.append(remaining.pop(i))
        placed.add(node.name)

    return ordered
