"""
Deployment graph data models.

Nodes are immutable declarations. A plan is an ordered, immutable tuple of
nodes in which every dependency appears before the nodes that use it.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional

from ..params.models import Parameter, ParameterRef


class NodeKind(str, Enum):
    """Kinds of plan nodes."""
    CREATE = "create"
    CALL = "call"


@dataclass(frozen=True)
class ContractRef:
    """Reference to the handle produced by a Create node."""

    node: str
    contract: Optional[str] = None

    def __str__(self) -> str:
        return f"ref({self.node})"


def iter_refs(value: Any) -> Iterator[Any]:
    """Yield every ParameterRef and ContractRef nested inside an argument."""
    if isinstance(value, (ParameterRef, ContractRef)):
        yield value
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_refs(item)
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_refs(item)


def format_arg(value: Any) -> str:
    """Render an argument for plan listings."""
    if isinstance(value, (ParameterRef, ContractRef)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_arg(item) for item in value) + "]"
    return repr(value)


@dataclass(frozen=True)
class CreateNode:
    """Plan step that instantiates a contract and yields a handle."""

    name: str
    contract: str
    args: tuple = ()
    after: tuple = ()

    kind: ClassVar[NodeKind] = NodeKind.CREATE

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "after", tuple(self.after))

    def parameter_refs(self) -> list[str]:
        return [ref.name for ref in iter_refs(self.args) if isinstance(ref, ParameterRef)]

    def contract_refs(self) -> list[str]:
        return [ref.node for ref in iter_refs(self.args) if isinstance(ref, ContractRef)]

    def dependencies(self) -> list[str]:
        """Node ids that must execute before this node."""
        return _unique(self.contract_refs() + list(self.after))

    def describe(self) -> str:
        args = ", ".join(format_arg(arg) for arg in self.args)
        return f"{self.name} = create {self.contract}({args})"


@dataclass(frozen=True)
class CallNode:
    """Plan step that invokes a method on an already created contract."""

    target: str
    method: str
    args: tuple = ()
    name: Optional[str] = None
    after: tuple = ()

    kind: ClassVar[NodeKind] = NodeKind.CALL

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "after", tuple(self.after))
        if self.name is None:
            object.__setattr__(self, "name", f"{self.target}.{self.method}")

    def parameter_refs(self) -> list[str]:
        return [ref.name for ref in iter_refs(self.args) if isinstance(ref, ParameterRef)]

    def contract_refs(self) -> list[str]:
        return [ref.node for ref in iter_refs(self.args) if isinstance(ref, ContractRef)]

    def dependencies(self) -> list[str]:
        return _unique([self.target] + self.contract_refs() + list(self.after))

    def describe(self) -> str:
        args = ", ".join(format_arg(arg) for arg in self.args)
        return f"{self.name} = call {self.target}.{self.method}({args})"


@dataclass(frozen=True)
class ExecutionPlan:
    """Immutable, dependency-ordered sequence of plan nodes."""

    nodes: tuple
    parameters: tuple = ()
    module_id: Optional[str] = None
    _index: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "parameters", tuple(self.parameters))
        self._index.update({node.name: node for node in self.nodes})

    def __iter__(self):
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def node_ids(self) -> list[str]:
        return [node.name for node in self.nodes]

    def get(self, name: str):
        return self._index.get(name)

    def parameter(self, name: str) -> Optional[Parameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def describe(self) -> list[str]:
        """One line per node, in execution order."""
        return [f"{i}. {node.describe()}" for i, node in enumerate(self.nodes, start=1)]


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))
