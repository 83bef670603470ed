"""
Parameter resolution for deployment modules.

Merges caller-supplied overrides with declared defaults. Only the structural
shape of a value is checked: a scalar, a list of scalars, a list of lists of
scalars and so on. Scalar types are not compared with each other, so an
integer may replace a string default.
"""

import copy
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from ..errors import DuplicateParameter, MissingParameter, ShapeMismatch, UnknownParameter
from ..logging.config import get_logger
from .models import Parameter

logger = get_logger(__name__)

SCALAR = "scalar"
# Element shape of an empty list; unifies with anything
ANY = "any"

Shape = Union[str, tuple, None]


def shape_of(value: Any) -> Shape:
    """
    Compute the structural shape of a value.

    Returns ``"scalar"`` for non-sequence values, ``("list", inner)`` for
    lists and tuples, and ``None`` for ragged lists whose items disagree.
    """
    if isinstance(value, (list, tuple)):
        inner: Shape = ANY
        for item in value:
            inner = _unify(inner, shape_of(item))
            if inner is None:
                return None
        return ("list", inner)
    return SCALAR


def _unify(a: Shape, b: Shape) -> Shape:
    if a is None or b is None:
        return None
    if a == ANY:
        return b
    if b == ANY:
        return a
    if a == SCALAR or b == SCALAR:
        return a if a == b else None
    inner = _unify(a[1], b[1])
    return None if inner is None else ("list", inner)


def shapes_compatible(expected: Shape, actual: Shape) -> bool:
    """Check whether a value of shape ``actual`` may replace one of ``expected``."""
    if expected is None:
        # Ragged default: only the outer kind can be compared
        return actual is not None and actual != SCALAR
    return _unify(expected, actual) is not None


def describe_shape(shape: Shape) -> str:
    """Human readable form of a shape, e.g. ``list[list[scalar]]``."""
    if shape is None:
        return "ragged list"
    if shape in (SCALAR, ANY):
        return shape
    return f"list[{describe_shape(shape[1])}]"


def resolve(
    declared: Iterable[Union[Parameter, tuple]],
    overrides: Optional[Mapping[str, Any]] = None
) -> dict[str, Any]:
    """
    Resolve declared parameters against caller overrides.

    Args:
        declared: Parameter declarations, either ``Parameter`` objects or
            ``(name, default)`` pairs
        overrides: Mapping of parameter name to override value

    Returns:
        Mapping of parameter name to resolved value. Defaults are returned as
        independent copies so callers cannot mutate a module declaration.

    Raises:
        DuplicateParameter: Two declarations share a name
        UnknownParameter: An override names an undeclared parameter
        ShapeMismatch: An override's shape differs from the default's
        MissingParameter: A parameter without default has no override
    """
    overrides = dict(overrides or {})
    params = _normalize_declarations(declared)

    unknown = [name for name in overrides if name not in params]
    if unknown:
        raise UnknownParameter(
            f"Unknown parameter override: {unknown[0]}",
            parameter=unknown[0],
            declared=list(params),
            context={"unknown": unknown}
        )

    resolved: dict[str, Any] = {}
    for name, param in params.items():
        if name in overrides:
            value = overrides[name]
            if param.has_default:
                expected = shape_of(param.default)
                actual = shape_of(value)
                if not shapes_compatible(expected, actual):
                    raise ShapeMismatch(
                        f"Parameter '{name}' expects {describe_shape(expected)}, "
                        f"got {describe_shape(actual)}",
                        parameter=name,
                        expected_shape=describe_shape(expected),
                        actual_shape=describe_shape(actual)
                    )
            resolved[name] = value
        elif param.has_default:
            resolved[name] = copy.deepcopy(param.default)
        else:
            raise MissingParameter(
                f"Parameter '{name}' has no default and no override was supplied",
                parameter=name
            )

    logger.debug(
        "Resolved deployment parameters",
        declared=len(params),
        overridden=sorted(overrides)
    )
    return resolved


def _normalize_declarations(declared: Iterable[Union[Parameter, tuple]]) -> dict[str, Parameter]:
    params: dict[str, Parameter] = {}
    for item in declared:
        param = item if isinstance(item, Parameter) else Parameter(*item)
        if param.name in params:
            raise DuplicateParameter(
                f"Parameter '{param.name}' declared more than once",
                parameter=param.name
            )
        params[param.name] = param
    return params
