"""Parameter declaration models."""

from dataclasses import dataclass
from typing import Any


class _Required:
    """Marker for a parameter declared without a default."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "REQUIRED"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


REQUIRED: Any = _Required()


@dataclass(frozen=True)
class Parameter:
    """A named deployment parameter and its declared default."""

    name: str
    default: Any = REQUIRED

    @property
    def has_default(self) -> bool:
        return self.default is not REQUIRED


@dataclass(frozen=True)
class ParameterRef:
    """Placeholder for a resolved parameter value inside node arguments."""

    name: str

    def __str__(self) -> str:
        return f"param({self.name})"
