"""
Deployment parameter declarations and resolution.
"""
from .loader import load_module_parameters
from .models import REQUIRED, Parameter, ParameterRef
from .resolver import describe_shape, resolve, shape_of, shapes_compatible

__all__ = [
    "REQUIRED",
    "Parameter",
    "ParameterRef",
    "describe_shape",
    "load_module_parameters",
    "resolve",
    "shape_of",
    "shapes_compatible",
]
