"""Test-suite helper that reaches protected and private members of an object.

Typical usage::

    from decapsulator import ObjectDecapsulator

    wrapper = ObjectDecapsulator(service)
    wrapper.retries = 0
    assert wrapper.call_method("backoff", 3) == 0.0
"""
from __future__ import annotations

from .config import DecapsulatorConfig
from .exceptions import (
    ConfigurationError,
    DecapsulatorError,
    JVMNotStartedError,
    MemberNotFoundError,
)
from .gateway import JVMGateway
from .object_decapsulator import ObjectDecapsulator, reflection_for
from .reflection import (
    ClassReflection,
    MethodKind,
    PythonClassReflection,
    ReflectionMethod,
    ReflectionProperty,
    Visibility,
)

__all__ = [
    "ClassReflection",
    "ConfigurationError",
    "DecapsulatorConfig",
    "DecapsulatorError",
    "JVMGateway",
    "JVMNotStartedError",
    "MemberNotFoundError",
    "MethodKind",
    "ObjectDecapsulator",
    "PythonClassReflection",
    "ReflectionMethod",
    "ReflectionProperty",
    "Visibility",
    "reflection_for",
]
