"""Wrapper that grants access to non-public members of an object.

:class:`ObjectDecapsulator` is meant for test suites that need to inspect or
mutate internal state of an object under test without widening the
visibility of that state in production code::

    wrapper = ObjectDecapsulator(account)
    wrapper.balance = 1024            # writes account._Account__balance
    assert wrapper.get_property("balance") == 1024
    wrapper.recalculate()             # invokes account._recalculate()

Attribute reads and writes on the wrapper are forwarded to
:meth:`~ObjectDecapsulator.get_property` and
:meth:`~ObjectDecapsulator.set_property`; reading a name that resolves to a
method returns a callable routed through
:meth:`~ObjectDecapsulator.call_method`.  Names that collide with the
wrapper's own API are reachable through the explicit accessors.

The class metadata handle is picked from the wrapped object: Java objects
proxied by JPype are reflected through ``java.lang.reflect``, everything else
through the Python naming conventions (see :mod:`decapsulator.reflection`).
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional

import structlog

from . import java_reflection
from .config import DecapsulatorConfig
from .exceptions import MemberNotFoundError
from .reflection import ClassReflection, PythonClassReflection

logger = structlog.get_logger(__name__)

__all__ = ["ObjectDecapsulator", "reflection_for"]


def reflection_for(obj: Any) -> ClassReflection:
    """Return the class metadata handle matching ``obj``'s runtime."""

    if java_reflection.is_java_object(obj):
        return java_reflection.JavaClassReflection.for_object(obj)
    return PythonClassReflection.for_object(obj)


class ObjectDecapsulator:
    """Provide direct access to non-public properties and methods of an object."""

    def __init__(self, obj: Any, config: Optional[DecapsulatorConfig] = None) -> None:
        object.__setattr__(self, "_config", config or DecapsulatorConfig())
        self._set_up(obj)

    @classmethod
    def build_for_object(
        cls, obj: Any, config: Optional[DecapsulatorConfig] = None
    ) -> "ObjectDecapsulator":
        return cls(obj, config)

    def _set_up(self, obj: Any) -> None:
        object.__setattr__(self, "_object", obj)
        object.__setattr__(self, "_reflection", reflection_for(obj))

    # ------------------------------------------------------------------
    # Wrapped object
    # ------------------------------------------------------------------
    @property
    def decapsulated_object(self) -> Any:
        return self._object

    @property
    def reflection(self) -> ClassReflection:
        return self._reflection

    def rebind(self, obj: Any) -> None:
        """Wrap ``obj`` instead, re-deriving the class metadata handle."""

        self._set_up(obj)

    # ------------------------------------------------------------------
    # Presence checks
    # ------------------------------------------------------------------
    def member_exists(self, name: str) -> bool:
        return self._reflection.has_member(name, self._object)

    def property_exists(self, name: str) -> bool:
        return self._reflection.has_property(name, self._object)

    def method_exists(self, name: str) -> bool:
        return self._reflection.has_method(name, self._object)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def get_property(self, name: str) -> Any:
        record = self._reflection.get_property(name, self._object)
        logger.debug(
            "decapsulator.property.read",
            name=name,
            owner=self._reflection.class_name,
            visibility=record.visibility.value,
            static=record.is_static,
        )
        return record.get_value(self._object, bypass_hooks=self._config.bypass_attribute_hooks)

    def set_property(self, name: str, value: Any) -> None:
        record = self._reflection.get_property(name, self._object)
        logger.debug(
            "decapsulator.property.write",
            name=name,
            owner=self._reflection.class_name,
            visibility=record.visibility.value,
            static=record.is_static,
        )
        record.set_value(self._object, value, bypass_hooks=self._config.bypass_attribute_hooks)

    def call_method(self, name: str, *args: Any, **kwargs: Any) -> Any:
        record = self._reflection.get_method(name, self._object, len(args))
        logger.debug(
            "decapsulator.method.call",
            name=name,
            owner=self._reflection.class_name,
            visibility=record.visibility.value,
            kind=record.kind.value,
        )
        return record.invoke(self._object, *args, **kwargs)

    # ------------------------------------------------------------------
    # Attribute forwarding
    # ------------------------------------------------------------------
    def __getattr__(self, name: str) -> Any:
        # Only reached for names the wrapper itself does not define.
        if name in {"_object", "_reflection", "_config"}:
            raise AttributeError(name)
        if self._reflection.has_property(name, self._object):
            return self.get_property(name)
        if self._reflection.has_method(name, self._object):
            return self._method_caller(name)
        logger.debug(
            "decapsulator.member.missing", kind="member", name=name, owner=self._reflection.class_name
        )
        raise MemberNotFoundError(name, self._reflection.class_name)

    def __setattr__(self, name: str, value: Any) -> None:
        self.set_property(name, value)

    def __dir__(self) -> List[str]:
        names = set(self._reflection.property_names(self._object))
        names.update(self._reflection.method_names())
        names.update(n for n in type(self).__dict__ if not n.startswith("_"))
        return sorted(names)

    def __repr__(self) -> str:
        return f"<ObjectDecapsulator {self._reflection.class_name} at {id(self._object):#x}>"

    def _method_caller(self, name: str) -> Callable[..., Any]:
        call_method = self.call_method

        def caller(*args: Any, **kwargs: Any) -> Any:
            return call_method(name, *args, **kwargs)

        caller.__name__ = name
        caller.__qualname__ = f"{self._reflection.class_name}.{name}"
        return caller
