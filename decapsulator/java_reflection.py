"""Reflection backend for Java objects reached through JPype.

Java does enforce member visibility, so this backend goes through
``java.lang.reflect``: members are looked up with ``getDeclaredFields()`` and
``getDeclaredMethods()`` on the object's class and each of its superclasses,
and ``setAccessible(true)`` is applied to the freshly obtained ``Field`` or
``Method`` right before the single read, write or invocation it serves.
Nothing is cached, so the override never outlives that access.

Under the Java module system ``setAccessible`` fails for classes in packages
that are not opened to the unnamed module.  :class:`~decapsulator.gateway.JVMGateway`
starts the JVM with ``--add-opens`` arguments built from
:class:`~decapsulator.config.DecapsulatorConfig` for that reason.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterator, List, Optional

from .reflection import ClassReflection, MethodKind, Visibility

try:  # pragma: no cover - optional dependency guard
    import jpype
except ImportError:  # pragma: no cover
    jpype = None  # type: ignore[assignment]

__all__ = [
    "JavaClassReflection",
    "JavaReflectionMethod",
    "JavaReflectionProperty",
    "is_java_object",
]


@lru_cache(maxsize=None)
def _jclass(name: str):
    return jpype.JClass(name)


def _modifier():
    return _jclass("java.lang.reflect.Modifier")


def is_java_object(value: Any) -> bool:
    """Return ``True`` when ``value`` is a Java object proxied by JPype."""

    return jpype is not None and isinstance(value, jpype.JObject)


def _class_chain(java_class: Any) -> Iterator[Any]:
    current = java_class
    while current is not None:
        yield current
        current = current.getSuperclass()


def _setter(java_field: Any):
    """Return the typed setter for primitive fields so Python numbers unbox correctly."""

    field_type = java_field.getType()
    if not field_type.isPrimitive():
        return java_field.set
    return getattr(java_field, "set" + str(field_type.getName()).capitalize())


_PRIMITIVE_WRAPPERS = {
    "boolean": "JBoolean",
    "byte": "JByte",
    "char": "JChar",
    "short": "JShort",
    "int": "JInt",
    "long": "JLong",
    "float": "JFloat",
    "double": "JDouble",
}


def _convert_argument(parameter: Any, value: Any) -> Any:
    # Method.invoke takes Object varargs; primitives must box to the declared width.
    if parameter.isPrimitive():
        return getattr(jpype, _PRIMITIVE_WRAPPERS[str(parameter.getName())])(value)
    return value


def _visibility(modifiers: int) -> Visibility:
    modifier = _modifier()
    if modifier.isPublic(modifiers):
        return Visibility.PUBLIC
    if modifier.isProtected(modifiers):
        return Visibility.PROTECTED
    if modifier.isPrivate(modifiers):
        return Visibility.PRIVATE
    return Visibility.PACKAGE


@dataclass(frozen=True)
class JavaReflectionProperty:
    """A resolved ``java.lang.reflect.Field``."""

    name: str
    java_field: Any
    visibility: Visibility
    owner: str
    is_static: bool = False

    def get_value(self, instance: Any, *, bypass_hooks: bool = True) -> Any:
        self.java_field.setAccessible(True)
        return self.java_field.get(None if self.is_static else instance)

    def set_value(self, instance: Any, value: Any, *, bypass_hooks: bool = True) -> None:
        self.java_field.setAccessible(True)
        _setter(self.java_field)(None if self.is_static else instance, value)


@dataclass(frozen=True)
class JavaReflectionMethod:
    """A resolved ``java.lang.reflect.Method``."""

    name: str
    java_method: Any
    visibility: Visibility
    owner: str
    kind: MethodKind = MethodKind.INSTANCE

    def invoke(self, instance: Any, *args: Any, **kwargs: Any) -> Any:
        if kwargs:
            raise TypeError(f"Java method '{self.name}' does not accept keyword arguments.")
        self.java_method.setAccessible(True)
        receiver = None if self.kind is MethodKind.STATIC else instance
        parameters = self.java_method.getParameterTypes()
        converted = [_convert_argument(p, value) for p, value in zip(parameters, args)]
        return self.java_method.invoke(receiver, *converted)


class JavaClassReflection(ClassReflection):
    """Reflection over a ``java.lang.Class`` and its superclasses."""

    def __init__(self, java_class: Any) -> None:
        self._class = java_class

    @classmethod
    def for_object(cls, obj: Any) -> "JavaClassReflection":
        return cls(obj.getClass())

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"<JavaClassReflection {self.class_name}>"

    @property
    def reflected_class(self) -> Any:
        return self._class

    @property
    def class_name(self) -> str:
        return str(self._class.getName())

    def find_property(self, name: str, instance: Any = None) -> Optional[JavaReflectionProperty]:
        for klass in _class_chain(self._class):
            for field in klass.getDeclaredFields():
                if field.getName() != name:
                    continue
                modifiers = field.getModifiers()
                return JavaReflectionProperty(
                    name=name,
                    java_field=field,
                    visibility=_visibility(modifiers),
                    owner=str(klass.getName()),
                    is_static=bool(_modifier().isStatic(modifiers)),
                )
        return None

    def find_method(
        self, name: str, instance: Any = None, arity: Optional[int] = None
    ) -> Optional[JavaReflectionMethod]:
        # The most derived declaration with a matching arity wins; overloads of
        # equal arity are not disambiguated by argument type.
        for klass in _class_chain(self._class):
            for method in klass.getDeclaredMethods():
                if method.getName() != name:
                    continue
                if arity is not None and method.getParameterCount() != arity:
                    continue
                modifiers = method.getModifiers()
                kind = MethodKind.STATIC if _modifier().isStatic(modifiers) else MethodKind.INSTANCE
                return JavaReflectionMethod(
                    name=name,
                    java_method=method,
                    visibility=_visibility(modifiers),
                    owner=str(klass.getName()),
                    kind=kind,
                )
        return None

    def property_names(self, instance: Any = None) -> List[str]:
        names = set()
        for klass in _class_chain(self._class):
            names.update(str(field.getName()) for field in klass.getDeclaredFields())
        return sorted(names)

    def method_names(self) -> List[str]:
        names = set()
        for klass in _class_chain(self._class):
            names.update(str(method.getName()) for method in klass.getDeclaredMethods())
        return sorted(names)
