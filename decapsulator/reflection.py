"""Class metadata handles that resolve members regardless of visibility.

Python does not enforce member visibility.  It relies on a naming convention
instead: ``_name`` marks a protected member, and ``__name`` declared inside a
class body is stored as ``_ClassName__name`` (name mangling) so subclasses
cannot clash with it.  :class:`PythonClassReflection` undoes that convention.
Callers address a member by its plain name (``privateProperty``) and the
reflection tries the public, protected and mangled private spellings in turn,
walking the MRO of the reflected class so inherited and class-level (static)
members resolve as well.

Every lookup is performed from scratch.  Resolved members are returned as
small frozen records (:class:`ReflectionProperty`, :class:`ReflectionMethod`)
that know how to read, write or invoke the member on a given instance while
bypassing the instance's own ``__getattribute__``/``__setattr__`` hooks.

:class:`ClassReflection` is the abstract interface shared with the JPype
backend in :mod:`decapsulator.java_reflection`.
"""

from __future__ import annotations

import inspect
import sys
import types
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from functools import cached_property, partialmethod, singledispatchmethod
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import structlog

from .exceptions import MemberNotFoundError

logger = structlog.get_logger(__name__)

__all__ = [
    "ClassReflection",
    "MethodKind",
    "PythonClassReflection",
    "ReflectionMethod",
    "ReflectionProperty",
    "Visibility",
    "mangle",
]


class Visibility(str, Enum):
    """Declared visibility of a member."""

    PUBLIC = "public"
    PROTECTED = "protected"
    PACKAGE = "package"
    PRIVATE = "private"


class MethodKind(str, Enum):
    """How a method binds when invoked."""

    INSTANCE = "instance"
    STATIC = "static"
    CLASS = "class"


_ROUTINE_TYPES = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodDescriptorType,
    types.WrapperDescriptorType,
    types.ClassMethodDescriptorType,
    staticmethod,
    classmethod,
    partialmethod,
    singledispatchmethod,
)

if sys.version_info >= (3, 14):
    from annotationlib import Format

    _ANNOTATION_OPTIONS: Dict[str, Any] = {"format": Format.FORWARDREF}
else:
    _ANNOTATION_OPTIONS = {}


def mangle(name: str, owner: type) -> str:
    """Return the attribute ``__name`` is stored under when declared in ``owner``."""

    stripped = owner.__name__.lstrip("_")
    if not stripped:
        return f"__{name}"
    return f"_{stripped}__{name}"


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def _candidates(name: str, mro: Sequence[type]) -> Iterator[Tuple[str, Visibility]]:
    """Yield the stored spellings ``name`` may resolve to, in lookup order."""

    if _is_dunder(name):
        yield name, Visibility.PUBLIC
        return
    if name.startswith("__"):
        for klass in mro:
            yield mangle(name[2:], klass), Visibility.PRIVATE
        return
    if name.startswith("_"):
        yield name, Visibility.PROTECTED
        return
    yield name, Visibility.PUBLIC
    yield f"_{name}", Visibility.PROTECTED
    for klass in mro:
        yield mangle(name, klass), Visibility.PRIVATE


def _plain_name(attribute: str, mro: Sequence[type]) -> str:
    """Inverse of :func:`_candidates` used when enumerating members."""

    if _is_dunder(attribute):
        return attribute
    for klass in mro:
        stripped = klass.__name__.lstrip("_")
        prefix = f"_{stripped}__"
        if stripped and attribute.startswith(prefix) and len(attribute) > len(prefix):
            return attribute[len(prefix):]
    if attribute.startswith("_"):
        return attribute.lstrip("_")
    return attribute


def _instance_dict(instance: Any) -> Dict[str, Any]:
    if instance is None:
        return {}
    try:
        return object.__getattribute__(instance, "__dict__")
    except AttributeError:
        # __slots__ only
        return {}


def _annotations(klass: type) -> Dict[str, Any]:
    # Deferred annotations may name classes that are not defined yet.
    return inspect.get_annotations(klass, **_ANNOTATION_OPTIONS)


def _is_routine(raw: Any) -> bool:
    if isinstance(raw, _ROUTINE_TYPES) or inspect.isroutine(raw):
        return True
    # lru_cache wrappers and other callable objects stored on the class
    return callable(raw) and not isinstance(raw, type)


def _method_kind(raw: Any) -> MethodKind:
    if isinstance(raw, staticmethod) or not hasattr(type(raw), "__get__"):
        return MethodKind.STATIC
    if isinstance(raw, (classmethod, types.ClassMethodDescriptorType)):
        return MethodKind.CLASS
    return MethodKind.INSTANCE


@dataclass(frozen=True)
class ReflectionProperty:
    """A resolved property together with its read/write operations."""

    name: str
    attribute: str
    visibility: Visibility
    owner: type
    is_static: bool = False

    def get_value(self, instance: Any, *, bypass_hooks: bool = True) -> Any:
        if self.is_static:
            return getattr(self.owner, self.attribute)
        if bypass_hooks:
            return object.__getattribute__(instance, self.attribute)
        return getattr(instance, self.attribute)

    def set_value(self, instance: Any, value: Any, *, bypass_hooks: bool = True) -> None:
        if self.is_static:
            # Class level storage is shared by every instance of ``owner``.
            if bypass_hooks:
                type.__setattr__(self.owner, self.attribute, value)
            else:
                setattr(self.owner, self.attribute, value)
            return
        if bypass_hooks:
            object.__setattr__(instance, self.attribute, value)
        else:
            setattr(instance, self.attribute, value)


@dataclass(frozen=True)
class ReflectionMethod:
    """A resolved method together with its invocation."""

    name: str
    attribute: str
    visibility: Visibility
    owner: type
    kind: MethodKind
    function: Any

    def invoke(self, instance: Any, *args: Any, **kwargs: Any) -> Any:
        binder = getattr(self.function, "__get__", None)
        if binder is None:
            # Builtins stored on a class are not descriptors and never bind.
            return self.function(*args, **kwargs)
        owner = type(instance) if instance is not None else self.owner
        return binder(instance, owner)(*args, **kwargs)


class ClassReflection(ABC):
    """Class metadata handle used by :class:`~decapsulator.ObjectDecapsulator`."""

    @property
    @abstractmethod
    def class_name(self) -> str:
        """Return a human readable name of the reflected class."""

    @abstractmethod
    def find_property(self, name: str, instance: Any = None) -> Optional[Any]:
        """Return the property record for ``name`` or ``None``."""

    @abstractmethod
    def find_method(
        self, name: str, instance: Any = None, arity: Optional[int] = None
    ) -> Optional[Any]:
        """Return the method record for ``name`` or ``None``."""

    @abstractmethod
    def property_names(self, instance: Any = None) -> List[str]:
        """Return the plain names of every resolvable property."""

    @abstractmethod
    def method_names(self) -> List[str]:
        """Return the plain names of every resolvable method."""

    # ------------------------------------------------------------------
    # Presence checks
    # ------------------------------------------------------------------
    def has_property(self, name: str, instance: Any = None) -> bool:
        return self.find_property(name, instance) is not None

    def has_method(self, name: str, instance: Any = None) -> bool:
        return self.find_method(name, instance) is not None

    def has_member(self, name: str, instance: Any = None) -> bool:
        return self.has_property(name, instance) or self.has_method(name, instance)

    # ------------------------------------------------------------------
    # Strict lookups
    # ------------------------------------------------------------------
    def get_property(self, name: str, instance: Any = None) -> Any:
        record = self.find_property(name, instance)
        if record is None:
            logger.debug(
                "decapsulator.member.missing", kind="property", name=name, owner=self.class_name
            )
            raise MemberNotFoundError(name, self.class_name, "property")
        return record

    def get_method(self, name: str, instance: Any = None, arity: Optional[int] = None) -> Any:
        record = self.find_method(name, instance, arity)
        if record is None:
            logger.debug(
                "decapsulator.member.missing", kind="method", name=name, owner=self.class_name
            )
            raise MemberNotFoundError(name, self.class_name, "method")
        return record


class PythonClassReflection(ClassReflection):
    """Reflection over a Python class following its naming conventions."""

    def __init__(self, reflected_class: type) -> None:
        if not isinstance(reflected_class, type):
            raise TypeError(f"Expected a class, got {type(reflected_class).__name__}.")
        self._class = reflected_class

    @classmethod
    def for_object(cls, obj: Any) -> "PythonClassReflection":
        return cls(type(obj))

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"<PythonClassReflection {self._class.__qualname__}>"

    @property
    def reflected_class(self) -> type:
        return self._class

    @property
    def class_name(self) -> str:
        return self._class.__qualname__

    @property
    def mro(self) -> Tuple[type, ...]:
        return self._class.__mro__

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def find_property(self, name: str, instance: Any = None) -> Optional[ReflectionProperty]:
        for attribute, visibility in _candidates(name, self.mro):
            found = self._locate(attribute, instance)
            if found is None or found[0] != "property":
                continue
            _, owner, is_static, _ = found
            return ReflectionProperty(name, attribute, visibility, owner, is_static)
        return None

    def find_method(
        self, name: str, instance: Any = None, arity: Optional[int] = None
    ) -> Optional[ReflectionMethod]:
        # Python resolves a single callable per name; arity is not used for selection.
        for attribute, visibility in _candidates(name, self.mro):
            found = self._locate(attribute, instance)
            if found is None or found[0] != "method":
                continue
            _, owner, _, raw = found
            return ReflectionMethod(name, attribute, visibility, owner, _method_kind(raw), raw)
        return None

    def property_names(self, instance: Any = None) -> List[str]:
        return self._names("property", instance)

    def method_names(self) -> List[str]:
        return self._names("method", None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _class_lookup(self, attribute: str) -> Tuple[Any, Optional[type]]:
        for klass in self.mro:
            if attribute in klass.__dict__:
                return klass.__dict__[attribute], klass
        return None, None

    def _locate(self, attribute: str, instance: Any) -> Optional[Tuple[str, type, bool, Any]]:
        """Classify where ``attribute`` is stored, following attribute precedence."""

        raw, owner = self._class_lookup(attribute)
        if owner is not None and inspect.isdatadescriptor(raw):
            return "property", owner, False, raw
        if attribute in _instance_dict(instance):
            return "property", self._class, False, None
        if owner is not None:
            if isinstance(raw, cached_property):
                return "property", owner, False, raw
            if _is_routine(raw):
                return "method", owner, False, raw
            return "property", owner, True, raw
        for klass in self.mro:
            if attribute in _annotations(klass):
                return "property", klass, False, None
        return None

    def _names(self, kind: str, instance: Any) -> List[str]:
        attributes = set(_instance_dict(instance))
        for klass in self.mro:
            attributes.update(klass.__dict__)
            attributes.update(_annotations(klass))
        names = set()
        for attribute in attributes:
            found = self._locate(attribute, instance)
            if found is not None and found[0] == kind:
                names.add(_plain_name(attribute, self.mro))
        return sorted(names)
