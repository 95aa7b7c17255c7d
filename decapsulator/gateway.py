"""JVM lifecycle for decapsulating Java objects.

Java refuses ``setAccessible(true)`` on members of packages that are not
opened to the unnamed module.  :class:`JVMGateway` starts the JVM with one
``--add-opens`` argument per configured package and then asks the boot module
layer whether each of those packages really is open, so a JVM started
elsewhere with different arguments is reported up front instead of failing on
the first private field.  A JVM that was already running is reused and is
never shut down by the gateway.
"""

from __future__ import annotations

import os
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, Iterable, List

import structlog

from .config import DecapsulatorConfig
from .exceptions import ConfigurationError, DecapsulatorError, JVMNotStartedError
from .object_decapsulator import ObjectDecapsulator

try:  # pragma: no cover - import guard for optional dependency
    import jpype
except ImportError as exc:  # pragma: no cover - helpful error messaging
    jpype = None  # type: ignore[assignment]
    _IMPORT_ERROR = exc
else:
    _IMPORT_ERROR = None

logger = structlog.get_logger(__name__)


def _missing_paths(paths: Iterable[str | os.PathLike[str]]) -> List[str]:
    return [str(path) for path in paths if not os.path.exists(path)]


@dataclass
class JVMGateway(AbstractContextManager["JVMGateway"]):
    """Start, verify and stop the JVM that hosts decapsulated Java objects."""

    config: DecapsulatorConfig = field(default_factory=DecapsulatorConfig)
    started_here: bool = False

    def __post_init__(self) -> None:
        if jpype is None:
            raise DecapsulatorError(
                "JPype is required to decapsulate Java objects. "
                "Install the 'java' extra or the 'JPype1' package first."
            ) from _IMPORT_ERROR
        missing = _missing_paths(self.config.compute_classpath())
        if missing:
            raise ConfigurationError(f"Classpath entries do not exist: {', '.join(missing)}")

    def __enter__(self) -> "JVMGateway":
        try:
            self.ensure_started()
        except BaseException:
            self.shutdown()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> bool | None:
        self.shutdown()
        return None

    @property
    def running(self) -> bool:
        return bool(jpype.isJVMStarted())

    def ensure_started(self) -> None:
        if self.running:
            logger.debug("jvm.reused", open_packages=list(self.config.open_packages))
        else:
            classpath = self.config.compute_classpath()
            jvm_args = self.config.compute_jvm_args()
            jpype.startJVM(*jvm_args, classpath=classpath)
            self.started_here = True
            logger.info("jvm.started", classpath=classpath, jvm_args=jvm_args)
        self.verify_open_packages()

    def verify_open_packages(self) -> None:
        """Raise :class:`ConfigurationError` for configured packages closed to reflection."""

        unnamed = self.get_class("java.lang.ClassLoader").getSystemClassLoader().getUnnamedModule()
        layer = self.get_class("java.lang.ModuleLayer").boot()
        closed = []
        for entry in self.config.open_packages:
            module_name, _, package = entry.partition("/")
            module = layer.findModule(module_name)
            if not module.isPresent() or not module.get().isOpen(package, unnamed):
                closed.append(entry)
        if closed:
            raise ConfigurationError(
                f"Packages are not open to reflection: {', '.join(closed)}. "
                "Start the JVM with the matching --add-opens arguments."
            )

    def shutdown(self) -> None:
        if not self.started_here:
            return
        if self.running:
            jpype.shutdownJVM()
        self.started_here = False
        logger.info("jvm.shutdown")

    def get_class(self, fqcn: str) -> Any:
        if not self.running:
            raise JVMNotStartedError("Attempted to access a Java class before the JVM was started.")
        return jpype.JClass(fqcn)

    def attach_classpath(self, paths: Iterable[str | os.PathLike[str]]) -> None:
        # JPype only honours classpath additions made before startJVM.
        if self.running:
            raise ConfigurationError("Classpath entries must be attached before the JVM is started.")
        paths = list(paths)
        missing = _missing_paths(paths)
        if missing:
            raise ConfigurationError(f"Classpath entries do not exist: {', '.join(missing)}")
        for path in paths:
            jpype.addClassPath(str(path))

    def decapsulate(self, java_object: Any) -> ObjectDecapsulator:
        """Wrap ``java_object`` with the gateway's configuration."""

        if not self.running:
            raise JVMNotStartedError("Java objects can only be decapsulated while the JVM runs.")
        return ObjectDecapsulator(java_object, self.config)


__all__ = ["JVMGateway"]
