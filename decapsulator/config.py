"""Configuration helpers for the decapsulator."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Mapping, MutableMapping, Optional

from .exceptions import ConfigurationError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(value: str, key: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{key} must be a boolean flag, got {value!r}.")


@dataclass(slots=True)
class DecapsulatorConfig:
    """Runtime configuration describing how members are reached.

    ``bypass_attribute_hooks`` controls whether reads and writes of Python
    instance members skip the target's own ``__getattribute__`` and
    ``__setattr__``.  The remaining fields only matter for Java targets and
    are consumed by :class:`~decapsulator.gateway.JVMGateway`.
    """

    bypass_attribute_hooks: bool = True
    classpath: List[Path] = field(default_factory=list)
    jvm_args: List[str] = field(default_factory=list)
    open_packages: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "DecapsulatorConfig":
        env = os.environ if env is None else env
        bypass = env.get("DECAPSULATOR_BYPASS_HOOKS")
        classpath = [
            Path(p).expanduser().resolve()
            for p in env.get("DECAPSULATOR_CLASSPATH", "").split(os.pathsep)
            if p
        ]
        jvm_args = [arg for arg in env.get("DECAPSULATOR_JVM_ARGS", "").split(" ") if arg]
        open_packages = [
            pkg.strip() for pkg in env.get("DECAPSULATOR_OPEN_PACKAGES", "").split(",") if pkg.strip()
        ]
        return cls(
            bypass_attribute_hooks=_parse_bool(bypass, "DECAPSULATOR_BYPASS_HOOKS") if bypass else True,
            classpath=classpath,
            jvm_args=jvm_args,
            open_packages=open_packages,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "DecapsulatorConfig":
        bypass = data.get("bypass_attribute_hooks", True)
        if isinstance(bypass, str):
            bypass = _parse_bool(bypass, "bypass_attribute_hooks")
        elif not isinstance(bypass, bool):
            raise ConfigurationError(
                f"bypass_attribute_hooks must be a boolean flag, got {bypass!r}."
            )
        classpath = [Path(str(p)).expanduser().resolve() for p in _iterable(data, "classpath")]
        jvm_args = [str(arg) for arg in _iterable(data, "jvm_args")]
        open_packages = [str(pkg) for pkg in _iterable(data, "open_packages")]
        return cls(
            bypass_attribute_hooks=bypass,
            classpath=classpath,
            jvm_args=jvm_args,
            open_packages=open_packages,
        )

    def to_mapping(self) -> MutableMapping[str, object]:
        return {
            "bypass_attribute_hooks": self.bypass_attribute_hooks,
            "classpath": [str(p) for p in self.classpath],
            "jvm_args": list(self.jvm_args),
            "open_packages": list(self.open_packages),
        }

    def compute_classpath(self) -> List[str]:
        return [str(p) for p in self.classpath]

    def compute_jvm_args(self) -> List[str]:
        """Return the JVM arguments with one ``--add-opens`` per open package."""

        args = list(self.jvm_args)
        for package in self.open_packages:
            if "/" not in package:
                raise ConfigurationError(
                    f"Open package {package!r} must be given as 'module/package'."
                )
            args.append(f"--add-opens={package}=ALL-UNNAMED")
        return args


def _iterable(data: Mapping[str, object], key: str) -> Iterable[object]:
    value = data.get(key) or []
    if isinstance(value, str):
        raise ConfigurationError(f"{key} must be a list, got a string.")
    return value  # type: ignore[return-value]


__all__ = ["DecapsulatorConfig"]
