"""Custom exception hierarchy for the decapsulator."""

from __future__ import annotations


class DecapsulatorError(RuntimeError):
    """Base exception for decapsulation failures."""


class MemberNotFoundError(DecapsulatorError, AttributeError):
    """Raised when a property or method cannot be resolved on the target.

    Subclassing :class:`AttributeError` keeps ``hasattr`` and ``getattr`` with
    a default working against an :class:`~decapsulator.ObjectDecapsulator`.
    """

    def __init__(self, member_name: str, owner: str, kind: str = "member") -> None:
        self.member_name = member_name
        self.owner = owner
        self.kind = kind
        self.name = member_name
        super().__init__(f"{kind.capitalize()} '{member_name}' does not exist on {owner}.")

    def __reduce__(self):
        return (type(self), (self.member_name, self.owner, self.kind))


class JVMNotStartedError(DecapsulatorError):
    """Raised when a JPype operation is attempted without an active JVM."""


class ConfigurationError(DecapsulatorError):
    """Raised when the decapsulator is misconfigured."""


__all__ = [
    "ConfigurationError",
    "DecapsulatorError",
    "JVMNotStartedError",
    "MemberNotFoundError",
]
