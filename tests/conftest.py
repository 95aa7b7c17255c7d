from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from decapsulator import ObjectDecapsulator
from decapsulator import java_reflection
from tests.stubs import (
    StubJavaObject,
    StubModifier,
    build_decapsulated_class,
    build_java_hierarchy,
)


def pytest_addoption(parser):
    parser.addoption(
        "--use-real-dependencies",
        action="store_true",
        default=False,
        help="Run tests against a real JVM started through JPype instead of reflection stubs.",
    )


@pytest.fixture()
def use_real_dependencies(request: pytest.FixtureRequest) -> bool:
    """Return True when the caller requested real runtime dependencies."""

    return bool(request.config.getoption("--use-real-dependencies"))


@pytest.fixture()
def decapsulated_object():
    return build_decapsulated_class()()


@pytest.fixture()
def decapsulator(decapsulated_object) -> ObjectDecapsulator:
    return ObjectDecapsulator(decapsulated_object)


@pytest.fixture()
def stubbed_java(monkeypatch):
    """Route Java reflection through the ``java.lang.reflect`` stand-ins."""

    monkeypatch.setattr(java_reflection, "_modifier", lambda: StubModifier)
    monkeypatch.setattr(
        java_reflection, "is_java_object", lambda value: isinstance(value, StubJavaObject)
    )
    root, account, savings = build_java_hierarchy()
    yield root, account, savings
