import pytest
from structlog.testing import capture_logs

from decapsulator import DecapsulatorConfig, MemberNotFoundError, ObjectDecapsulator
from decapsulator.reflection import PythonClassReflection
from tests.stubs import (
    EXISTING_METHOD_NAMES,
    EXISTING_PROPERTY_NAMES,
    NONEXISTENT_PROPERTY_NAME,
    PRIVATE_PROPERTY_NAME,
    FrozenSettings,
    Gauge,
    Memoised,
    SlottedCounter,
    Thermostat,
    Vault,
    build_decapsulated_class,
    build_inheriting_class,
    read_stored_property,
    write_stored_property,
)


def test_property_exists_returns_false_when_property_does_not_exist(decapsulator):
    assert decapsulator.property_exists(NONEXISTENT_PROPERTY_NAME) is False
    assert decapsulator.member_exists(NONEXISTENT_PROPERTY_NAME) is False


@pytest.mark.parametrize("property_name", EXISTING_PROPERTY_NAMES)
def test_property_exists_returns_true_when_property_exists(decapsulator, property_name):
    assert decapsulator.property_exists(property_name) is True
    assert decapsulator.member_exists(property_name) is True


@pytest.mark.parametrize("method_name", EXISTING_METHOD_NAMES)
def test_method_exists_returns_true_when_method_exists(decapsulator, method_name):
    assert decapsulator.method_exists(method_name) is True
    assert decapsulator.member_exists(method_name) is True
    assert decapsulator.property_exists(method_name) is False


@pytest.mark.parametrize("property_name", EXISTING_PROPERTY_NAMES)
def test_set_property_sets_property_correctly(decapsulator, decapsulated_object, property_name):
    decapsulator.set_property(property_name, 1024)

    assert read_stored_property(decapsulated_object, property_name) == 1024


@pytest.mark.parametrize("property_name", EXISTING_PROPERTY_NAMES)
def test_get_property_gets_property_correctly(decapsulator, decapsulated_object, property_name):
    write_stored_property(decapsulated_object, property_name, 1024)

    assert decapsulator.get_property(property_name) == 1024


def test_private_property_round_trip(decapsulator):
    decapsulator.set_property(PRIVATE_PROPERTY_NAME, 1024)

    assert decapsulator.get_property(PRIVATE_PROPERTY_NAME) == 1024


def test_missing_property_raises_without_mutation(decapsulator, decapsulated_object):
    before = dict(vars(decapsulated_object))

    with pytest.raises(MemberNotFoundError) as excinfo:
        decapsulator.get_property(NONEXISTENT_PROPERTY_NAME)
    with pytest.raises(MemberNotFoundError):
        decapsulator.set_property(NONEXISTENT_PROPERTY_NAME, 4)

    assert vars(decapsulated_object) == before
    assert excinfo.value.member_name == NONEXISTENT_PROPERTY_NAME
    assert excinfo.value.owner.endswith("DecapsulatedObject")
    assert str(excinfo.value).startswith("Property 'nonexistentProperty' does not exist")


def test_missing_method_raises(decapsulator):
    with pytest.raises(MemberNotFoundError) as excinfo:
        decapsulator.call_method("nonexistentMethod")
    assert excinfo.value.kind == "method"


def test_member_not_found_is_attribute_error(decapsulator):
    with pytest.raises(AttributeError):
        decapsulator.get_property(NONEXISTENT_PROPERTY_NAME)


def test_declared_spelling_is_accepted(decapsulator):
    decapsulator.set_property("__privateProperty", 7)
    decapsulator.set_property("_protectedProperty", 8)

    assert decapsulator.get_property(PRIVATE_PROPERTY_NAME) == 7
    assert decapsulator.get_property("protectedProperty") == 8


def test_static_write_is_shared_between_instances(decapsulated_object):
    sibling = type(decapsulated_object)()
    ObjectDecapsulator(decapsulated_object).set_property("privateStaticProperty", 99)

    assert ObjectDecapsulator(sibling).get_property("privateStaticProperty") == 99
    assert "_DecapsulatedObject__privateStaticProperty" not in vars(decapsulated_object)


def test_call_method_invokes_every_visibility(decapsulator):
    assert decapsulator.call_method("publicMethod", 1) == ("public", 1)
    assert decapsulator.call_method("protectedMethod", 2) == ("protected", 2)
    assert decapsulator.call_method("privateMethod", 3, suffix="!") == "private:3!"
    assert decapsulator.call_method("privateStaticMethod", 4, 5) == 9
    assert decapsulator.call_method("protectedClassMethod") == "DecapsulatedObject"


def test_inherited_members_resolve_through_subclass():
    base = build_decapsulated_class()
    child = build_inheriting_class(base)()
    wrapper = ObjectDecapsulator(child)

    assert wrapper.get_property(PRIVATE_PROPERTY_NAME) == "private"
    assert wrapper.get_property("ownProperty") == "own"
    assert wrapper.call_method("privateMethod", 1) == "private:1"
    assert wrapper.call_method("protectedClassMethod") == "InheritingObject"

    wrapper.set_property("privateStaticProperty", "changed")
    assert getattr(base, "_DecapsulatedObject__privateStaticProperty") == "changed"


def test_frozen_dataclass_can_be_mutated():
    settings = FrozenSettings()
    wrapper = ObjectDecapsulator(settings)

    wrapper.set_property("retries", 0)
    wrapper.set_property("token", "rotated")

    assert settings.retries == 0
    assert settings._token == "rotated"


def test_honouring_attribute_hooks_keeps_target_guards():
    wrapper = ObjectDecapsulator(FrozenSettings(), DecapsulatorConfig(bypass_attribute_hooks=False))

    with pytest.raises(AttributeError):
        wrapper.set_property("retries", 0)


def test_custom_attribute_hooks_are_bypassed():
    vault = Vault()
    wrapper = ObjectDecapsulator(vault)

    assert wrapper.get_property("pin") == 1234
    wrapper.set_property("pin", 4321)
    assert wrapper.get_property("pin") == 4321

    guarded = ObjectDecapsulator(vault, DecapsulatorConfig(bypass_attribute_hooks=False))
    with pytest.raises(PermissionError):
        guarded.get_property("pin")


def test_slotted_members_are_reachable():
    counter = SlottedCounter()
    wrapper = ObjectDecapsulator(counter)

    wrapper.set_property("step", 5)
    assert wrapper.call_method("advance") == 5
    assert wrapper.get_property("count") == 5


def test_descriptor_properties_follow_their_accessors():
    wrapper = ObjectDecapsulator(Thermostat())

    assert wrapper.get_property("fahrenheit") == 68.0
    assert wrapper.get_property("report") == "20C"
    wrapper.set_property("kelvin", 300.15)
    assert wrapper.get_property("celsius") == pytest.approx(27.0)


def test_property_without_setter_propagates_target_error():
    wrapper = ObjectDecapsulator(Thermostat())

    with pytest.raises(AttributeError) as excinfo:
        wrapper.set_property("fahrenheit", 1)
    assert not isinstance(excinfo.value, MemberNotFoundError)


def test_property_and_method_namespaces_are_separate():
    wrapper = ObjectDecapsulator(Gauge())

    assert wrapper.get_property("value") == 3
    assert wrapper.call_method("value") == 6


def test_cached_private_method_is_a_method():
    target = Memoised()
    wrapper = ObjectDecapsulator(target)

    assert wrapper.method_exists("lookup") is True
    assert wrapper.property_exists("lookup") is False
    assert wrapper.call_method("lookup", 3) == 30
    assert wrapper.lookup(3) == 30
    assert target.calls == 1
    assert wrapper.double(4) == 8


def test_descriptor_wrapped_methods_bind_to_the_target():
    wrapper = ObjectDecapsulator(Memoised())

    assert wrapper.call_method("triple", 5) == 15
    assert wrapper.call_method("describe", 1) == "int"
    assert wrapper.describe("one") == "value"


def test_builtin_stored_on_class_is_called_unbound():
    wrapper = ObjectDecapsulator(Memoised())

    assert wrapper.call_method("measure", [1, 2]) == 2
    assert wrapper.measure("abc") == 3
    assert wrapper.property_exists("measure") is False


def test_rebind_rederives_reflection(decapsulator):
    gauge = Gauge()
    decapsulator.rebind(gauge)

    assert decapsulator.decapsulated_object is gauge
    assert isinstance(decapsulator.reflection, PythonClassReflection)
    assert decapsulator.reflection.reflected_class is Gauge
    assert decapsulator.member_exists(PRIVATE_PROPERTY_NAME) is False
    assert decapsulator.get_property("value") == 3


def test_build_for_object_wraps_given_object(decapsulated_object):
    wrapper = ObjectDecapsulator.build_for_object(decapsulated_object)

    assert wrapper.decapsulated_object is decapsulated_object
    assert "DecapsulatedObject" in repr(wrapper)


def test_accessors_emit_debug_events(decapsulator):
    with capture_logs() as logs:
        decapsulator.set_property(PRIVATE_PROPERTY_NAME, 1)
        decapsulator.get_property(PRIVATE_PROPERTY_NAME)
        with pytest.raises(MemberNotFoundError):
            decapsulator.get_property(NONEXISTENT_PROPERTY_NAME)

    events = [entry["event"] for entry in logs]
    assert events == [
        "decapsulator.property.write",
        "decapsulator.property.read",
        "decapsulator.member.missing",
    ]
    assert logs[0]["visibility"] == "private"
    assert logs[0]["log_level"] == "debug"
