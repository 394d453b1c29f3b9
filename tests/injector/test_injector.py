# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for Injector: matching, factories, pre-populated fields and recursion."""

import threading
from dataclasses import dataclass
from typing import Annotated

import pytest
from structlog.testing import capture_logs

from fieldfly.context import InjectionContext
from fieldfly.core.config import Config
from fieldfly.injector import (
    FieldAccessError,
    Inject,
    InjectionError,
    Injector,
    InjectorProperties,
    Registry,
    UnsupportedFieldTypeError,
    factory,
)


# -- Module-level fixture classes (annotations must resolve at module scope) --


class InterfaceA:
    pass


class ImplA(InterfaceA):
    pass


class SpecialA(InterfaceA):
    pass


class FactoryToken:
    pass


class Unregistered:
    pass


class Example:
    field_a: InterfaceA = Inject()
    field_b: FactoryToken = Inject()


class TwoTokens:
    first: FactoryToken = Inject()
    second: FactoryToken = Inject()


class Plain:
    name: str = "plain"


class SubtypeField:
    special: SpecialA = Inject()


class Level1:
    level1: InterfaceA = Inject()


class Level2(Level1):
    level2: FactoryToken = Inject()


class Level3(Level2):
    level3: Annotated[InterfaceA, Inject()]


class Nested:
    token: FactoryToken = Inject()


class Outer:
    nested: Unregistered = Inject()
    token: FactoryToken = Inject()


class Holder:
    child: Nested = Inject()


class MissingField:
    ok: InterfaceA = Inject()
    missing: Unregistered = Inject()


class SelfRef:
    me: Unregistered = Inject()
    token: FactoryToken = Inject()


class NodeA:
    peer: Unregistered = Inject()


class PrivateHolder:
    __secret: InterfaceA = Inject()

    def secret(self) -> InterfaceA:
        return self.__secret


@dataclass(frozen=True)
class FrozenService:
    dep: Annotated[InterfaceA | None, Inject()] = None


@dataclass
class DataclassService:
    dep: InterfaceA = Inject()


class ReadOnlyService:
    dep: Annotated[InterfaceA, Inject()]

    @property
    def dep(self) -> InterfaceA:
        return ImplA()


class BrokenGetter:
    dep: Annotated[Unregistered, Inject()]

    @property
    def dep(self) -> Unregistered:
        raise RuntimeError("cannot read")


class UnresolvableService:
    dep: "NotDefinedAnywhere" = Inject()  # noqa: F821


class Narrowing(Level1):
    level1: InterfaceA


class SlottedUnresolvable:
    __slots__ = ("dep",)
    dep: "Annotated[Later, Inject()]"


@pytest.fixture
def instance_x() -> ImplA:
    return ImplA()


@pytest.fixture
def registry(instance_x) -> Registry:
    return Registry({InterfaceA: instance_x, FactoryToken: factory(FactoryToken)})


@pytest.fixture
def injector(registry) -> Injector:
    return Injector(registry)


@pytest.fixture
def active_context():
    with InjectionContext() as ctx:
        yield ctx


class TestConstruction:
    def test_rejects_none_registry(self):
        with pytest.raises(ValueError):
            Injector(None)

    def test_wraps_plain_mapping(self, instance_x):
        injector = Injector({InterfaceA: instance_x})
        assert isinstance(injector.registry, Registry)
        assert injector.registry.supported_types == (InterfaceA,)

    def test_default_properties(self, injector):
        assert injector.properties == InjectorProperties()

    def test_from_config(self, registry):
        config = Config({"fieldfly": {"injector": {"verify-existing-values": True}}})
        injector = Injector.from_config(registry, config)
        assert injector.properties.verify_existing_values is True
        assert injector.registry is registry

    def test_inject_rejects_none_target(self, injector, active_context):
        with pytest.raises(ValueError):
            injector.inject(None)


class TestRegistryInjection:
    def test_spec_example(self, injector, instance_x, active_context):
        obj = Example()
        injector.inject(obj)
        assert obj.field_a is instance_x
        assert isinstance(obj.field_b, FactoryToken)
        assert obj.field_b is not instance_x

    def test_factory_invoked_once_per_field(self, injector, active_context):
        obj = TwoTokens()
        injector.inject(obj)
        assert isinstance(obj.first, FactoryToken)
        assert isinstance(obj.second, FactoryToken)
        assert obj.first is not obj.second

    def test_factory_instances_not_shared_across_calls(self, injector, active_context):
        one, two = Example(), Example()
        injector.inject(one)
        injector.inject(two)
        assert one.field_b is not two.field_b

    def test_subtype_field_served_by_base_entry(self, injector, instance_x, active_context):
        obj = SubtypeField()
        injector.inject(obj)
        assert obj.special is instance_x

    def test_object_without_marked_fields(self, injector, active_context):
        obj = Plain()
        injector.inject(obj)
        assert obj.name == "plain"

    def test_registry_value_overwrites_existing(self, injector, instance_x, active_context):
        obj = Example()
        obj.field_a = SpecialA()
        injector.inject(obj)
        assert obj.field_a is instance_x

    def test_three_level_inheritance(self, injector, instance_x, active_context):
        obj = Level3()
        injector.inject(obj)
        assert obj.level1 is instance_x
        assert isinstance(obj.level2, FactoryToken)
        assert obj.level3 is instance_x

    def test_private_member(self, injector, instance_x, active_context):
        obj = PrivateHolder()
        injector.inject(obj)
        assert obj.secret() is instance_x

    def test_frozen_dataclass(self, injector, instance_x, active_context):
        obj = FrozenService()
        injector.inject(obj)
        assert obj.dep is instance_x

    def test_dataclass_with_marker_default(self, injector, instance_x, active_context):
        obj = DataclassService()
        injector.inject(obj)
        assert obj.dep is instance_x

    def test_explicit_context_argument(self, injector, instance_x):
        assert InjectionContext.current() is None
        obj = Example()
        injector.inject(obj, context=InjectionContext())
        assert obj.field_a is instance_x


class TestPrePopulatedFields:
    def test_existing_value_kept_and_scanned(self, injector, active_context):
        nested = Nested()
        obj = Holder()
        obj.child = nested
        injector.inject(obj)
        assert obj.child is nested
        assert isinstance(nested.token, FactoryToken)

    def test_unregistered_existing_value_not_overwritten(self, injector, active_context):
        existing = Unregistered()
        obj = Outer()
        obj.nested = existing
        injector.inject(obj)
        assert obj.nested is existing
        assert isinstance(obj.token, FactoryToken)

    def test_existing_value_of_wrong_type_accepted_by_default(self, injector, active_context):
        obj = Outer()
        obj.nested = "not an Unregistered"
        injector.inject(obj)
        assert obj.nested == "not an Unregistered"

    def test_verify_existing_values_rejects_wrong_type(self, registry, active_context):
        injector = Injector(registry, InjectorProperties(verify_existing_values=True))
        obj = Outer()
        obj.nested = "not an Unregistered"
        with pytest.raises(UnsupportedFieldTypeError):
            injector.inject(obj)

    def test_verify_existing_values_accepts_right_type(self, registry, active_context):
        injector = Injector(registry, InjectorProperties(verify_existing_values=True))
        obj = Outer()
        obj.nested = Unregistered()
        injector.inject(obj)
        assert isinstance(obj.token, FactoryToken)


class TestUnsupportedFields:
    def test_missing_type_raises_with_supported_types(self, injector, active_context):
        with pytest.raises(UnsupportedFieldTypeError) as exc_info:
            injector.inject(MissingField())
        error = exc_info.value
        assert error.field_type is Unregistered
        assert error.field_name == "missing"
        assert error.owner is MissingField
        assert error.supported_types == (InterfaceA, FactoryToken)
        assert "Unregistered" in str(error)
        assert "InterfaceA, FactoryToken" in str(error)
        assert error.code == "INJECTION_UNSUPPORTED_TYPE"

    def test_fields_assigned_before_failure_are_kept(self, injector, instance_x, active_context):
        obj = MissingField()
        with pytest.raises(InjectionError):
            injector.inject(obj)
        assert obj.ok is instance_x

    def test_error_is_logged(self, injector, active_context):
        with capture_logs() as logs:
            with pytest.raises(UnsupportedFieldTypeError):
                injector.inject(MissingField())
        failures = [entry for entry in logs if entry["event"] == "injection_failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "error"
        assert failures[0]["field"] == "MissingField.missing"
        assert failures[0]["supported_types"] == ["InterfaceA", "FactoryToken"]

    def test_nested_failure_propagates_unwrapped(self, injector, active_context):
        obj = Holder()
        obj.child = MissingField()
        with pytest.raises(UnsupportedFieldTypeError) as exc_info:
            injector.inject(obj)
        assert exc_info.value.owner is MissingField


class TestContextGate:
    def test_no_context_no_registry_injection(self, injector):
        assert InjectionContext.current() is None
        with pytest.raises(UnsupportedFieldTypeError) as exc_info:
            injector.inject(Example())
        assert exc_info.value.context_active is False
        assert "No InjectionContext is active" in str(exc_info.value)

    def test_no_context_accepts_pre_populated_fields(self, injector, instance_x):
        obj = Example()
        token = FactoryToken()
        obj.field_a = instance_x
        obj.field_b = token
        injector.inject(obj)
        assert obj.field_b is token

    def test_require_context_disabled(self, registry, instance_x):
        injector = Injector(registry, InjectorProperties(require_context=False))
        obj = Example()
        injector.inject(obj)
        assert obj.field_a is instance_x

    def test_context_from_init(self, injector, instance_x):
        InjectionContext.init()
        try:
            obj = Example()
            injector.inject(obj)
            assert obj.field_a is instance_x
        finally:
            InjectionContext.clear()


class TestCycles:
    def test_self_reference_terminates(self, injector, active_context):
        obj = SelfRef()
        obj.me = obj
        injector.inject(obj)
        assert obj.me is obj
        assert isinstance(obj.token, FactoryToken)

    def test_mutual_references_terminate(self, injector, active_context):
        a, b = NodeA(), NodeA()
        a.peer = b
        b.peer = a
        injector.inject(a)
        assert a.peer is b
        assert b.peer is a

    def test_visited_set_is_scoped_per_call(self, injector, active_context):
        obj = Example()
        injector.inject(obj)
        first = obj.field_b
        injector.inject(obj)
        assert obj.field_b is not first

    def test_concurrent_calls_are_independent(self, injector, instance_x):
        targets = [Example() for _ in range(16)]
        errors: list[Exception] = []

        def worker(target: Example) -> None:
            try:
                injector.inject(target, context=InjectionContext())
            except Exception as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(t,)) for t in targets]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert all(t.field_a is instance_x for t in targets)
        assert len({id(t.field_b) for t in targets}) == len(targets)


class TestAccessFailures:
    def test_factory_failure_wrapped(self, instance_x, active_context):
        def broken() -> FactoryToken:
            raise RuntimeError("factory exploded")

        injector = Injector({InterfaceA: instance_x, FactoryToken: factory(broken)})
        with pytest.raises(FieldAccessError) as exc_info:
            injector.inject(Example())
        assert exc_info.value.operation == "resolve"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_write_failure_wrapped(self, injector, active_context):
        with pytest.raises(FieldAccessError) as exc_info:
            injector.inject(ReadOnlyService())
        assert exc_info.value.operation == "write"
        assert exc_info.value.code == "INJECTION_FIELD_ACCESS"

    def test_read_failure_wrapped(self, injector, active_context):
        with pytest.raises(FieldAccessError) as exc_info:
            injector.inject(BrokenGetter())
        assert exc_info.value.operation == "read"
        assert "cannot read" in str(exc_info.value)

    def test_unresolvable_annotation(self, injector, active_context):
        with pytest.raises(FieldAccessError) as exc_info:
            injector.inject(UnresolvableService())
        assert "NotDefinedAnywhere" in str(exc_info.value)

    def test_unresolvable_annotated_marker(self, injector, active_context):
        with pytest.raises(FieldAccessError) as exc_info:
            injector.inject(SlottedUnresolvable())
        assert exc_info.value.operation == "resolve"
        assert exc_info.value.field_name == "dep"


class TestInheritedMarkers:
    def test_marker_survives_redeclaration_in_subclass(self, injector, instance_x, active_context):
        obj = Narrowing()
        injector.inject(obj)
        assert obj.level1 is instance_x


class TestInjectionLogging:
    def test_start_event_carries_context_id(self, injector):
        with capture_logs() as logs:
            injector.inject(Example(), context=InjectionContext(context_id="ctx-42"))
        started = [entry for entry in logs if entry["event"] == "inject_started"]
        assert len(started) == 1
        assert started[0]["context_id"] == "ctx-42"
        assert started[0]["registry_enabled"] is True
