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
"""Field injector: assigns registry values to fields marked with ``Inject``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from fieldfly.context.injection_context import InjectionContext
from fieldfly.core.config import Config
from fieldfly.injector.decorator import ObjectDecorator
from fieldfly.injector.exceptions import (
    FieldAccessError,
    InjectionError,
    UnsupportedFieldTypeError,
    type_name,
)
from fieldfly.injector.properties import InjectorProperties
from fieldfly.injector.registry import MISSING, Registry
from fieldfly.injector.scanner import FieldDescriptor, marked_fields

logger = structlog.get_logger("fieldfly.injector")


def describe(obj: Any) -> str:
    return f"{type(obj).__qualname__}@{id(obj):#x}"


class _InjectionPass:
    """State of one top-level ``inject()`` call.

    Tracks visited objects by identity. Visited objects are pinned until
    the pass ends so their ids cannot be reused by new objects.
    """

    __slots__ = ("_visited", "registry_enabled")

    def __init__(self, registry_enabled: bool) -> None:
        self._visited: dict[int, Any] = {}
        self.registry_enabled = registry_enabled

    def visit(self, obj: Any) -> bool:
        """Record *obj*; ``False`` if it was already visited in this pass."""
        key = id(obj)
        if key in self._visited:
            return False
        self._visited[key] = obj
        return True


class Injector:
    """Scans objects and injects registry values into their marked fields.

    For every field marked with ``Inject`` (inherited fields included):

    - the first registry entry assignable to the declared type provides the
      value, factories being invoked once per field;
    - otherwise a field that already holds a value is accepted and that
      value is scanned in turn;
    - otherwise ``UnsupportedFieldTypeError`` is raised and the call aborts.

    Decorators (see ``ObjectDecorator``) are seen through: after their own
    fields, the wrapped object is injected too. Each object is processed at
    most once per ``inject()`` call, which keeps self-references and cycles
    from recursing forever.

    The registry is consulted only while an ``InjectionContext`` is active
    (unless ``require_context`` is disabled).
    """

    def __init__(
        self,
        registry: Registry | Mapping[type, Any],
        properties: InjectorProperties | None = None,
    ) -> None:
        if registry is None:
            raise ValueError("Injector requires a registry")
        self._registry = registry if isinstance(registry, Registry) else Registry(registry)
        self._properties = properties or InjectorProperties()

    @classmethod
    def from_config(cls, registry: Registry | Mapping[type, Any], config: Config) -> Injector:
        """Build an injector with ``fieldfly.injector`` properties bound from *config*."""
        return cls(registry, config.bind(InjectorProperties))

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def properties(self) -> InjectorProperties:
        return self._properties

    def inject(self, target: Any, *, context: InjectionContext | None = None) -> None:
        """Inject every marked field of *target*, recursively.

        Args:
            target: Object to scan.
            context: Context to inject under. Defaults to the active
                ``InjectionContext`` of the current thread or task.

        Raises:
            ValueError: If *target* is ``None``.
            InjectionError: If a marked field cannot be satisfied or accessed.
        """
        if target is None:
            raise ValueError("Cannot inject into None")
        active = context if context is not None else InjectionContext.current()
        registry_enabled = active is not None or not self._properties.require_context
        logger.debug(
            "inject_started",
            target=describe(target),
            context_id=active.context_id if active is not None else None,
            registry_enabled=registry_enabled,
        )
        self._process(target, _InjectionPass(registry_enabled))

    def _process(self, obj: Any, injection_pass: _InjectionPass) -> None:
        if not injection_pass.visit(obj):
            return
        logger.debug("injecting", target=describe(obj))

        try:
            fields = marked_fields(obj)
        except Exception as exc:
            logger.error("field_scan_failed", target=describe(obj), error=str(exc))
            raise InjectionError(
                f"Exception while scanning {type(obj).__qualname__} for @Inject fields: {exc}",
                context={"target": describe(obj)},
            ) from exc

        for field in fields:
            self._inject_field(obj, field, injection_pass)

        if isinstance(obj, ObjectDecorator):
            try:
                decorated = obj.get_decorated_object()
            except Exception as exc:
                logger.error("decorator_unwrap_failed", target=describe(obj), error=str(exc))
                raise InjectionError(
                    f"Cannot unwrap decorator {type(obj).__qualname__}: {exc}",
                    context={"target": describe(obj)},
                ) from exc
            if decorated is not None:
                self._process(decorated, injection_pass)

    def _inject_field(self, obj: Any, field: FieldDescriptor, injection_pass: _InjectionPass) -> None:
        if not field.resolved:
            raise self._access_error(obj, field, "resolve", f"cannot evaluate annotation {field.declared_type!r}")

        if injection_pass.registry_enabled:
            try:
                value = self._registry.resolve(field.declared_type)
            except Exception as exc:
                raise self._access_error(obj, field, "resolve", str(exc)) from exc
            if value is not MISSING:
                try:
                    field.set_value(obj, value)
                except Exception as exc:
                    raise self._access_error(obj, field, "write", str(exc)) from exc
                logger.debug("field_injected", target=describe(obj), field=field.qualified_name)
                return

        try:
            existing = field.get_value(obj)
        except Exception as exc:
            raise self._access_error(obj, field, "read", str(exc)) from exc

        if existing is not None and self._accepts_existing(field, existing):
            logger.debug("field_already_populated", target=describe(obj), field=field.qualified_name)
            self._process(existing, injection_pass)
            return

        error = UnsupportedFieldTypeError(
            field_type=field.declared_type,
            field_name=field.name,
            owner=field.owner,
            supported_types=self._registry.supported_types,
            context_active=injection_pass.registry_enabled,
        )
        logger.error(
            "injection_failed",
            target=describe(obj),
            field=field.qualified_name,
            field_type=type_name(field.declared_type),
            supported_types=[type_name(t) for t in self._registry.supported_types],
        )
        raise error

    def _accepts_existing(self, field: FieldDescriptor, existing: Any) -> bool:
        if not self._properties.verify_existing_values:
            return True
        expected = field.field_type
        if expected is None:
            return True
        try:
            return isinstance(existing, expected)
        except TypeError:
            # non-runtime protocols refuse isinstance()
            return True

    @staticmethod
    def _access_error(obj: Any, field: FieldDescriptor, operation: str, reason: str) -> FieldAccessError:
        logger.error(
            "field_access_failed",
            target=describe(obj),
            field=field.qualified_name,
            operation=operation,
            error=reason,
        )
        return FieldAccessError(field_name=field.name, owner=field.owner, operation=operation, reason=reason)
