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
"""Field scanning: every annotated member of a type and its ancestors."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, replace
from typing import Annotated, Any, get_args, get_origin

from fieldfly.injector.marker import Inject, is_inject_marker
from fieldfly.injector.registry import unwrap_type


@dataclass(frozen=True)
class FieldDescriptor:
    """One annotated member, as declared on *owner*.

    ``declared_type`` is the evaluated annotation, or the raw string when
    the annotation could not be evaluated (``resolved`` is then ``False``).
    """

    name: str
    declared_type: Any
    owner: type
    marked: bool
    resolved: bool = True

    @property
    def accessible(self) -> bool:
        """Public by naming convention (no leading underscore)."""
        return not self.name.startswith("_")

    @property
    def field_type(self) -> type | None:
        """The class the declared type reduces to, if any."""
        return unwrap_type(self.declared_type) if self.resolved else None

    @property
    def qualified_name(self) -> str:
        return f"{self.owner.__qualname__}.{self.name}"

    def get_value(self, obj: Any) -> Any:
        """Current value on *obj*; ``None`` when unset or still the marker."""
        try:
            value = getattr(obj, self.name)
        except AttributeError:
            # unset slot or instance attribute
            return None
        return None if isinstance(value, Inject) else value

    def set_value(self, obj: Any, value: Any) -> None:
        """Assign *value*, going around frozen dataclasses and ``__setattr__`` guards."""
        try:
            setattr(obj, self.name, value)
        except AttributeError:
            object.__setattr__(obj, self.name, value)


def _is_marked(annotation: Any, class_attr: Any) -> bool:
    if isinstance(class_attr, Inject):
        return True
    if get_origin(annotation) is Annotated:
        return any(is_inject_marker(meta) for meta in get_args(annotation)[1:])
    if isinstance(annotation, str):
        # unevaluated annotation: only its text is available
        return annotation.lstrip().startswith(("Annotated[", "typing.Annotated[")) and "Inject" in annotation
    return False


def _annotations(klass: type) -> tuple[dict[str, Any], bool]:
    """Annotations declared on *klass*, and whether string ones were evaluated."""
    try:
        return inspect.get_annotations(klass, eval_str=True), True
    except Exception:
        # reported by the injector if a marked field is affected
        return inspect.get_annotations(klass), False


def declared_fields(klass: type) -> list[FieldDescriptor]:
    """Fields annotated directly on *klass*, in declaration order."""
    annotations, evaluated = _annotations(klass)
    return [
        FieldDescriptor(
            name=name,
            declared_type=annotation,
            owner=klass,
            marked=_is_marked(annotation, klass.__dict__.get(name)),
            resolved=evaluated or not isinstance(annotation, str),
        )
        for name, annotation in annotations.items()
    ]


def all_fields(obj: Any) -> list[FieldDescriptor]:
    """All fields of ``type(obj)`` and its ancestors, most-derived first.

    A name redeclared by a subclass is reported once, with the subclass
    declaration. It stays marked if any class in the hierarchy marks it.
    """
    by_name: dict[str, FieldDescriptor] = {}
    for klass in type(obj).__mro__:
        if klass is object:
            continue
        for descriptor in declared_fields(klass):
            known = by_name.get(descriptor.name)
            if known is None:
                by_name[descriptor.name] = descriptor
            elif descriptor.marked and not known.marked:
                by_name[descriptor.name] = replace(known, marked=True)
    return list(by_name.values())


def marked_fields(obj: Any) -> list[FieldDescriptor]:
    """Fields of *obj* carrying the ``Inject`` marker."""
    return [descriptor for descriptor in all_fields(obj) if descriptor.marked]
