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
"""Type-keyed registry of injectable values and deferred factories."""

from __future__ import annotations

import types
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Generic, TypeVar, Union, get_args, get_origin

T = TypeVar("T")


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()
"""Returned by :meth:`Registry.resolve` when no entry matches."""


class ObjectFactory(Generic[T]):
    """Deferred provider: builds a fresh value on every resolution.

    Either wrap a zero-argument callable, or subclass and override
    :meth:`create`.
    """

    __slots__ = ("_create_fn",)

    def __init__(self, create_fn: Callable[[], T] | None = None) -> None:
        if create_fn is not None and not callable(create_fn):
            raise TypeError(f"ObjectFactory expects a callable, got {create_fn!r}")
        self._create_fn = create_fn

    def create(self) -> T:
        if self._create_fn is None:
            raise NotImplementedError(f"{type(self).__name__} must override create()")
        return self._create_fn()

    def __repr__(self) -> str:
        target = getattr(self._create_fn, "__qualname__", None)
        return f"ObjectFactory({target})" if target else f"{type(self).__name__}()"


def factory(create_fn: Callable[[], T]) -> ObjectFactory[T]:
    """Wrap *create_fn* so the registry calls it on each resolution."""
    return ObjectFactory(create_fn)


def unwrap_type(declared_type: Any) -> type | None:
    """Reduce a field annotation to the class used for matching.

    ``Annotated[X, ...]`` becomes ``X``, ``Optional[X]`` / ``X | None``
    becomes ``X`` and ``list[int]`` becomes ``list``. Anything that does
    not reduce to a single class (``Any``, ``A | B``, type variables)
    returns ``None``.
    """
    tp = declared_type
    while True:
        origin = get_origin(tp)
        if origin is Annotated:
            tp = get_args(tp)[0]
        elif origin is Union or isinstance(tp, types.UnionType):
            non_none = [arg for arg in get_args(tp) if arg is not type(None)]
            if len(non_none) != 1:
                return None
            tp = non_none[0]
        elif isinstance(origin, type):
            tp = origin
        else:
            break
    return tp if isinstance(tp, type) else None


def is_assignable(declared_type: Any, registered_type: type) -> bool:
    """Whether an entry registered under *registered_type* serves *declared_type*.

    Matches when the declared class is the registered class or one of its
    subclasses, so a single entry keyed on a base class serves every field
    typed to that base or something derived from it.
    """
    if declared_type is registered_type:
        return True
    declared = unwrap_type(declared_type)
    if declared is None:
        return False
    try:
        return issubclass(declared, registered_type)
    except TypeError:
        # non-runtime protocols refuse issubclass()
        return False


@dataclass(frozen=True)
class RegistryEntry:
    """A registered type and its provider (a value or an ObjectFactory)."""

    target_type: type
    provider: Any

    @property
    def is_factory(self) -> bool:
        return isinstance(self.provider, ObjectFactory)

    def provide(self) -> Any:
        if isinstance(self.provider, ObjectFactory):
            return self.provider.create()
        return self.provider


class Registry:
    """Ordered, read-only mapping from a type to a value or a deferred factory.

    Lookup follows insertion order and the first assignable entry wins.
    Once built the registry is never mutated, so concurrent ``resolve``
    calls need no locking.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[type, Any] | Iterable[tuple[type, Any]]) -> None:
        if entries is None:
            raise ValueError("Registry entries must not be None")
        pairs = entries.items() if isinstance(entries, Mapping) else entries
        built: list[RegistryEntry] = []
        for target_type, provider in pairs:
            if not isinstance(target_type, type):
                raise TypeError(f"Registry keys must be classes, got {target_type!r}")
            built.append(RegistryEntry(target_type, provider))
        self._entries: tuple[RegistryEntry, ...] = tuple(built)

    @staticmethod
    def builder() -> RegistryBuilder:
        return RegistryBuilder()

    @property
    def entries(self) -> tuple[RegistryEntry, ...]:
        return self._entries

    @property
    def supported_types(self) -> tuple[type, ...]:
        """Registered types, in lookup order."""
        return tuple(entry.target_type for entry in self._entries)

    def find(self, declared_type: Any) -> RegistryEntry | None:
        """Return the first entry assignable to *declared_type*, or ``None``."""
        for entry in self._entries:
            if is_assignable(declared_type, entry.target_type):
                return entry
        return None

    def resolve(self, declared_type: Any) -> Any:
        """Provide a value for *declared_type*, or ``MISSING`` if nothing matches.

        Factory-backed entries are invoked on every call; exceptions raised
        by a factory propagate to the caller.
        """
        entry = self.find(declared_type)
        if entry is None:
            return MISSING
        return entry.provide()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[type]:
        return iter(self.supported_types)

    def __contains__(self, declared_type: object) -> bool:
        return self.find(declared_type) is not None

    def __repr__(self) -> str:
        names = ", ".join(t.__name__ for t in self.supported_types)
        return f"Registry([{names}])"


class RegistryBuilder:
    """Collects entries and builds an immutable :class:`Registry`.

    Usage::

        registry = (
            Registry.builder()
            .register(UriLocatorFactory, locator_factory)
            .register_factory(ProcessorsFactory, DefaultProcessorsFactory)
            .build()
        )
    """

    def __init__(self) -> None:
        self._entries: dict[type, Any] = {}

    def register(self, target_type: type, value: Any) -> RegistryBuilder:
        """Register a ready value (or an ObjectFactory) for *target_type*."""
        if not isinstance(target_type, type):
            raise TypeError(f"Registry keys must be classes, got {target_type!r}")
        if target_type in self._entries:
            raise ValueError(f"Type '{target_type.__qualname__}' is already registered")
        self._entries[target_type] = value
        return self

    def register_factory(self, target_type: type, create_fn: Callable[[], Any]) -> RegistryBuilder:
        """Register a zero-argument callable invoked on every resolution."""
        return self.register(target_type, ObjectFactory(create_fn))

    def build(self) -> Registry:
        return Registry(self._entries)
