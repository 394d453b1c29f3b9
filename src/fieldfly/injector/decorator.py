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
"""Decorator capability: objects that wrap another object."""

from __future__ import annotations

from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class ObjectDecorator(Protocol[T_co]):
    """An object that wraps another one and exposes it.

    The injector processes a decorator's own fields first, then injects
    into the wrapped object.
    """

    def get_decorated_object(self) -> T_co: ...


class AbstractDecorator(Generic[T]):
    """Base class for decorators holding a single wrapped object."""

    def __init__(self, decorated: T) -> None:
        if decorated is None:
            raise ValueError("decorated object must not be None")
        self._decorated = decorated

    def get_decorated_object(self) -> T:
        return self._decorated

    def get_original_decorated_object(self) -> Any:
        """Unwrap nested decorators down to the innermost object.

        Stops at the first object that is not a decorator, or at an object
        already seen when decorators wrap each other.
        """
        return unwrap_decorators(self._decorated)


def unwrap_decorators(obj: Any) -> Any:
    """Follow ``get_decorated_object()`` until reaching a non-decorator."""
    seen: set[int] = {id(obj)}
    current = obj
    while isinstance(current, ObjectDecorator):
        inner = current.get_decorated_object()
        if inner is None or id(inner) in seen:
            break
        seen.add(id(inner))
        current = inner
    return current
