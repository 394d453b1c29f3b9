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
"""Inject marker for field-level injection."""

from __future__ import annotations

from typing import Any


class Inject:
    """Marks an attribute as a candidate for field injection.

    Usage::

        class CssProcessor:
            locator_factory: UriLocatorFactory = Inject()
            _settings: Annotated[Settings, Inject()]

    The class-attribute form reads as ``None`` on instances until a value
    is assigned. The ``Annotated`` form carries no class attribute, so it
    also works for ``__slots__`` classes and frozen dataclasses.
    """

    __slots__ = ("name",)

    def __init__(self) -> None:
        self.name: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return None

    def __repr__(self) -> str:
        return "Inject()"


def is_inject_marker(value: Any) -> bool:
    """Whether *value* is the ``Inject`` marker (instance or the class itself)."""
    return isinstance(value, Inject) or value is Inject
