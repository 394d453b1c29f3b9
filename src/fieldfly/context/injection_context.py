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
"""Injection context backed by contextvars.

An active InjectionContext is the precondition for registry-sourced
injection. Without one, the injector only accepts marked fields that
already hold a value.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

_injection_context_var: ContextVar[InjectionContext | None] = ContextVar(
    "fieldfly_injection_context", default=None
)


class InjectionContext:
    """Marks injection as active for the current thread or async task.

    Use ``InjectionContext.init()`` to set a new context for the current
    thread or async task, or use an instance as a context manager to
    activate it for a block::

        with InjectionContext():
            injector.inject(processor)

    A context can also be handed to ``Injector.inject(..., context=ctx)``
    directly, without touching the ambient state.
    """

    def __init__(self, context_id: str | None = None) -> None:
        self._context_id = context_id or uuid.uuid4().hex
        self._tokens: list[Token[InjectionContext | None]] = []

    @property
    def context_id(self) -> str:
        return self._context_id

    def __enter__(self) -> InjectionContext:
        self._tokens.append(_injection_context_var.set(self))
        return self

    def __exit__(self, *exc_info: object) -> None:
        _injection_context_var.reset(self._tokens.pop())

    def __repr__(self) -> str:
        return f"InjectionContext(context_id={self._context_id!r})"

    @classmethod
    def init(cls, context_id: str | None = None) -> InjectionContext:
        """Create and set a new InjectionContext for the current thread or task."""
        ctx = cls(context_id=context_id)
        _injection_context_var.set(ctx)
        return ctx

    @classmethod
    def current(cls) -> InjectionContext | None:
        """Get the InjectionContext for the current thread or task, or None."""
        return _injection_context_var.get()

    @classmethod
    def is_set(cls) -> bool:
        """Whether an InjectionContext is active for the current thread or task."""
        return _injection_context_var.get() is not None

    @classmethod
    def clear(cls) -> None:
        """Clear the InjectionContext for the current thread or task."""
        _injection_context_var.set(None)
