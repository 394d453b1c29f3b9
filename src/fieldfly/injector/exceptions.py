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
"""Injection exceptions — raised when a marked field cannot be satisfied."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from fieldfly.kernel.exceptions import FieldflyException


def type_name(tp: Any) -> str:
    """Readable name for a class or an annotation."""
    if isinstance(tp, type):
        return tp.__qualname__
    return repr(tp)


class InjectionError(FieldflyException):
    """An ``inject()`` call failed. Nothing is rolled back.

    Fields assigned before the failure keep their values.
    """

    def __init__(
        self,
        message: str,
        code: str = "INJECTION_FAILED",
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)


class UnsupportedFieldTypeError(InjectionError):
    """A marked field matches no registry entry and holds no value."""

    def __init__(
        self,
        *,
        field_type: Any,
        field_name: str,
        owner: type,
        supported_types: Sequence[type],
        context_active: bool = True,
    ) -> None:
        self.field_type = field_type
        self.field_name = field_name
        self.owner = owner
        self.supported_types = tuple(supported_types)
        self.context_active = context_active

        headline = f"@Inject cannot be applied to field of type: {type_name(field_type)}"
        supported = ", ".join(type_name(t) for t in self.supported_types) or "(none)"

        lines = [f"UnsupportedFieldTypeError: {headline}"]
        lines.append("")
        lines.append(f"  Field: {owner.__qualname__}.{field_name}")
        lines.append(f"  Supported types: {supported}")
        lines.append("")
        lines.append("  Suggestions:")
        if not context_active:
            lines.append("    - No InjectionContext is active: activate one or pass context= to inject()")
        lines.append(f"    - Register {type_name(field_type)} (or one of its base classes)")
        lines.append("    - Assign the field before calling inject()")

        InjectionError.__init__(
            self,
            headline,
            code="INJECTION_UNSUPPORTED_TYPE",
            context={
                "field": f"{owner.__qualname__}.{field_name}",
                "field_type": type_name(field_type),
                "supported_types": [type_name(t) for t in self.supported_types],
            },
        )
        self.args = ("\n".join(lines),)

    def __str__(self) -> str:
        return self.args[0] if self.args else ""


class FieldAccessError(InjectionError):
    """Reading, resolving or writing a marked field failed."""

    def __init__(
        self,
        *,
        field_name: str,
        owner: type,
        operation: str,
        reason: str,
    ) -> None:
        self.field_name = field_name
        self.owner = owner
        self.operation = operation
        self.reason = reason
        message = f"Cannot {operation} field {owner.__qualname__}.{field_name}: {reason}"
        super().__init__(
            message,
            code="INJECTION_FIELD_ACCESS",
            context={"field": f"{owner.__qualname__}.{field_name}", "operation": operation},
        )
