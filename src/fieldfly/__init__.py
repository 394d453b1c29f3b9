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
"""fieldfly — field injection from a type-keyed registry."""

from fieldfly.context import InjectionContext
from fieldfly.injector import (
    AbstractDecorator,
    FieldAccessError,
    Inject,
    InjectionError,
    Injector,
    InjectorProperties,
    ObjectDecorator,
    ObjectFactory,
    Registry,
    UnsupportedFieldTypeError,
    factory,
)
from fieldfly.kernel import FieldflyException

__version__ = "0.1.0"

__all__ = [
    "AbstractDecorator",
    "FieldAccessError",
    "FieldflyException",
    "Inject",
    "InjectionContext",
    "InjectionError",
    "Injector",
    "InjectorProperties",
    "ObjectDecorator",
    "ObjectFactory",
    "Registry",
    "UnsupportedFieldTypeError",
    "factory",
]
