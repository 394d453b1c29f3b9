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
"""fieldfly injector — field injection driven by a type-keyed registry."""

from fieldfly.injector.decorator import AbstractDecorator, ObjectDecorator, unwrap_decorators
from fieldfly.injector.exceptions import (
    FieldAccessError,
    InjectionError,
    UnsupportedFieldTypeError,
)
from fieldfly.injector.injector import Injector
from fieldfly.injector.marker import Inject
from fieldfly.injector.properties import InjectorProperties
from fieldfly.injector.registry import (
    MISSING,
    ObjectFactory,
    Registry,
    RegistryBuilder,
    RegistryEntry,
    factory,
)
from fieldfly.injector.scanner import FieldDescriptor, all_fields, marked_fields

__all__ = [
    "AbstractDecorator",
    "FieldAccessError",
    "FieldDescriptor",
    "Inject",
    "InjectionError",
    "Injector",
    "InjectorProperties",
    "MISSING",
    "ObjectDecorator",
    "ObjectFactory",
    "Registry",
    "RegistryBuilder",
    "RegistryEntry",
    "UnsupportedFieldTypeError",
    "all_fields",
    "factory",
    "marked_fields",
    "unwrap_decorators",
]
