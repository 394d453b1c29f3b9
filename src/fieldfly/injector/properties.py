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
"""Injector settings bound from ``fieldfly.injector``."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from fieldfly.core.config import config_properties


@config_properties(prefix="fieldfly.injector")
class InjectorProperties(BaseModel):
    """Tunable injector behaviour.

    Attributes:
        require_context: Only consult the registry while an
            ``InjectionContext`` is active. When ``False`` the registry is
            always consulted.
        verify_existing_values: Accept a pre-populated field only if its
            value is an instance of the declared class. By default any
            non-``None`` value is accepted.
    """

    model_config = ConfigDict(frozen=True)

    require_context: bool = True
    verify_existing_values: bool = False
