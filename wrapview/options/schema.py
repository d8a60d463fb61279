# Copyright 2025 Roger Cibrian
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

"""Validated record for a Meson build option declaration.

See https://mesonbuild.com/Build-options.html for the option() keyword
arguments. Types are strict: an option whose value is a bare identifier
where a number is expected does not validate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
)

MesonScalar = Union[StrictStr, StrictInt, StrictFloat, StrictBool]
MesonValue = Union[MesonScalar, dict[str, MesonScalar]]


class MesonOption(BaseModel):
    """One option() declaration."""

    model_config = ConfigDict(strict=True, frozen=True, populate_by_name=True)

    name: StrictStr
    type: StrictStr
    description: StrictStr | None = None
    value: MesonValue | list[MesonValue] | None = None
    choices: list[MesonValue] | None = None
    min: StrictInt | StrictFloat | None = None
    max: StrictInt | StrictFloat | None = None
    deprecated: StrictBool | StrictStr | list[MesonValue] | dict[str, MesonValue] | None = None
    yield_: StrictBool | None = Field(default=None, alias="yield")

    def as_dict(self) -> dict:
        """Declared fields only, keyed as in the declaration ("yield")."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class SkippedOption:
    """A declaration block that did not validate.

    Attributes:
        raw: Argument text between "option(" and the matching ")".
        reason: Validation error summary.
    """

    raw: str
    reason: str
