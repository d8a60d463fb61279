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

"""Meson build option parsing for wrapview.

Reads option() declarations from meson_options.txt / meson.options content
without evaluating Meson itself:

- tokenizer: quote and bracket aware splitting (split_top_level)
- values: literal parsing (parse_value)
- schema: the validated MesonOption record
- extractor: declaration scanning (parse_options, preview_options)
"""

from .extractor import (
    OPTIONS_FILENAMES,
    find_options_file,
    format_option,
    parse_options,
    preview_options,
)
from .schema import MesonOption, SkippedOption
from .tokenizer import split_top_level
from .values import parse_value

__all__ = [
    "OPTIONS_FILENAMES",
    "MesonOption",
    "SkippedOption",
    "find_options_file",
    "format_option",
    "parse_options",
    "parse_value",
    "preview_options",
    "split_top_level",
]
