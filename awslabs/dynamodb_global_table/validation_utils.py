# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
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

"""Validation results and input parsing.

`ValidationResult` collects the render-time checks of a global table without
raising. `parse_props` validates caller input into a props model and logs
malformed input as readable `path: message` lines before re-raising.
"""

import pydantic
from dataclasses import dataclass, field
from loguru import logger
from typing import Any, List, Type, TypeVar


M = TypeVar('M', bound=pydantic.BaseModel)


@dataclass
class ValidationError:
    """A deferred check that failed for one replica."""

    path: str  # e.g., "replicas[us-west-2]"
    message: str
    suggestion: str = ''


@dataclass
class ValidationResult:
    """Result of validating a global table against its final state."""

    is_valid: bool = True
    errors: List[ValidationError] = field(default_factory=list)

    def add_error(self, path: str, message: str, suggestion: str = '') -> None:
        """Record a failed check and mark the result invalid."""
        self.errors.append(ValidationError(path, message, suggestion))
        self.is_valid = False

    def format(self, success_message: str, failure_prefix: str) -> str:
        """Format the result as one line per error, each followed by its suggestion."""
        if self.is_valid:
            return f'✅ {success_message}'

        lines = [f'❌ {failure_prefix}:']
        for error in self.errors:
            lines.append(f'  • {error.path}: {error.message}')
            if error.suggestion:
                lines.append(f'    💡 {error.suggestion}')
        return '\n'.join(lines)


_CONSTRAINT_MESSAGES = {
    'string_too_short': 'cannot be empty',
    'greater_than': 'must be greater than {gt}',
    'less_than_equal': 'must be at most {le}',
    'greater_than_equal': 'must be at least {ge}',
}


def _error_path(loc: tuple) -> str:
    """Join a pydantic location, indexing list positions: ('replicas', 0, 'region') -> replicas[0].region."""
    path = ''
    for item in loc:
        if isinstance(item, int):
            path += f'[{item}]'
        else:
            path += f'.{item}' if path else str(item)
    return path


def _error_message(error: dict) -> str:
    template = _CONSTRAINT_MESSAGES.get(error.get('type', ''))
    if template is None:
        return error.get('msg', '').removeprefix('Value error, ')
    field_name = error.get('loc', ('value',))[-1]
    return f'{template.format(**error.get("ctx", {}))}. {field_name}: {error.get("input")}'


def format_validation_errors(e: pydantic.ValidationError) -> str:
    """Render pydantic errors as `path: message` lines.

    Example:
        read_capacity.FIXED.units: must be greater than 0. units: 0
    """
    lines = []
    for error in e.errors():
        path = _error_path(error.get('loc', ()))
        message = _error_message(error)
        lines.append(f'{path}: {message}' if path else message)
    return '\n'.join(lines)


def parse_props(model: Type[M], props: Any) -> M:
    """Validate caller input into model.

    Raises:
        pydantic.ValidationError: The input is malformed; the formatted errors are logged
    """
    try:
        return model.model_validate(props)
    except pydantic.ValidationError as e:
        logger.error(f'Invalid {model.__name__}. errors: {format_validation_errors(e)}')
        raise
