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

"""Opaque deployment-time tokens and the deployment context.

A token stands for a value that is only known when the template is deployed,
such as the region of a region-agnostic stack. Tokens cannot be compared or
used as registry keys; they are passed through to the rendered output as-is.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Union


TOKEN_MARKER = '${Token['

# Pseudo parameter used when no concrete deployment region is known
AWS_REGION = 'AWS::Region'


@dataclass(frozen=True)
class Token:
    """An unresolved value identified by the name of what it refers to."""

    name: str

    def __str__(self) -> str:
        """Encode the token the way string-typed tokens are embedded."""
        return f'{TOKEN_MARKER}{self.name}]}}'


def is_unresolved(value: Any) -> bool:
    """Return True if value is a token or a string with an embedded token.

    Args:
        value: Any configuration value

    Returns:
        True when the value cannot be resolved before deployment
    """
    if isinstance(value, Token):
        return True
    return isinstance(value, str) and TOKEN_MARKER in value


Region = Union[str, Token]


@dataclass
class DeploymentContext:
    """Where the global table is deployed.

    The deployment region hosts the implicit replica. Token detection is
    pluggable so callers embedding tokens in their own format can supply it.
    """

    region: Region = field(default_factory=lambda: Token(AWS_REGION))
    token_detector: Callable[[Any], bool] = is_unresolved

    def is_unresolved(self, value: Any) -> bool:
        """Return True if value is an unresolved token in this context."""
        return self.token_detector(value)

    @property
    def region_agnostic(self) -> bool:
        """Return True if the deployment region is not known yet."""
        return self.is_unresolved(self.region)
