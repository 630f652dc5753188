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

"""Exceptions raised while building and rendering a global table."""


class GlobalTableError(Exception):
    """Base class for global table configuration errors.

    Attributes:
        message: Human readable description of the problem
        deferred: True when the error was raised by the render pass rather than
            by the add operation that recorded the offending configuration
    """

    def __init__(self, message: str, deferred: bool = False):
        """Initialize the error with a message and the phase that raised it."""
        super().__init__(message)
        self.message = message
        self.deferred = deferred


class ConsistencyError(GlobalTableError):
    """An attribute name was redefined with a conflicting type."""

    pass


class StructuralError(GlobalTableError):
    """Duplicate names or regions, exceeded ceilings, or dangling index references."""

    pass


class CapacityError(GlobalTableError):
    """Capacity supplied where the billing mode forbids it, or missing where required."""

    pass


class TokenReferenceError(GlobalTableError):
    """An unresolved token was supplied where a concrete value is required."""

    pass
