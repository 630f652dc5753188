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

"""Insertion-ordered, key-unique collection shared by every registry."""

from typing import Dict, Generic, Iterator, List, Optional, TypeVar


V = TypeVar('V')


class OrderedRegistry(Generic[V]):
    """Map that keeps first-insertion order and refuses duplicate keys.

    Duplicate detection is left to the caller through `contains` so each
    registry can raise its own error type; `add` raises KeyError as a last
    line of defence.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._items: Dict[str, V] = {}

    def add(self, key: str, value: V) -> None:
        """Record value under key.

        Raises:
            KeyError: If key is already registered
        """
        if key in self._items:
            raise KeyError(f"Key already registered. key: '{key}'")
        self._items[key] = value

    def contains(self, key: str) -> bool:
        """Return True if key is registered."""
        return key in self._items

    def get(self, key: str) -> Optional[V]:
        """Return the value recorded under key, or None."""
        return self._items.get(key)

    def keys(self) -> List[str]:
        """Return keys in insertion order."""
        return list(self._items.keys())

    def values(self) -> List[V]:
        """Return values in insertion order."""
        return list(self._items.values())

    def __getitem__(self, key: str) -> V:
        return self._items[key]

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)
