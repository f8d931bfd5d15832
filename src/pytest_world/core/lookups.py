"""Path navigation over nested scenario data.

This module provides the navigation primitive used by the reference
resolver. A path is a dot-separated sequence of segments, each segment
optionally followed by bracketed zero-based indices:

- `name` looks up a mapping key or a public attribute;
- `name[2]` or `name.2` addresses an element of a sequence;
- a trailing `length` segment returns the cardinality of the value found
  at the preceding path instead of looking up a field named `length`;
  indices of the segment just before `length` are ignored, so
  `items[0].length` counts `items`.
"""

from collections.abc import Mapping, Sized
from typing import TYPE_CHECKING, NamedTuple

from pytest_world.errors import ResolutionError
from pytest_world.names import INDEX_PATTERN, LENGTH_ACCESSOR, PATH_SEPARATOR, SEGMENT_PATTERN
from pytest_world.values import SEQUENCES

if TYPE_CHECKING:
    from pytest_world.values import RuntimeValue


class Segment(NamedTuple):
    """One parsed path segment."""

    name: str
    indices: tuple[int, ...] = ()


class PathLookup:
    """Resolver for dotted-path access.

    Resolves values from nested data structures (mappings, sequences and
    plain objects) using a dot-separated path notation.

    The resolver is tolerant at navigation time: any missing key, invalid
    index, or type mismatch results in `None` instead of raising. It is
    strict at parse time: a malformed path raises `ResolutionError`.
    """

    def __init__(self, path: str) -> None:
        """Parse a dotted path.

        Args:
            path: Dot-separated path describing how to traverse
                a nested structure.

        Raises:
            ResolutionError: If the path is syntactically invalid.
        """
        self.path = path

        parts = path.strip().split(PATH_SEPARATOR)

        self.count = len(parts) > 1 and parts[-1] == LENGTH_ACCESSOR
        if self.count:
            parts = parts[:-1]

        self.segments = tuple(self._parse_segment(part) for part in parts)

    def _parse_segment(self, part: str) -> Segment:
        """Parse a single segment with optional bracketed indices."""
        if not part:
            raise ResolutionError('Invalid path: empty segment', expression=self.path)

        matched = SEGMENT_PATTERN.match(part)
        if not matched:
            raise ResolutionError(f'Invalid path segment {part!r}', expression=self.path)

        return Segment(
            name=matched.group('name'),
            indices=tuple(int(index) for index in INDEX_PATTERN.findall(matched.group('indices'))),
        )

    def __call__(self, scope: 'RuntimeValue') -> 'RuntimeValue':
        """Resolve the path against a scope."""
        return self.resolve(scope)

    def resolve(self, scope: 'RuntimeValue') -> 'RuntimeValue':
        """Resolve the path against a value.

        Args:
            scope: Root value of the navigation.

        Returns:
            The value found at the path, its cardinality for `length`
            paths, or `None` if the path does not exist.
        """
        value = scope
        last = len(self.segments) - 1

        for position, segment in enumerate(self.segments):
            value = self._step(value, segment.name)
            if self.count and position == last:
                break
            for index in segment.indices:
                value = self._index(value, index)

        if self.count:
            return self._cardinality(value)

        return value

    @staticmethod
    def _step(value: 'RuntimeValue', key: str) -> 'RuntimeValue':
        """Navigate one named step."""
        if value is None:
            return None

        if isinstance(value, Mapping):
            return value.get(key)

        if isinstance(value, SEQUENCES):
            if key.isdecimal():
                return PathLookup._index(value, int(key))
            return None

        if key.startswith('_') or isinstance(value, (str, bytes)):
            return None

        return getattr(value, key, None)

    @staticmethod
    def _index(value: 'RuntimeValue', index: int) -> 'RuntimeValue':
        """Navigate one positional step."""
        if isinstance(value, SEQUENCES) and 0 <= index < len(value):
            return value[index]

        return None

    @staticmethod
    def _cardinality(value: 'RuntimeValue') -> int:
        """Count the elements found at a path."""
        if value is None:
            return 0

        if isinstance(value, Sized):
            return len(value)

        return 1
