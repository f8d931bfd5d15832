"""Scenario-scoped key/value store.

The store is the shared substrate of a scenario: every step reads and
writes it, and started tasks may run concurrently with the main flow.
Access is guarded by a re-entrant lock so that single reads and writes
are atomic; compound read-modify-write sequences use `locked()`.
"""

from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from threading import RLock
from typing import TYPE_CHECKING

from pytest_world.core.resolver import resolve

if TYPE_CHECKING:
    from collections.abc import Mapping

if TYPE_CHECKING:
    from pytest_world.values import RuntimeValue


class ScenarioStore(MutableMapping[str, 'RuntimeValue']):
    """Mutable mapping of scenario values.

    Exactly one store lives per running scenario. It acts as the default
    scope for reference expressions: `store.resolve('{user.name}')`
    navigates the stored `user` value.
    """

    def __init__(self, values: 'Mapping[str, RuntimeValue] | None' = None) -> None:
        """Initialize the store.

        Args:
            values: Optional initial values.
        """
        self._lock = RLock()
        self._values: dict[str, RuntimeValue] = dict(values or {})

    def __getitem__(self, key: str) -> 'RuntimeValue':
        with self._lock:
            return self._values[key]

    def __setitem__(self, key: str, value: 'RuntimeValue') -> None:
        if not isinstance(key, str):
            raise TypeError(f'Can not use {key!r} as store key')

        with self._lock:
            self._values[key] = value

    def __delitem__(self, key: str) -> None:
        with self._lock:
            del self._values[key]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            keys = list(self._values)

        return iter(keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.snapshot()!r})'

    @contextmanager
    def locked(self) -> Iterator['ScenarioStore']:
        """Hold the store lock for a compound operation.

        Yields:
            The store itself.
        """
        with self._lock:
            yield self

    def snapshot(self) -> dict[str, 'RuntimeValue']:
        """Return a shallow copy of the current values."""
        with self._lock:
            return dict(self._values)

    def resolve(self, expression: 'RuntimeValue') -> 'RuntimeValue':
        """Resolve a reference expression with the store as scope.

        Args:
            expression: A literal or a braced expression.

        Returns:
            The resolved value.

        Raises:
            ResolutionError: If the braced path is malformed.
        """
        return resolve(expression, self)
