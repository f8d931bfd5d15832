"""Core type definitions for scenario values.

This module defines the value vocabulary shared by the store, the resolver,
the invoker and the table matcher. Scenario values are plain Python objects;
they are classified into a small closed set of kinds instead of relying on
open-ended runtime typing.

It also provides the display conversion used whenever two values are
compared by their textual form.
"""

from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime, timedelta
from enum import StrEnum
from math import isfinite
from typing import Any

from pydantic import SecretStr

from pytest_world.failures import is_failure

#: Scalars represent fully resolved, atomic values.
type Scalar = date | datetime | timedelta | str | bytes | int | float | bool | SecretStr

#: A value is considered plain if it contains only scalars and containers.
type Value = Scalar | Sequence['Value'] | Mapping[str, 'Value'] | None

#: A value in runtime represents any Python object held by the scenario store:
# user-defined objects, callables, futures or captured failures.
type RuntimeValue = Any

#: Zero-argument producer of a runtime value.
type Producer = Callable[[], RuntimeValue]

MAPPINGS = (Mapping,)
SCALARS = (date, datetime, timedelta, str, bytes, int, float, bool, SecretStr)
SEQUENCES = (list, tuple)
NUMBERS = (int, float)


class ValueKind(StrEnum):
    """Closed classification of scenario values."""

    NULL = 'null'
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    FLOAT = 'float'
    TEXT = 'text'
    SEQUENCE = 'sequence'
    RECORD = 'record'
    FAILURE = 'failure'
    CALLABLE = 'callable'
    OBJECT = 'object'


def is_number(value: RuntimeValue) -> bool:
    """Check whether a value is numeric.

    Booleans are not numbers in the scenario vocabulary, even though
    `bool` is a subclass of `int` in Python.
    """
    return isinstance(value, NUMBERS) and not isinstance(value, bool)


def kind_of(value: RuntimeValue) -> ValueKind:
    """Classify a runtime value.

    Args:
        value: Any runtime value.

    Returns:
        The kind of the value.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, (str, SecretStr)):
        return ValueKind.TEXT
    if isinstance(value, SEQUENCES):
        return ValueKind.SEQUENCE
    if isinstance(value, MAPPINGS):
        return ValueKind.RECORD
    if is_failure(value):
        return ValueKind.FAILURE
    if callable(value):
        return ValueKind.CALLABLE

    return ValueKind.OBJECT


def display(value: RuntimeValue) -> str | None:
    """Convert a value into its display string.

    Display strings make values of different representations comparable:
    the number `200`, the float `200.0` and the text `'200'` all display
    as `'200'`. Absent values stay `None` so that a missing field and an
    explicit `{null}` expectation compare equal.

    Args:
        value: Any runtime value.

    Returns:
        The display string, or `None` for absent values.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return 'true' if value else 'false'

    if isinstance(value, float) and isfinite(value) and value.is_integer():
        return str(int(value))

    return str(value)
