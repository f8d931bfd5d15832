"""Tests for reference expression resolution."""

from math import isnan
from typing import Any

import pytest

from pytest_world.context import ScenarioStore
from pytest_world.core.resolver import resolve, resolve_path, stabilize
from pytest_world.errors import ResolutionError


@pytest.mark.parametrize('expression', (
    pytest.param('hello world', id='plain text'),
    pytest.param('', id='empty text'),
    pytest.param('{', id='lone brace'),
    pytest.param('name}', id='unopened'),
    pytest.param('{name', id='unclosed'),
    pytest.param(42, id='non-string'),
    pytest.param(None, id='none'),
))
def test_literal_resolve(store: ScenarioStore, expression: Any) -> None:
    """Return non-braced expressions unchanged."""
    assert resolve(expression, store) == expression
    assert resolve(expression, None) == expression


@pytest.mark.parametrize('expression, expected', (
    pytest.param('{null}', None, id='null'),
    pytest.param('{true}', True, id='true'),
    pytest.param('{false}', False, id='false'),
    pytest.param('{42}', 42.0, id='integer'),
    pytest.param('{-1.5}', -1.5, id='negative float'),
    pytest.param('{+3}', 3.0, id='explicit sign'),
    pytest.param('{.5}', 0.5, id='leading dot'),
    pytest.param('{1e3}', 1000.0, id='exponent'),
    pytest.param('{Infinity}', float('inf'), id='infinity'),
    pytest.param('{-Infinity}', float('-inf'), id='negative infinity'),
))
def test_keyword_resolve(store: ScenarioStore, expression: str, expected: Any) -> None:
    """Resolve keywords and numeric literals before paths."""
    resolved = resolve(expression, store)

    assert resolved == expected
    assert type(resolved) is type(expected)


def test_nan_resolve(store: ScenarioStore) -> None:
    """Resolve the not-a-number literal."""
    resolved = resolve('{NaN}', store)

    assert isinstance(resolved, float)
    assert isnan(resolved)


def test_keyword_shadows_store() -> None:
    """Prefer keywords over store keys with the same name."""
    store = ScenarioStore({'null': 'stored', 'true': 'stored', '42': 'stored'})

    assert resolve('{null}', store) is None
    assert resolve('{true}', store) is True
    assert resolve('{42}', store) == 42.0


@pytest.mark.parametrize('expression, expected', (
    pytest.param('{name}', 'Alice', id='text'),
    pytest.param('{flag}', True, id='boolean'),
    pytest.param('{user.name}', 'Bob', id='nested'),
    pytest.param('{user.tags[1]}', 'b', id='indexed'),
    pytest.param('{user.address.city}', 'Paris', id='deep'),
    pytest.param('{missing}', None, id='missing'),
    pytest.param('{user.missing.deeper}', None, id='missing deep'),
))
def test_path_resolve(store: ScenarioStore, expression: str, expected: Any) -> None:
    """Resolve braced paths against the store."""
    assert resolve(expression, store) == expected


@pytest.mark.parametrize('expression, expected', (
    pytest.param('{count}', '3', id='integer'),
    pytest.param('{price}', '3', id='half rounds up'),
    pytest.param('{orders[1].total}', '20', id='rounds down'),
    pytest.param('{orders.length}', '2', id='length'),
    pytest.param('{user.tags.length}', '3', id='nested length'),
    pytest.param('{user.tags[0].length}', '3', id='indexed length'),
    pytest.param('{missing.length}', '0', id='absent length'),
))
def test_numeric_path_resolve(store: ScenarioStore, expression: str, expected: str) -> None:
    """Return numbers found by path as rounded decimal strings."""
    assert resolve(expression, store) == expected


@pytest.mark.parametrize('value, expected', (
    pytest.param(2.5, '3', id='half up'),
    pytest.param(-2.5, '-2', id='negative half up'),
    pytest.param(-2.6, '-3', id='negative'),
    pytest.param(7, '7', id='integer'),
    pytest.param(10**20, '100000000000000000000', id='big integer'),
    pytest.param(float('inf'), 'inf', id='infinity'),
    pytest.param(True, True, id='boolean untouched'),
    pytest.param('2.5', '2.5', id='text untouched'),
    pytest.param(None, None, id='none untouched'),
))
def test_stabilize(value: Any, expected: Any) -> None:
    """Stabilize numbers into rounded strings."""
    assert stabilize(value) == expected


def test_resolve_path_on_record() -> None:
    """Resolve raw paths against an arbitrary scope."""
    record = {'id': 7, 'tags': ['x']}

    assert resolve_path('id', record) == '7'
    assert resolve_path('tags[0]', record) == 'x'


def test_resolve_repeatable(store: ScenarioStore) -> None:
    """Resolve the same expression twice to equal values."""
    assert resolve('{user}', store) == resolve('{user}', store)


@pytest.mark.parametrize('expression', (
    pytest.param('{user..name}', id='empty segment'),
    pytest.param('{user.tags[x]}', id='bad index'),
))
def test_invalid_resolve(store: ScenarioStore, expression: str) -> None:
    """Propagate malformed path errors."""
    with pytest.raises(ResolutionError):
        resolve(expression, store)


@pytest.mark.parametrize('expression', (
    pytest.param('{inf}', id='infinity name'),
    pytest.param('{nan}', id='nan name'),
))
def test_numeric_names_are_paths(expression: str) -> None:
    """Resolve float-like names through the store, not as numbers."""
    store = ScenarioStore({'inf': 'infinite', 'nan': 'not a number'})

    assert resolve(expression, store) == store[expression[1:-1]]
