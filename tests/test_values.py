"""Tests for value classification and display."""

from typing import Any

import pytest

from pytest_world.failures import Failure
from pytest_world.values import ValueKind, display, is_number, kind_of


@pytest.mark.parametrize('value, kind', (
    pytest.param(None, ValueKind.NULL, id='null'),
    pytest.param(True, ValueKind.BOOLEAN, id='boolean'),
    pytest.param(1, ValueKind.INTEGER, id='integer'),
    pytest.param(1.5, ValueKind.FLOAT, id='float'),
    pytest.param('x', ValueKind.TEXT, id='text'),
    pytest.param([1], ValueKind.SEQUENCE, id='list'),
    pytest.param((1,), ValueKind.SEQUENCE, id='tuple'),
    pytest.param({'a': 1}, ValueKind.RECORD, id='record'),
    pytest.param(Failure(message='x'), ValueKind.FAILURE, id='failure'),
    pytest.param(ValueError('x'), ValueKind.FAILURE, id='exception'),
    pytest.param(len, ValueKind.CALLABLE, id='callable'),
    pytest.param(object(), ValueKind.OBJECT, id='object'),
))
def test_kind_of(value: Any, kind: ValueKind) -> None:
    """Classify runtime values."""
    assert kind_of(value) == kind


@pytest.mark.parametrize('value, expected', (
    pytest.param(1, True, id='int'),
    pytest.param(1.5, True, id='float'),
    pytest.param(True, False, id='bool'),
    pytest.param('1', False, id='text'),
))
def test_is_number(value: Any, expected: bool) -> None:
    """Exclude booleans from numbers."""
    assert is_number(value) is expected


@pytest.mark.parametrize('value, expected', (
    pytest.param(None, None, id='none'),
    pytest.param(True, 'true', id='true'),
    pytest.param(False, 'false', id='false'),
    pytest.param(200, '200', id='int'),
    pytest.param(200.0, '200', id='integral float'),
    pytest.param(2.5, '2.5', id='float'),
    pytest.param(float('nan'), 'nan', id='nan'),
    pytest.param('200', '200', id='text'),
    pytest.param(['a'], "['a']", id='list'),
))
def test_display(value: Any, expected: str | None) -> None:
    """Convert values into comparable display strings."""
    assert display(value) == expected
