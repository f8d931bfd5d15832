"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING

import pytest

from pytest_world.config import WorldSettings
from pytest_world.context import ScenarioStore
from pytest_world.world import World

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def settings() -> WorldSettings:
    """Provide settings with a short default timeout.

    Environment variables are ignored by passing every field explicitly,
    so that a `WORLD_*` variable in the test environment can not change
    the behaviour under test.
    """
    return WorldSettings(timeout=2.0, max_workers=4, result_key='result')


@pytest.fixture
def store() -> ScenarioStore:
    """Provide a scenario store with nested sample data."""
    return ScenarioStore({
        'name': 'Alice',
        'count': 3,
        'price': 2.5,
        'flag': True,
        'empty': [],
        'user': {
            'name': 'Bob',
            'tags': ['a', 'b', 'c'],
            'address': {'city': 'Paris'},
        },
        'orders': [
            {'id': 1, 'total': 10.0},
            {'id': 2, 'total': 20.4},
        ],
    })


@pytest.fixture
def world(settings: WorldSettings) -> 'Iterator[World]':
    """Provide a fresh world closed at teardown.

    Shadows the plugin fixture to pin the settings used by tests.
    """
    with World(settings) as instance:
        yield instance
