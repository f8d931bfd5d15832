"""Pytest plugin providing a scenario world per test.

This module integrates the engine with pytest by:
- registering custom command-line options;
- resolving shared `WorldSettings` once per session;
- providing a function-scoped `world` fixture closed at teardown.

Command-line options take precedence over `WORLD_*` environment
variables.
"""

from typing import TYPE_CHECKING

import pytest

from pytest_world.config import WorldSettings
from pytest_world.world import World

if TYPE_CHECKING:
    from collections.abc import Iterator

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.config.argparsing import Parser
    from _pytest.fixtures import FixtureRequest


def pytest_addoption(parser: 'Parser') -> None:
    """Register pytest command-line options for pytest-world.

    Args:
        parser: Pytest argument parser.
    """
    group = parser.getgroup('world', 'scenario world')
    group.addoption(
        '--world-timeout',
        action='store',
        dest='world_timeout',
        type=float,
        default=None,
        help=(
            'Default upper bound, in seconds, for waits that do not '
            'specify their own timeout.'
        ),
    )
    group.addoption(
        '--world-workers',
        action='store',
        dest='world_workers',
        type=int,
        default=None,
        help='Maximum number of worker threads running started tasks.',
    )


def pytest_configure(config: 'Config') -> None:
    """Configure pytest-world integration.

    This hook resolves settings from the environment, applies
    command-line overrides, and attaches the result to the pytest
    configuration object as `config.world_settings`.

    Args:
        config: Pytest configuration object.
    """
    overrides = {}
    if (timeout := config.getoption('world_timeout', default=None)) is not None:
        overrides['timeout'] = timeout
    if (workers := config.getoption('world_workers', default=None)) is not None:
        overrides['max_workers'] = workers

    config.world_settings = WorldSettings(**overrides)  # type: ignore[attr-defined]


def make_world(config: 'Config') -> World:
    """Create a world using the session settings.

    Args:
        config: Pytest configuration object.

    Returns:
        A new, empty world.
    """
    settings = getattr(config, 'world_settings', None)
    if settings is None:
        settings = WorldSettings()

    return World(settings)


@pytest.fixture
def world(request: 'FixtureRequest') -> 'Iterator[World]':
    """Provide a fresh scenario world, closed at teardown."""
    instance = make_world(request.config)

    yield instance

    instance.close()
