"""Tests for the scenario world steps."""

from logging import INFO
from typing import TYPE_CHECKING, Any

import pytest

from pytest_world.errors import MatchError, TaskError
from pytest_world.failures import Failure, FailureKind
from pytest_world.world import World

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


class Greeter:
    """Sample object invoked by name."""

    def greet(self, name: str) -> str:
        return f'Hello, {name}!'

    def refuse(self) -> None:
        try:
            raise ConnectionError('connection refused')
        except ConnectionError as error:
            raise RuntimeError('greeting failed') from error


@pytest.fixture
def filled(world: World) -> World:
    """Provide a world with sample values."""
    world.store.update({
        'name': 'Alice',
        'count': 3,
        'price': 2.5,
        'flag': True,
        'empty': [],
        'tags': ['a', 'b', 'c'],
        'greeter': Greeter(),
        'fruits': [
            {'name': 'apple', 'price': 1.0},
            {'name': 'banana', 'price': 0.5},
        ],
    })

    return world


def test_set_and_refer(world: World) -> None:
    """Store resolved values and references."""
    world.set('greeting', 'hello world')
    world.set('answer', '{42}')
    world.refer('{greeting}', 'copy')

    assert world.store['greeting'] == 'hello world'
    assert world.store['answer'] == 42.0
    assert world.store['copy'] == 'hello world'


def test_call(world: World) -> None:
    """Publish the outcome of a call under the result key."""
    world.store['double'] = lambda value: value * 2

    outcome = world.call('{double}', '{21}')

    assert outcome == 42.0
    assert world.result == 42.0
    world.assert_equal('{result}', '42')


def test_call_failure(world: World) -> None:
    """Publish errors raised by the callable as failures."""
    def explode() -> None:
        raise ValueError('bad thing')

    world.store['explode'] = explode
    world.call('{explode}')

    world.assert_error('{result}')
    world.assert_error('{result}', 'bad thing')


def test_call_no_match(world: World) -> None:
    """Publish invocation errors instead of raising."""
    def add(a: int, b: int) -> int:
        return a + b

    world.store['add'] = add
    outcome = world.call('{add}', 'one')

    assert isinstance(outcome, Failure)
    assert outcome.kind == FailureKind.NO_MATCH
    world.assert_error('{result}')


def test_call_method(filled: World) -> None:
    """Invoke a named operation of a stored object."""
    filled.call_method('{greeter}', 'greet', '{name}')

    filled.assert_equal('{result}', 'Hello, Alice!')
    filled.assert_not_error('{result}')


def test_call_method_root_cause(filled: World) -> None:
    """Compare error messages with the root cause."""
    filled.call_method('{greeter}', 'refuse')

    filled.assert_error('{result}', 'connection refused')

    with pytest.raises(AssertionError):
        filled.assert_error('{result}', 'greeting failed')


def test_invocation_counter(world: World) -> None:
    """Count handler invocations."""
    world.invocation_counter('handler', 'calls')

    world.call('{handler}')
    world.call('{handler}')

    world.assert_equal('{calls}', '2')


def test_async_function(world: World) -> None:
    """Await stored coroutine functions."""
    world.async_function('fetch', '{42}')

    world.wait_for('{fetch}')

    world.assert_equal('{result}', '42')


def test_wait_for_timeout(world: World) -> None:
    """Publish a timeout failure when the function is too slow."""
    world.async_function('fetch', 'late', delay_ms='500')

    outcome = world.wait_for('{fetch}', within='50')

    assert isinstance(outcome, Failure)
    assert outcome.kind == FailureKind.TIMEOUT
    world.assert_error('{result}', 'Timed out after 50ms')


def test_wait_for_sync(world: World) -> None:
    """Wait for synchronous callables with arguments."""
    world.store['concat'] = lambda a, b: f'{a}{b}'

    world.wait_for('{concat}', 'foo', 'bar', within='1000')

    world.assert_equal('{result}', 'foobar')


def test_start_and_wait_for_task(world: World) -> None:
    """Publish task outcomes under the task name and the result key."""
    world.async_function('fetch', 'payload', delay_ms='10')

    world.start('job', '{fetch}')
    world.wait_for_task('job')

    world.assert_equal('{job}', 'payload')
    world.assert_equal('{result}', 'payload')


def test_start_method_task(filled: World) -> None:
    """Start a named operation of a stored object."""
    filled.start('hello', '{greeter}', '{name}', method='greet')
    filled.wait_for_task('hello', within='1000')

    filled.assert_equal('{hello}', 'Hello, Alice!')


def test_wait_for_task_timeout(world: World) -> None:
    """Publish a timeout failure for slow tasks."""
    world.async_function('fetch', 'late', delay_ms='500')

    world.start('job', '{fetch}')
    world.wait_for_task('job', within='20')

    world.assert_error('{job}', 'Timed out after 20ms')


def test_wait_for_unknown_task(world: World) -> None:
    """Raise for tasks that were never started."""
    with pytest.raises(TaskError):
        world.wait_for_task('ghost')


def test_sleep(world: World, mocker: 'MockerFixture') -> None:
    """Sleep for a number of milliseconds."""
    sleep = mocker.patch('pytest_world.world.sleep')

    world.sleep('250')

    sleep.assert_called_once_with(0.25)


def test_log(world: World, caplog: pytest.LogCaptureFixture) -> None:
    """Keep scenario messages and forward them to logging."""
    with caplog.at_level(INFO, logger='pytest_world.world'):
        world.log('first step done')

    assert world.messages == ['first step done']
    assert 'first step done' in caplog.text


@pytest.mark.parametrize('step, args', (
    pytest.param('assert_equal', ('{name}', 'Alice'), id='equal'),
    pytest.param('assert_equal', ('{count}', '{3}'), id='equal numbers'),
    pytest.param('assert_equal', ('{missing}', '{null}'), id='equal null'),
    pytest.param('assert_null', ('{missing}',), id='null'),
    pytest.param('assert_not_null', ('{name}',), id='not null'),
    pytest.param('assert_true', ('{flag}',), id='true'),
    pytest.param('assert_false', ('{missing}',), id='false absent'),
    pytest.param('assert_false', ('{false}',), id='false'),
    pytest.param('assert_empty', ('{empty}',), id='empty'),
    pytest.param('assert_not_error', ('{name}',), id='not error'),
    pytest.param('assert_contains', ('{name}', 'lic'), id='contains'),
    pytest.param('assert_contains_one_of', ('{name}', 'xyz', 'Ali'), id='contains one of'),
    pytest.param('assert_greater', ('{count}', '2'), id='greater'),
    pytest.param('assert_less', ('{price}', '{5}'), id='less'),
    pytest.param('assert_length', ('{tags}', '3'), id='length'),
    pytest.param('assert_length', ('{empty}', '{0}'), id='zero length'),
))
def test_passing_assertions(filled: World, step: str, args: tuple[Any, ...]) -> None:
    """Pass assertions that hold."""
    getattr(filled, step)(*args)


@pytest.mark.parametrize('step, args', (
    pytest.param('assert_equal', ('{name}', 'Bob'), id='equal'),
    pytest.param('assert_null', ('{name}',), id='null'),
    pytest.param('assert_not_null', ('{missing}',), id='not null'),
    pytest.param('assert_true', ('{name}',), id='true'),
    pytest.param('assert_false', ('{flag}',), id='false'),
    pytest.param('assert_empty', ('{tags}',), id='empty'),
    pytest.param('assert_empty', ('{missing}',), id='empty absent'),
    pytest.param('assert_error', ('{name}',), id='error'),
    pytest.param('assert_contains', ('{name}', 'Bob'), id='contains'),
    pytest.param('assert_contains_one_of', ('{name}', 'x', 'y'), id='contains one of'),
    pytest.param('assert_greater', ('{count}', '3'), id='greater'),
    pytest.param('assert_less', ('{count}', '3'), id='less'),
    pytest.param('assert_greater', ('{missing}', '1'), id='greater than absent'),
    pytest.param('assert_less', ('{name}', '1'), id='less than text'),
    pytest.param('assert_greater', ('{count}', '{tags}'), id='greater than sequence'),
    pytest.param('assert_length', ('{tags}', '2'), id='length'),
    pytest.param('assert_length', ('{flag}', '1'), id='length of scalar'),
))
def test_failing_assertions(filled: World, step: str, args: tuple[Any, ...]) -> None:
    """Raise assertion errors for assertions that do not hold."""
    with pytest.raises(AssertionError):
        getattr(filled, step)(*args)


def test_assert_rows(filled: World) -> None:
    """Match stored records against table rows."""
    filled.assert_rows('{fruits}', [
        {'name': 'apple', 'price': '1'},
        {'name': 'banana', 'price': '1'},
    ])
    filled.assert_rows_at_least('{fruits}', [{'name': 'banana'}])
    filled.assert_rows_exclude('{fruits}', [{'name': 'cherry'}])
    filled.assert_object('{fruits[0]}', {'name': 'apple'})

    with pytest.raises(MatchError):
        filled.assert_rows('{fruits}', [{'name': 'apple'}])


def test_assert_rows_with_references(filled: World) -> None:
    """Resolve expected values against the store."""
    filled.set('wanted', 'banana')

    filled.assert_rows_at_least('{fruits}', [{'name': '{wanted}'}])


def test_assert_strings(filled: World) -> None:
    """Match a sequence of strings against a value column."""
    filled.assert_strings('{tags}', [{'value': 'a'}, {'value': 'b'}, {'value': 'c'}])

    with pytest.raises(MatchError):
        filled.assert_strings('{tags}', [{'value': 'c'}, {'value': 'b'}, {'value': 'a'}])


def test_compare_non_number(filled: World) -> None:
    """Name the field holding a non-numeric value."""
    with pytest.raises(AssertionError, match=r"^\{name\} is 'Alice', expected a number$"):
        filled.assert_greater('{name}', '1')
