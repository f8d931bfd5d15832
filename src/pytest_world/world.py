"""Per-scenario facade over the engine.

A `World` owns the scenario store, the task registry and the settings of
one running scenario. Its methods are the generic steps a scenario is
written with; every argument is a reference expression resolved against
the store before use.

Invocation steps never raise for failures of the invoked operation: the
outcome, value or `Failure`, is published under the result key. Assertion
steps raise `AssertionError` (or `MatchError`) for pytest to report.
"""

from asyncio import sleep as async_sleep
from collections.abc import Sized
from contextlib import contextmanager
from logging import getLogger
from time import sleep
from typing import TYPE_CHECKING

from pytest_world.config import WorldSettings
from pytest_world.context import ScenarioStore
from pytest_world.core import (
    Pending,
    TaskRegistry,
    invoke_callable,
    invoke_method,
    match_at_least,
    match_exact,
    match_excludes,
    match_record,
    normalize,
)
from pytest_world.failures import Failure, failure_message, is_failure
from pytest_world.values import display

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence
    from types import TracebackType
    from typing import Self

if TYPE_CHECKING:
    from pytest_world.core.matching import Row
    from pytest_world.values import RuntimeValue

logger = getLogger(__name__)


def _milliseconds(value: 'RuntimeValue') -> float:
    """Convert a resolved millisecond amount into seconds."""
    return float(value) / 1000


def _number(field: str, value: 'RuntimeValue') -> float:
    """Convert a resolved value into a number for a comparison step.

    Raises:
        AssertionError: If the value is not numeric.
    """
    try:
        return float(value)
    except (TypeError, ValueError):
        raise AssertionError(f'{field} is {value!r}, expected a number') from None


class World:
    """Scenario world: store, tasks and generic steps."""

    def __init__(self, settings: WorldSettings | None = None,
                 values: 'Mapping[str, RuntimeValue] | None' = None) -> None:
        """Initialize a world.

        Args:
            settings: Runtime settings; resolved from the environment
                when omitted.
            values: Optional initial store values.
        """
        self.settings = settings or WorldSettings()
        self.store = ScenarioStore(values)
        self.tasks = TaskRegistry(
            self.store,
            max_workers=self.settings.max_workers,
            timeout=self.settings.timeout,
            result_key=self.settings.result_key,
        )
        self.messages: list[str] = []

    def __enter__(self) -> 'Self':
        return self

    def __exit__(self, exc_type: type[BaseException] | None,
                 exc_value: BaseException | None,
                 traceback: 'TracebackType | None') -> None:
        self.close()

    @property
    def result(self) -> 'RuntimeValue':
        """Outcome of the latest invocation step."""
        return self.store.get(self.settings.result_key)

    def resolve(self, expression: 'RuntimeValue') -> 'RuntimeValue':
        """Resolve a reference expression against the store."""
        return self.store.resolve(expression)

    def log(self, message: str) -> None:
        """Record a scenario message."""
        self.messages.append(message)
        logger.info(message)

    def close(self) -> None:
        """Release scenario resources."""
        self.tasks.shutdown()

    @contextmanager
    def capture(self) -> 'Iterator[None]':
        """Publish any error raised by an invocation as a failure.

        Assertion errors are propagated as-is for pytest handling.
        """
        try:
            yield

        except AssertionError:
            raise

        except Exception as error:  # noqa: BLE001
            logger.debug('Captured invocation error: %s', error)
            self.store[self.settings.result_key] = Failure.from_exception(error)

    def _publish(self, outcome: 'RuntimeValue') -> 'RuntimeValue':
        self.store[self.settings.result_key] = outcome
        return outcome

    def _arguments(self, params: 'Sequence[RuntimeValue]') -> list['RuntimeValue']:
        return [self.resolve(param) for param in params]

    # Setup

    def set(self, field: str, value: 'RuntimeValue') -> None:
        """Store the resolved value under a literal key."""
        self.store[field] = self.resolve(value)

    def refer(self, source: str, target: str) -> None:
        """Store the value of a reference under another name."""
        self.store[target] = self.resolve(source)

    def invocation_counter(self, handler: str, field: str) -> None:
        """Store a zero-argument handler counting its invocations.

        Args:
            handler: Key receiving the handler.
            field: Key receiving the count, starting at zero.
        """
        self.store[field] = 0

        def count() -> None:
            with self.store.locked() as store:
                store[field] += 1

        self.store[handler] = count

    def async_function(self, name: str, value: 'RuntimeValue',
                       delay_ms: 'RuntimeValue' = None) -> None:
        """Store a coroutine function returning a resolved value.

        Args:
            name: Key receiving the function.
            value: Expression of the value to return, resolved now.
            delay_ms: Optional delay before returning, in milliseconds.
        """
        returned = self.resolve(value)
        delay = None if delay_ms is None else _milliseconds(self.resolve(delay_ms))

        async def function(*args: 'RuntimeValue') -> 'RuntimeValue':  # noqa: ARG001
            if delay:
                await async_sleep(delay)
            return returned

        self.store[name] = function

    def sleep(self, ms: 'RuntimeValue') -> None:
        """Block the scenario for a period, in milliseconds."""
        sleep(_milliseconds(self.resolve(ms)))

    # Invocation

    def call(self, function: str, *params: 'RuntimeValue') -> 'RuntimeValue':
        """Invoke a stored callable and publish its outcome.

        Args:
            function: Reference to the callable.
            params: Argument expressions.

        Returns:
            The outcome, a value or a `Failure`.
        """
        func = self.resolve(function)
        args = self._arguments(params)

        with self.capture():
            return self._publish(invoke_callable(func, args, timeout=self.settings.timeout))

        return self.result

    def call_method(self, target: str, method: str, *params: 'RuntimeValue') -> 'RuntimeValue':
        """Invoke a named operation of a stored object and publish its outcome.

        Args:
            target: Reference to the object.
            method: Operation name.
            params: Argument expressions.

        Returns:
            The outcome, a value or a `Failure`.
        """
        obj = self.resolve(target)
        args = self._arguments(params)

        with self.capture():
            return self._publish(invoke_method(obj, method, args, timeout=self.settings.timeout))

        return self.result

    def wait_for(self, function: str, *params: 'RuntimeValue',
                 within: 'RuntimeValue' = None) -> 'RuntimeValue':
        """Invoke a stored callable and wait for it up to a bound.

        The invocation runs on the task pool so that synchronous
        operations are bounded too.

        Args:
            function: Reference to the callable.
            params: Argument expressions.
            within: Optional bound in milliseconds; defaults to the
                settings timeout.

        Returns:
            The outcome, a value or a `Failure`.
        """
        func = self.resolve(function)
        args = self._arguments(params)

        timeout = self.settings.timeout
        if within is not None:
            timeout = _milliseconds(self.resolve(within))

        future = self.tasks.executor.submit(invoke_callable, func, args, timeout=timeout)

        return self._publish(normalize(Pending(future), timeout))

    def start(self, name: str, function: str, *params: 'RuntimeValue',
              method: str | None = None) -> None:
        """Start a stored callable (or an operation of an object) as a task.

        Args:
            name: Task name.
            function: Reference to the callable, or to the target object
                when `method` is given.
            params: Argument expressions, resolved before scheduling.
            method: Optional operation name.
        """
        self.tasks.start(name, self.resolve(function), self._arguments(params), method=method)

    def wait_for_task(self, name: str, within: 'RuntimeValue' = None) -> 'RuntimeValue':
        """Wait for a named task and publish its outcome.

        The outcome is stored under the task name and the result key.

        Raises:
            TaskError: If no task was started under this name.
        """
        timeout = None
        if within is not None:
            timeout = _milliseconds(self.resolve(within))

        return self.tasks.wait(name, timeout)

    # Assertions

    def assert_equal(self, field: str, expected: 'RuntimeValue') -> None:
        """Assert that two expressions have the same display string."""
        actual = display(self.resolve(field))
        wanted = display(self.resolve(expected))

        assert actual == wanted, f'{field} is {actual!r}, expected {wanted!r}'

    def assert_null(self, field: str) -> None:
        value = self.resolve(field)
        assert value is None, f'{field} is {value!r}, expected null'

    def assert_not_null(self, field: str) -> None:
        assert self.resolve(field) is not None, f'{field} is null'

    def assert_true(self, field: str) -> None:
        value = self.resolve(field)
        assert display(value) == 'true', f'{field} is {value!r}, expected true'

    def assert_false(self, field: str) -> None:
        """Assert that a value is false or absent."""
        value = self.resolve(field)
        assert display(value) in ('false', None), f'{field} is {value!r}, expected false'

    def assert_empty(self, field: str) -> None:
        value = self.resolve(field)
        assert isinstance(value, Sized) and len(value) == 0, f'{field} is not empty: {value!r}'

    def assert_error(self, field: str, message: 'RuntimeValue' = None) -> None:
        """Assert that a value is a failure, optionally with a message.

        The message is compared with the root cause message.
        """
        value = self.resolve(field)
        assert is_failure(value), f'{field} is not an error: {value!r}'

        if message is not None:
            expected = self.resolve(message)
            actual = failure_message(value)
            assert actual == expected, f'{field} has message {actual!r}, expected {expected!r}'

    def assert_not_error(self, field: str) -> None:
        value = self.resolve(field)
        assert not is_failure(value), f'{field} is an error: {value}'

    def assert_contains(self, field: str, fragment: 'RuntimeValue') -> None:
        actual = str(display(self.resolve(field)))
        expected = str(display(self.resolve(fragment)))

        assert expected in actual, f'{field} is {actual!r}, expected to contain {expected!r}'

    def assert_contains_one_of(self, field: str, *fragments: 'RuntimeValue') -> None:
        actual = str(display(self.resolve(field)))
        expected = [str(display(self.resolve(fragment))) for fragment in fragments]

        assert any(item in actual for item in expected), (
            f'{field} is {actual!r}, expected to contain one of {expected!r}'
        )

    def assert_greater(self, field: str, threshold: 'RuntimeValue') -> None:
        actual = _number(field, self.resolve(field))
        bound = _number(str(threshold), self.resolve(threshold))

        assert actual > bound, f'{field} is {actual}, expected greater than {bound}'

    def assert_less(self, field: str, threshold: 'RuntimeValue') -> None:
        actual = _number(field, self.resolve(field))
        bound = _number(str(threshold), self.resolve(threshold))

        assert actual < bound, f'{field} is {actual}, expected less than {bound}'

    def assert_length(self, field: str, expected: 'RuntimeValue') -> None:
        """Assert the number of elements of a sequence."""
        value = self.resolve(field)
        length = int(float(self.resolve(expected)))

        assert isinstance(value, Sized), f'{field} has no length: {value!r}'
        assert len(value) == length, f'{field} has length {len(value)}, expected {length}'

    def assert_rows(self, field: str, rows: 'Sequence[Row]') -> None:
        """Assert that records match the rows exactly, by position.

        Raises:
            MatchError: If the records do not match.
        """
        match_exact(self.resolve(field), rows, self.store)

    def assert_rows_at_least(self, field: str, rows: 'Sequence[Row]') -> None:
        """Assert that every row matches some record.

        Raises:
            MatchError: If any row is missing.
        """
        match_at_least(self.resolve(field), rows, self.store)

    def assert_rows_exclude(self, field: str, rows: 'Sequence[Row]') -> None:
        """Assert that no row matches any record.

        Raises:
            MatchError: If any unwanted row is found.
        """
        match_excludes(self.resolve(field), rows, self.store)

    def assert_strings(self, field: str, rows: 'Sequence[Row]') -> None:
        """Assert a sequence of strings against rows with a `value` column."""
        values = self.resolve(field) or ()
        match_exact([{'value': value} for value in values], rows, self.store)

    def assert_object(self, field: str, row: 'Row') -> None:
        """Assert that a single record matches a row.

        Raises:
            MatchError: If the record does not match.
        """
        match_record(self.resolve(field), row, self.store)
