"""Deferred-result normalization.

Operations may return plain values, zero-argument producers wrapped in
`Lazy`, futures, or coroutines. This module converts every such shape into
one blocking-with-timeout model:

- `Ready`: a plain value, returned as is;
- `Lazy`: a producer, invoked to obtain the next layer;
- `Pending`: a future-like handle, awaited up to a timeout.

`normalize` never raises: failures while producing or awaiting are
captured as `Failure` values carrying the root cause message.
"""

from abc import ABC, abstractmethod
from asyncio import run
from collections.abc import Awaitable
from concurrent.futures import Future, ThreadPoolExecutor
from inspect import isawaitable
from time import monotonic
from typing import TYPE_CHECKING

from pytest_world.config import DEFAULT_TIMEOUT
from pytest_world.failures import Failure

if TYPE_CHECKING:
    from pytest_world.values import Producer, RuntimeValue


class Deferred(ABC):
    """A value that may not be concretely available yet."""

    @abstractmethod
    def resolve(self, timeout: float | None = None) -> 'RuntimeValue':
        """Obtain the concrete value, blocking up to `timeout` seconds.

        Raises:
            TimeoutError: If the value does not settle in time.
            Any exception raised by the underlying producer or operation.
        """


class Ready(Deferred):
    """An already available value."""

    def __init__(self, value: 'RuntimeValue') -> None:
        self.value = value

    def resolve(self, timeout: float | None = None) -> 'RuntimeValue':  # noqa: ARG002
        return self.value


class Lazy(Deferred):
    """A zero-argument producer evaluated on demand.

    The produced value may itself be deferred (for example, a producer
    returning a future), in which case it is resolved further with the
    same timeout.
    """

    def __init__(self, producer: 'Producer') -> None:
        self.producer = producer

    def resolve(self, timeout: float | None = None) -> 'RuntimeValue':
        return deferred(self.producer()).resolve(timeout)

    def __call__(self) -> 'RuntimeValue':
        return self.resolve()


class Pending(Deferred):
    """A future-like handle of in-flight work."""

    def __init__(self, handle: 'Future[RuntimeValue] | Awaitable[RuntimeValue]') -> None:
        if not isinstance(handle, Future):
            handle = _settle_in_background(handle)

        self.handle: Future[RuntimeValue] = handle

    @property
    def done(self) -> bool:
        """Whether the underlying work has settled."""
        return self.handle.done()

    def resolve(self, timeout: float | None = None) -> 'RuntimeValue':
        if timeout is None:
            timeout = DEFAULT_TIMEOUT

        deadline = monotonic() + timeout

        try:
            result = self.handle.result(timeout)
        except TimeoutError:
            if self.handle.done():
                raise
            raise TimeoutError(f'Timed out after {round(timeout * 1000)}ms') from None

        return deferred(result).resolve(max(deadline - monotonic(), 0.0))


async def _settle(awaitable: 'Awaitable[RuntimeValue]') -> 'RuntimeValue':
    return await awaitable


def _settle_in_background(awaitable: 'Awaitable[RuntimeValue]') -> 'Future[RuntimeValue]':
    """Run an awaitable on its own event loop in a helper thread.

    The helper thread is released as soon as the awaitable settles.
    Abandoning the returned future does not cancel the work.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='world-await')
    try:
        return executor.submit(run, _settle(awaitable))
    finally:
        executor.shutdown(wait=False)


def deferred(value: 'RuntimeValue') -> Deferred:
    """Classify a value into its deferred shape.

    Args:
        value: Any runtime value.

    Returns:
        The value itself if already deferred, `Pending` for futures and
        awaitables, `Ready` otherwise.
    """
    if isinstance(value, Deferred):
        return value

    if isinstance(value, Future) or isawaitable(value):
        return Pending(value)

    return Ready(value)


def normalize(value: 'RuntimeValue', timeout: float | None = None) -> 'RuntimeValue':
    """Normalize a possibly deferred value into a concrete value.

    Args:
        value: Plain value, `Lazy` producer, future or awaitable.
        timeout: Upper bound in seconds for blocking waits; defaults
            to 30 seconds.

    Returns:
        The concrete value, or a `Failure` if producing or awaiting it
        raised or timed out.
    """
    try:
        return deferred(value).resolve(timeout)
    except Exception as error:  # noqa: BLE001
        return Failure.from_exception(error)
