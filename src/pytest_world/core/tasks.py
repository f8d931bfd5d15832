"""Named asynchronous tasks.

A task is an invocation started on a worker thread and awaited later by
name. Arguments are resolved by the caller before the task is scheduled,
so the task body never reads the scenario store after dispatch.

Awaiting a task publishes its outcome into the store twice: under the
task name, so later steps can refer to `{taskName}` like a variable, and
under the result key like any other invocation step.
"""

from concurrent.futures import ThreadPoolExecutor
from logging import getLogger
from typing import TYPE_CHECKING
from warnings import warn

from pytest_world.config import DEFAULT_RESULT_KEY, DEFAULT_TIMEOUT
from pytest_world.errors import TaskError, TaskWarning

from .deferred import Pending, normalize
from .invoker import invoke_callable, invoke_method

if TYPE_CHECKING:
    from collections.abc import Iterator, MutableMapping, Sequence
    from types import TracebackType
    from typing import Self

if TYPE_CHECKING:
    from pytest_world.values import RuntimeValue

logger = getLogger(__name__)


class TaskRegistry:
    """Registry of named tasks backed by a thread pool.

    Entries persist until overwritten by a task with the same name or
    until the registry is shut down at scenario end. Timed-out waits do
    not cancel the underlying work.
    """

    def __init__(self, store: 'MutableMapping[str, RuntimeValue]', *,
                 max_workers: int | None = None,
                 timeout: float = DEFAULT_TIMEOUT,
                 result_key: str = DEFAULT_RESULT_KEY) -> None:
        """Initialize a registry.

        Args:
            store: Scenario store receiving awaited outcomes.
            max_workers: Maximum number of worker threads.
            timeout: Default bound in seconds for waits and for
                deferred results produced inside tasks.
            result_key: Store key receiving every awaited outcome.
        """
        self.store = store
        self.timeout = timeout
        self.result_key = result_key

        self.tasks: dict[str, Pending] = {}
        self.executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix='world-task',
        )

    def __contains__(self, name: str) -> bool:
        return name in self.tasks

    def __iter__(self) -> 'Iterator[str]':
        return iter(list(self.tasks))

    def __enter__(self) -> 'Self':
        return self

    def __exit__(self, exc_type: type[BaseException] | None,
                 exc_value: BaseException | None,
                 traceback: 'TracebackType | None') -> None:
        self.shutdown()

    def start(self, name: str, operation: 'RuntimeValue',
              args: 'Sequence[RuntimeValue]' = (), *,
              method: str | None = None) -> None:
        """Start an invocation asynchronously under a name.

        Args:
            name: Task name; an existing entry with the same name is
                replaced.
            operation: Callable to run, or the target object when
                `method` is given.
            args: Already resolved argument values, captured by value.
            method: Optional operation name to invoke on `operation`.
        """
        if (previous := self.tasks.get(name)) is not None and not previous.done:
            warn(f'Task {name!r} is replacing an unfinished task', category=TaskWarning, stacklevel=2)

        args = tuple(args)
        if method is None:
            future = self.executor.submit(invoke_callable, operation, args, timeout=self.timeout)
        else:
            future = self.executor.submit(invoke_method, operation, method, args, timeout=self.timeout)

        logger.debug('Started task %s', name)
        self.tasks[name] = Pending(future)

    def wait(self, name: str, timeout: float | None = None) -> 'RuntimeValue':
        """Wait for a named task to settle.

        Args:
            name: Task name.
            timeout: Upper bound in seconds; defaults to the registry
                timeout.

        Returns:
            The task outcome, or a `Failure` if it raised or timed out.

        Raises:
            TaskError: If no task was started under this name.
        """
        if name not in self.tasks:
            raise TaskError(f'Unknown task {name!r}', name=name)

        outcome = normalize(self.tasks[name], self.timeout if timeout is None else timeout)
        logger.debug('Task %s settled with %r', name, outcome)

        self.store[name] = outcome
        self.store[self.result_key] = outcome

        return outcome

    def shutdown(self) -> None:
        """Release the worker pool without cancelling running tasks."""
        self.executor.shutdown(wait=False)
