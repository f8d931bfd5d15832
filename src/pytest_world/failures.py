"""First-class failure values.

Invocation and awaiting never let exceptions unwind past a step. Instead
the exception is captured into a `Failure` record that is stored like any
other scenario value, so that later assertions can check "is an error" or
"is an error with message X" against it.
"""

from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import Field

from pytest_world.models import SchemaModel

if TYPE_CHECKING:
    from typing import Self


class FailureKind(StrEnum):
    """Category of a captured failure."""

    ERROR = 'error'
    TIMEOUT = 'timeout'
    NO_MATCH = 'no_match'
    RESOLUTION = 'resolution'


def root_cause(error: BaseException) -> BaseException:
    """Find the innermost cause of an exception.

    Follows explicit causes (`raise ... from ...`) and implicit context
    until the chain ends or loops back on itself.

    Args:
        error: Outermost exception.

    Returns:
        The innermost non-cyclic exception in the chain.
    """
    seen = {id(error)}
    current = error

    while True:
        cause = current.__cause__
        if cause is None and not current.__suppress_context__:
            cause = current.__context__
        if cause is None or id(cause) in seen:
            return current
        seen.add(id(cause))
        current = cause


def error_message(error: BaseException) -> str:
    """Extract a human-readable message from an exception."""
    if message := getattr(error, 'message', None):
        return str(message)

    if len(error.args) == 1 and isinstance(error.args[0], str):
        return error.args[0]

    return str(error) or type(error).__name__


class Failure(SchemaModel):
    """Captured failure of an invocation or of a deferred value.

    Failures are immutable records. The message always comes from the root
    cause of the captured exception, so wrappers added by intermediate
    layers never hide the original reason.
    """

    kind: FailureKind = Field(
        default=FailureKind.ERROR,
        title='Failure kind',
        description='Category of the failure, e.g. a timeout or a raised error.',
    )

    message: str = Field(
        title='Failure message',
        description='Root cause message of the captured exception.',
    )

    error: BaseException | None = Field(
        default=None,
        exclude=True,
        repr=False,
        title='Captured exception',
        description='The original (outermost) exception, if any.',
    )

    @classmethod
    def from_exception(cls, error: BaseException, kind: FailureKind | None = None) -> 'Self':
        """Capture an exception as a failure value.

        The failure kind is taken from the `failure_kind` attribute of the
        outermost exception when present, otherwise timeouts anywhere in
        the chain are reported as `timeout` and everything else as `error`.

        Args:
            error: Exception to capture.
            kind: Optional explicit failure kind.

        Returns:
            A new failure record.
        """
        cause = root_cause(error)

        if kind is None:
            kind = getattr(error, 'failure_kind', None)
        if kind is None and isinstance(cause, TimeoutError):
            kind = FailureKind.TIMEOUT

        return cls(
            kind=kind or FailureKind.ERROR,
            message=error_message(cause),
            error=error,
        )

    def __str__(self) -> str:
        """String representation."""
        return self.message


def is_failure(value: Any) -> bool:  # noqa: ANN401
    """Check whether a value represents a failure.

    Both captured `Failure` records and raw exception instances placed
    into the store by user code count as failures.
    """
    return isinstance(value, (Failure, BaseException))


def failure_message(value: Any) -> str | None:  # noqa: ANN401
    """Return the root cause message of a failure value, or `None`."""
    if isinstance(value, Failure):
        return value.message

    if isinstance(value, BaseException):
        return error_message(root_cause(value))

    return None
