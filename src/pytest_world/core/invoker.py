"""Overload-resolving dynamic invocation.

Scenario steps name the operation to run as text and supply already
resolved argument values. This module finds the best-matching signature
for those values and runs it through the deferred-result normalizer:

- `invoke_method(target, name, args)` calls an operation of an object;
- `invoke_callable(func, args)` calls a standalone callable.

Selecting no signature is an error (`InvocationError`); failures raised
by the selected operation itself are returned as `Failure` values.
"""

import inspect
from collections.abc import Mapping
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from pytest_world.errors import InvocationError

from .deferred import Lazy, normalize
from .signatures import BoundOverloads, Overloaded, find_signature, signatures_of

if TYPE_CHECKING:
    from collections.abc import Sequence

if TYPE_CHECKING:
    from pytest_world.values import RuntimeValue

    from .signatures import Signature

#: Conventional entry points tried, in order, on callable objects.
CALL_ENTRY_NAMES = ('__call__', 'apply', 'accept', 'call')

logger = getLogger(__name__)


def _is_plain_callable(func: 'RuntimeValue') -> bool:
    """Check whether a callable describes its own signature."""
    return (
        isinstance(func, (Overloaded, BoundOverloads, partial, type))
        or inspect.isroutine(func)
    )


def candidates(target: 'RuntimeValue', name: str) -> list['Signature']:
    """Enumerate candidate signatures of a named operation.

    Items of mapping targets take precedence over their attributes.

    Args:
        target: Object exposing the operation.
        name: Attribute name (or mapping key) of the operation.

    Returns:
        Candidate signatures in declaration order, possibly empty.
    """
    operation = None

    if isinstance(target, Mapping) and name in target:
        operation = target[name]
    elif not name.startswith('_') or name == '__call__':
        operation = getattr(target, name, None)

    if operation is None or not callable(operation):
        return []

    return signatures_of(operation, name)


def select(target: 'RuntimeValue', name: str,
           args: 'Sequence[RuntimeValue]') -> 'Signature':
    """Select the most specific signature of `target.name` for `args`.

    Raises:
        InvocationError: If no candidate accepts the arguments.
    """
    signature = find_signature(candidates(target, name), args)
    if signature is None:
        raise InvocationError(name, len(args), arguments=args)

    return signature


def select_callable(func: 'RuntimeValue', args: 'Sequence[RuntimeValue]') -> 'Signature':
    """Select the signature used to call a standalone callable.

    Functions, methods, classes and overload sets describe themselves.
    Other objects are searched through the conventional entry names;
    the first entry with a compatible signature wins.

    Raises:
        InvocationError: If nothing accepts the arguments.
    """
    if _is_plain_callable(func):
        name = getattr(func, '__name__', type(func).__name__)
        if signature := find_signature(signatures_of(func, name), args):
            return signature
        raise InvocationError(name, len(args), arguments=args)

    for entry in CALL_ENTRY_NAMES:
        if signature := find_signature(candidates(func, entry), args):
            return signature

    raise InvocationError(type(func).__name__, len(args), arguments=args)


def _run(signature: 'Signature', args: 'Sequence[RuntimeValue]',
         timeout: float | None) -> 'RuntimeValue':
    logger.debug('Invoking %s with %d argument(s)', signature.name, len(args))

    return normalize(Lazy(partial(signature.function, *args)), timeout)


def invoke_method(target: 'RuntimeValue', name: str,
                  args: 'Sequence[RuntimeValue]' = (), *,
                  timeout: float | None = None) -> 'RuntimeValue':
    """Invoke a named operation of an object.

    Args:
        target: Object exposing the operation.
        name: Operation name.
        args: Already resolved argument values.
        timeout: Upper bound in seconds when the result is deferred.

    Returns:
        The normalized result, or a `Failure` if the operation raised.

    Raises:
        InvocationError: If no signature accepts the arguments.
    """
    return _run(select(target, name, args), args, timeout)


def invoke_callable(func: 'RuntimeValue', args: 'Sequence[RuntimeValue]' = (), *,
                    timeout: float | None = None) -> 'RuntimeValue':
    """Invoke a standalone callable.

    Args:
        func: Function, overload set, or callable object.
        args: Already resolved argument values.
        timeout: Upper bound in seconds when the result is deferred.

    Returns:
        The normalized result, or a `Failure` if the callable raised.

    Raises:
        InvocationError: If `func` can not be called with the arguments.
    """
    return _run(select_callable(func, args), args, timeout)
