"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report malformed references, unresolvable invocations, task misuse
and table mismatches in a structured and extensible way.
"""

from datetime import timedelta
from os import linesep
from typing import TYPE_CHECKING, Any, ClassVar, TypedDict

from pydantic import SecretStr
from yaml import dump

from pytest_world.failures import FailureKind
from pytest_world.values import MAPPINGS, SCALARS, SEQUENCES, kind_of

if TYPE_CHECKING:
    from collections.abc import Sequence

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_SEPARATOR = f' ---{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Reference expression being resolved.
    expression: str | None
    #: Name of the invoked operation or task.
    operation: str | None

    #: Scenario values available at the moment of failure.
    context: dict[str, Any] | None
    #: Data associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting engine errors.

    This formatter is responsible for producing human-readable
    error messages with optional location and YAML-based
    contextual snippets.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including the expression and
            the operation when available.
        """
        indent = cls._ensure_indent(indent)
        message = ''

        if (expression := context.get('expression')) is not None:
            message += f'{indent}in expression "{expression}"{linesep}'

        if (operation := context.get('operation')) is not None:
            message += f'{indent}on operation "{operation}"{linesep}'

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the error context.

        Args:
            context: Error context containing data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if (element := context.get('element')) is not None:
            return cls._make_snippet(element, context, indent)

        return ''

    @classmethod
    def _make_snippet(cls, element: Any,  # noqa: ANN401
                      context: ErrorContext, indent: str) -> str:
        """Build a YAML-based snippet for an element.

        Args:
            element: Data associated with the error.
            context: Error context containing optional scenario values.
            indent: String indentation prefix.

        Returns:
            A formatted snippet string including context and element data.
        """
        snippet = f'{indent}{SNIPPET_ELLIPSIS}'

        if values := context.get('context'):
            snippet += cls._make_yaml({'context': {**values}}, indent)
            snippet += linesep
            snippet += f'{indent}{SNIPPET_SEPARATOR}'

        snippet += cls._make_yaml(element, indent)
        snippet += linesep

        return snippet

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Recursively sanitize values for safe YAML serialization.

        Non-scalar and non-container objects are replaced with
        a placeholder to prevent leaking executable or opaque data.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if isinstance(value, (SecretStr, timedelta)):
            return str(value)

        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, MAPPINGS):
            return {
                key: cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [
                cls._filter_unsafe(item)
                for item in value
            ]

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to a YAML-formatted string.

        Args:
            value: Arbitrary value to serialize.
            indent: Optional indentation prefix.

        Returns:
            A YAML-formatted string representation of the value.
        """
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
            allow_unicode=True,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input into a string of spaces."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class TaskWarning(UserWarning):
    """Warning emitted for non-fatal task registry issues.

    Used, for example, when a task name is reused while the previous
    task under that name has not finished yet.
    """


class WorldError(Exception, ErrorFormatter):
    """Base exception for all pytest-world errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    #: Kind assigned to the failure when this error is captured as a value.
    failure_kind: ClassVar[FailureKind] = FailureKind.ERROR

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional runtime values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String represenatation."""
        return self.format(self.message, self.context)


class ResolutionError(WorldError):
    """Error raised when a reference expression is malformed.

    Missing keys and out-of-range indices are not errors; they resolve
    to absent values. This error is reserved for structurally invalid
    paths that can never be navigated.
    """

    failure_kind = FailureKind.RESOLUTION

    def __init__(self, message: str, *, expression: str | None = None) -> None:
        """Initialize a resolution error.

        Args:
            message: Human-readable error description.
            expression: The offending path or expression.
        """
        self.expression = expression

        super().__init__(message, context=ErrorContext(expression=expression))


class InvocationError(WorldError):
    """Error raised when no candidate signature accepts the arguments."""

    failure_kind = FailureKind.NO_MATCH

    def __init__(self, name: str, arity: int, *,
                 arguments: 'Sequence[Any] | None' = None) -> None:
        """Initialize an invocation error.

        Args:
            name: Name of the requested operation.
            arity: Number of supplied arguments.
            arguments: Supplied arguments, used for the error snippet.
        """
        self.name = name
        self.arity = arity

        context = ErrorContext(operation=name)
        if arguments:
            context['element'] = {
                'arguments': [
                    {'kind': kind_of(argument).value, 'value': argument}
                    for argument in arguments
                ],
            }

        super().__init__(
            f'No matching operation {name!r} for {arity} argument(s)',
            context=context,
        )


class TaskError(WorldError):
    """Error raised on task registry misuse, such as awaiting an unknown task."""

    def __init__(self, message: str, *, name: str | None = None) -> None:
        """Initialize a task error.

        Args:
            message: Human-readable error description.
            name: Name of the task concerned.
        """
        self.name = name

        super().__init__(message, context=ErrorContext(operation=name))


class MatchError(WorldError, AssertionError):
    """Assertion-level error raised by the table matcher.

    The error carries every offending row or record, never only the
    first one found.
    """

    def __init__(self, message: str, *,
                 offenders: 'Sequence[Any] | None' = None,
                 context: dict[str, Any] | None = None) -> None:
        """Initialize a match error.

        Args:
            message: Human-readable error description.
            offenders: Rows or records violating the matching policy.
            context: Optional scenario values shown in the snippet.
        """
        self.offenders = [*(offenders or ())]

        error_context = None
        if self.offenders:
            error_context = ErrorContext(element=self.offenders, context=context)

        super().__init__(message, context=error_context)
