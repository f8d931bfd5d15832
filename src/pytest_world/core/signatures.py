"""Typed signature descriptors and overload selection.

Python has no built-in overloading, so operations that need several
signatures under one name declare them explicitly:

    class Calculator:
        @overloaded
        def describe(self, value: object) -> str:
            return f'object:{value}'

        @describe.register
        def _(self, value: float) -> str:
            return f'number:{value}'

        @describe.register
        def _(self, value: int) -> str:
            return f'integer:{value}'

Plain functions and methods contribute a single signature derived from
their annotations. Selection works on a small type lattice:

- unannotated, `Any` and `object` parameters accept anything;
- `bool` is not a number, even though it subclasses `int`;
- `int` is narrower than `float`, `float` narrower than `complex`
  and every numeric type is narrower than `numbers.Number`;
- other classes are ordered by subclassing.
"""

import inspect
from collections.abc import Callable
from functools import update_wrapper
from numbers import Number
from types import MethodType, NoneType, UnionType
from typing import TYPE_CHECKING, Annotated, Any, TypeVar, Union, get_args, get_origin

from pydantic import Field

from pytest_world.errors import InvocationError
from pytest_world.models import SchemaModel

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Self

if TYPE_CHECKING:
    from pytest_world.values import RuntimeValue

#: Numeric promotion ladder: each type is accepted where a later one is declared.
PROMOTIONS: tuple[type, ...] = (int, float, complex)

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def _is_numeric_type(cls: type) -> bool:
    """Check whether a class belongs to the numeric part of the lattice."""
    return isinstance(cls, type) and issubclass(cls, Number)


def _is_subclass(narrow: type, wide: type) -> bool:
    """Lattice subtype relation between two classes."""
    if narrow is wide or wide is object:
        return True

    if narrow is object:
        return False

    if narrow is bool and wide is not bool and _is_numeric_type(wide):
        return False

    if narrow in PROMOTIONS and wide in PROMOTIONS:
        return PROMOTIONS.index(narrow) <= PROMOTIONS.index(wide)

    try:
        return issubclass(narrow, wide)
    except TypeError:
        return False


def _is_instance(value: 'RuntimeValue', cls: type) -> bool:
    """Lattice membership test of a runtime value."""
    if cls is object:
        return True

    if isinstance(value, bool):
        return cls is bool or (not _is_numeric_type(cls) and _safe_isinstance(value, cls))

    return _is_subclass(type(value), cls) or _safe_isinstance(value, cls)


def _safe_isinstance(value: 'RuntimeValue', cls: type) -> bool:
    try:
        return isinstance(value, cls)
    except TypeError:
        return False


class ParamType(SchemaModel):
    """Declared type of a single positional parameter."""

    types: tuple[type, ...] = Field(
        default=(object,),
        title='Accepted classes',
        description='Union members of the declared type, `object` for any.',
    )

    optional: bool = Field(
        default=False,
        title='Optional',
        description='Whether `None` was declared explicitly.',
    )

    @classmethod
    def any(cls) -> 'Self':
        """Build the generic-object parameter type."""
        return cls(types=(object,), optional=True)

    @classmethod
    def from_annotation(cls, annotation: Any) -> 'Self':  # noqa: ANN401
        """Build a parameter type from a Python annotation.

        Args:
            annotation: Annotation object, possibly `inspect.Parameter.empty`.

        Returns:
            The parameter type. Unsupported or unresolved annotations
            fall back to the generic-object type.
        """
        if annotation in (inspect.Parameter.empty, Any, object) or isinstance(annotation, str):
            return cls.any()

        if annotation is None or annotation is NoneType:
            return cls(types=(), optional=True)

        origin = get_origin(annotation)

        if origin is Annotated:
            return cls.from_annotation(get_args(annotation)[0])

        if origin is Union or origin is UnionType:
            members = [cls.from_annotation(arg) for arg in get_args(annotation)]
            types = tuple(dict.fromkeys(
                member_type
                for member in members
                for member_type in member.types
            ))
            return cls(
                types=types,
                optional=any(member.optional for member in members),
            )

        if isinstance(annotation, TypeVar):
            if annotation.__bound__ is not None:
                return cls.from_annotation(annotation.__bound__)
            return cls.any()

        if isinstance(origin, type):
            return cls(types=(origin,))

        if isinstance(annotation, type):
            return cls(types=(annotation,))

        return cls.any()

    @property
    def primitive(self) -> bool:
        """Whether this type is primitive-like (boolean or numeric)."""
        return bool(self.types) and all(_is_numeric_type(cls) for cls in self.types)

    def accepts(self, value: 'RuntimeValue') -> bool:
        """Check whether a runtime value is acceptable for this parameter.

        Absent values are rejected by primitive-like types unless they
        were declared optional, and accepted by every other type.
        """
        if value is None:
            return self.optional or not self.primitive

        return any(_is_instance(value, cls) for cls in self.types)

    def is_subtype(self, other: 'ParamType') -> bool:
        """Check whether this type is equal to or narrower than `other`."""
        if self.optional and not other.optional:
            return False

        return all(
            any(_is_subclass(narrow, wide) for wide in other.types)
            for narrow in self.types
        )

    def same_as(self, other: 'ParamType') -> bool:
        """Check whether both types declare the same classes."""
        return self.optional == other.optional and set(self.types) == set(other.types)


class Signature(SchemaModel):
    """A candidate signature of a named operation."""

    name: str = Field(
        title='Operation name',
        description='Name under which the operation was looked up.',
    )

    function: Callable[..., Any] = Field(
        title='Implementation',
        description='Dispatchable callable implementing this signature.',
    )

    params: tuple[ParamType, ...] = Field(
        default=(),
        title='Positional parameters',
        description='Declared types of the positional parameters.',
    )

    required: int = Field(
        default=0,
        title='Required parameters',
        description='Number of positional parameters without defaults.',
    )

    variadic: ParamType | None = Field(
        default=None,
        title='Variadic parameter',
        description='Declared type of `*args` elements, if any.',
    )

    @classmethod
    def from_callable(cls, function: Callable[..., Any], name: str | None = None) -> 'Self | None':
        """Build a signature descriptor from a callable.

        Args:
            function: Callable to describe. Bound methods exclude `self`.
            name: Operation name, defaults to the callable name.

        Returns:
            The signature, or `None` if the callable can not be called
            with positional arguments only.
        """
        if name is None:
            name = getattr(function, '__name__', type(function).__name__)

        try:
            signature = _inspect_signature(function)
        except (TypeError, ValueError):
            return cls(name=name, function=function, variadic=ParamType.any())

        params: list[ParamType] = []
        required = 0
        variadic = None

        for parameter in signature.parameters.values():
            if parameter.kind in _POSITIONAL:
                params.append(ParamType.from_annotation(parameter.annotation))
                if parameter.default is inspect.Parameter.empty:
                    required = len(params)
            elif parameter.kind is inspect.Parameter.VAR_POSITIONAL:
                variadic = ParamType.from_annotation(parameter.annotation)
            elif parameter.kind is inspect.Parameter.KEYWORD_ONLY:
                if parameter.default is inspect.Parameter.empty:
                    return None

        return cls(
            name=name,
            function=function,
            params=tuple(params),
            required=required,
            variadic=variadic,
        )

    def accepts_arity(self, arity: int) -> bool:
        """Check whether the signature can be called with `arity` arguments."""
        if arity < self.required:
            return False

        return arity <= len(self.params) or self.variadic is not None

    def param_types(self, arity: int) -> tuple[ParamType, ...]:
        """Return the parameter types used for a call with `arity` arguments."""
        types = self.params[:arity]
        if arity > len(types) and self.variadic is not None:
            types += (self.variadic,) * (arity - len(types))

        return types

    def is_compatible(self, args: 'Sequence[RuntimeValue]') -> bool:
        """Check whether every argument is accepted by its parameter."""
        if not self.accepts_arity(len(args)):
            return False

        return all(
            param.accepts(arg)
            for param, arg in zip(self.param_types(len(args)), args, strict=True)
        )

    def is_more_specific(self, other: 'Signature', arity: int) -> bool:
        """Check whether this signature is preferred over `other`.

        A signature is more specific if at every position its parameter
        type equals or is narrower than the other's, and at least one
        position is strictly narrower.
        """
        narrower = False
        pairs = zip(self.param_types(arity), other.param_types(arity), strict=True)

        for mine, theirs in pairs:
            if not mine.is_subtype(theirs):
                return False
            if not mine.same_as(theirs):
                narrower = True

        return narrower


def _inspect_signature(function: Callable[..., Any]) -> inspect.Signature:
    """Inspect a callable, evaluating string annotations when possible."""
    try:
        return inspect.signature(function, eval_str=True)
    except (NameError, SyntaxError, AttributeError):
        return inspect.signature(function)


def signatures_of(function: Callable[..., Any], name: str | None = None) -> list['Signature']:
    """Collect candidate signatures of a callable.

    Args:
        function: A plain callable or an overload set.
        name: Operation name used in diagnostics.

    Returns:
        Candidate signatures in declaration order.
    """
    if isinstance(function, (Overloaded, BoundOverloads)):
        return function.signatures()

    signature = Signature.from_callable(function, name)
    if signature is None:
        return []

    return [signature]


def find_signature(candidates: 'Sequence[Signature]',
                   args: 'Sequence[RuntimeValue]') -> Signature | None:
    """Select the most specific compatible signature.

    Ties between equally specific signatures keep the first one found.

    Args:
        candidates: Candidate signatures in declaration order.
        args: Already resolved argument values.

    Returns:
        The best signature, or `None` if none is compatible.
    """
    best: Signature | None = None

    for candidate in candidates:
        if not candidate.is_compatible(args):
            continue
        if best is None or candidate.is_more_specific(best, len(args)):
            best = candidate

    return best


class Overloaded:
    """Set of implementations sharing one operation name.

    Used as a decorator on the first implementation; further
    implementations are added with `register`. Calling the set (or the
    bound set obtained through an instance) dispatches to the most
    specific compatible implementation.
    """

    def __init__(self, function: Callable[..., Any]) -> None:
        """Start an overload set with its first implementation."""
        self.functions: list[Callable[..., Any]] = [function]
        self.name: str = function.__name__

        update_wrapper(self, function)

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def register[F: Callable[..., Any]](self, function: F) -> F:
        """Add an implementation to the set.

        Args:
            function: Additional implementation.

        Returns:
            The implementation itself, unchanged.
        """
        self.functions.append(function)

        return function

    def __get__(self, instance: object, owner: type | None = None) -> 'Overloaded | BoundOverloads':
        if instance is None:
            return self

        return BoundOverloads(self, instance)

    def signatures(self, instance: object = None) -> list[Signature]:
        """Describe every implementation, optionally bound to an instance."""
        signatures = []
        for function in self.functions:
            target = function if instance is None else MethodType(function, instance)
            if signature := Signature.from_callable(target, self.name):
                signatures.append(signature)

        return signatures

    def __call__(self, *args: Any) -> Any:  # noqa: ANN401
        return dispatch(self.name, self.signatures(), args)


class BoundOverloads:
    """Overload set bound to an instance."""

    def __init__(self, overloads: Overloaded, instance: object) -> None:
        self.overloads = overloads
        self.instance = instance

    @property
    def name(self) -> str:
        return self.overloads.name

    def signatures(self) -> list[Signature]:
        return self.overloads.signatures(self.instance)

    def __call__(self, *args: Any) -> Any:  # noqa: ANN401
        return dispatch(self.name, self.signatures(), args)


def dispatch(name: str, candidates: 'Sequence[Signature]',
             args: 'Sequence[RuntimeValue]') -> 'RuntimeValue':
    """Call the most specific compatible signature directly.

    Raises:
        InvocationError: If no signature accepts the arguments.
    """
    signature = find_signature(candidates, args)
    if signature is None:
        raise InvocationError(name, len(args), arguments=args)

    return signature.function(*args)


def overloaded(function: Callable[..., Any]) -> Overloaded:
    """Declare the first implementation of an overloaded operation."""
    return Overloaded(function)
