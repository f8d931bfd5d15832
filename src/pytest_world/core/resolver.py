"""Reference expression resolution.

A reference expression is either a literal string, used verbatim, or a
braced expression such as `{user.name}`. Braced expressions denote, in
this priority order:

- `{null}`: the absent value;
- `{true}` / `{false}`: booleans;
- `{42}`, `{-1.5e3}`, `{-Infinity}`, `{NaN}`: numbers, always as floats;
- anything else: a path looked up in a scope (the scenario store by
  default, or any data object, e.g. a record during row matching).

Numbers found by a path lookup are rounded to the nearest integer and
returned as decimal strings, which keeps comparisons between numeric
representations stable.
"""

from math import floor, isfinite
from typing import TYPE_CHECKING

from pytest_world.names import (
    BRACE_CLOSE,
    BRACE_OPEN,
    FALSE_KEYWORD,
    NULL_KEYWORD,
    NUMBER_PATTERN,
    TRUE_KEYWORD,
    is_braced,
)
from pytest_world.values import is_number

from .lookups import PathLookup

if TYPE_CHECKING:
    from pytest_world.values import RuntimeValue


def stabilize(value: 'RuntimeValue') -> 'RuntimeValue':
    """Convert a numeric lookup result into its rounded decimal string.

    Rounding is half-up (`2.5` becomes `'3'`, `-2.5` becomes `'-2'`).
    Non-numeric values, including booleans, are returned unchanged;
    non-finite floats are returned as their string form.
    """
    if not is_number(value):
        return value

    if isinstance(value, int):
        return str(value)

    if not isfinite(value):
        return str(value)

    return str(floor(value + 0.5))


def resolve_path(path: str, scope: 'RuntimeValue') -> 'RuntimeValue':
    """Look up a raw (unbraced) path in a scope.

    Args:
        path: Dotted path, e.g. `address.city` or `items[0].length`.
        scope: Root value of the navigation.

    Returns:
        The value found, with numbers stabilized, or `None`.

    Raises:
        ResolutionError: If the path is malformed.
    """
    return stabilize(PathLookup(path).resolve(scope))


def resolve(expression: 'RuntimeValue', scope: 'RuntimeValue') -> 'RuntimeValue':
    """Resolve a reference expression.

    Args:
        expression: A literal or a braced expression. Non-string values
            are treated as literals.
        scope: Scope used for path lookups.

    Returns:
        The literal itself, the keyword value, the number, or the value
        found at the path (`None` when the path does not exist).

    Raises:
        ResolutionError: If the braced path is malformed.
    """
    if not is_braced(expression):
        return expression

    inner = expression[len(BRACE_OPEN):-len(BRACE_CLOSE)]

    if inner == NULL_KEYWORD:
        return None

    if inner == TRUE_KEYWORD:
        return True

    if inner == FALSE_KEYWORD:
        return False

    if NUMBER_PATTERN.match(inner):
        return float(inner)

    return resolve_path(inner, scope)
