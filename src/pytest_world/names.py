"""Reference syntax primitives and naming rules.

This module defines the lexical rules of reference expressions: the braces
that mark a symbolic lookup, the literal keywords, the numeric literal
pattern, and the shape of a single path segment.

The rules defined here form part of the public contract relied upon by
scenario authors writing expressions such as `{orders[0].total}`.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: Opening and closing marks of a braced expression.
BRACE_OPEN = '{'
BRACE_CLOSE = '}'

#: Keywords recognized inside braces before any path lookup.
NULL_KEYWORD = 'null'
TRUE_KEYWORD = 'true'
FALSE_KEYWORD = 'false'

#: Path separator and the trailing cardinality pseudo-accessor.
PATH_SEPARATOR = '.'
LENGTH_ACCESSOR = 'length'

#: Decimal numeric literal with optional sign, fraction and exponent,
#: or the `NaN` and `Infinity` special values.
NUMBER_PATTERN = regexp(
    r'^[+-]?((\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?|NaN|Infinity)$',
    flags=ASCII,
)

#: A path segment: a field name followed by zero or more bracketed indices.
SEGMENT_PATTERN = regexp(
    r'^(?P<name>[^\[\]]+)(?P<indices>(\[\d+\])*)$',
    flags=ASCII,
)

#: A single bracketed index inside a segment.
INDEX_PATTERN = regexp(r'\[(\d+)\]', flags=ASCII)

#: Base pattern for identifiers used as store keys by the engine itself.
_NAME_PATTERN = r'[a-zA-Z][\w]*'

Variable = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Variable identifier',
        description=(
            'Name of a scenario store key written by the engine. '
            'Variable identifiers must start with a letter and may contain '
            'letters, digits, or underscores.'
        ),
        examples=[
            'result',
            'lastOutcome',
        ],
    ),
]


def is_braced(expression: object) -> bool:
    """Check whether an expression is a braced (symbolic) reference."""
    return (
        isinstance(expression, str)
        and len(expression) >= len(BRACE_OPEN) + len(BRACE_CLOSE)
        and expression.startswith(BRACE_OPEN)
        and expression.endswith(BRACE_CLOSE)
    )
