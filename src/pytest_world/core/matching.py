"""Table matching of actual records against expected rows.

An expected row maps field paths to expected-value expressions. A row
matches a record when, for every field, the value found at the path in
the record and the resolved expectation have the same display string.

Comparison by display string is a relaxed equality: `'200'`, `200` and
`200.0` all match each other, and so do `true` and `{true}`.

Three policies are built on the row comparator:

- exact: same number of records and rows, compared by position;
- at least: every expected row matches some record;
- excludes: no unwanted row matches any record.
"""

from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING

from pytest_world.errors import MatchError
from pytest_world.values import SEQUENCES, display

from .resolver import resolve, resolve_path

if TYPE_CHECKING:
    from collections.abc import Sequence

if TYPE_CHECKING:
    from pytest_world.values import RuntimeValue

#: One expected record: field path to expected-value expression.
type Row = Mapping[str, str]

logger = getLogger(__name__)


def _scenario_values(scope: 'RuntimeValue') -> dict[str, 'RuntimeValue'] | None:
    """Return the scope values shown alongside match failures."""
    if isinstance(scope, Mapping):
        return dict(scope)

    return None


def as_records(actual: 'RuntimeValue') -> list['RuntimeValue']:
    """Coerce actual data into an ordered sequence of records.

    A single record is treated as a one-record sequence; absent data
    as an empty sequence.
    """
    if actual is None:
        return []

    if isinstance(actual, SEQUENCES):
        return list(actual)

    return [actual]


def does_row_match(row: Row, record: 'RuntimeValue', scope: 'RuntimeValue') -> bool:
    """Check whether a record matches an expected row.

    Args:
        row: Expected row of field paths to expressions.
        record: Actual record navigated by the field paths.
        scope: Scope used to resolve expected-value expressions.

    Returns:
        True if every field of the row matches.

    Raises:
        ResolutionError: If a field path or an expression is malformed.
    """
    for field, expression in row.items():
        found = display(resolve_path(field, record))
        expected = display(resolve(expression, scope))

        if found != expected:
            logger.debug('Match failed on %s: %r vs %r', field, found, expected)
            return False

    return True


def rows_index(rows: 'Sequence[Row]', record: 'RuntimeValue', scope: 'RuntimeValue') -> int:
    """Return the index of the first row matching a record, or -1."""
    for index, row in enumerate(rows):
        if does_row_match(row, record, scope):
            return index

    return -1


def match_record(record: 'RuntimeValue', row: Row, scope: 'RuntimeValue') -> None:
    """Assert that a single record matches a row.

    Raises:
        MatchError: If the record does not match.
    """
    if not does_row_match(row, record, scope):
        raise MatchError('Object does not match', offenders=[record], context=_scenario_values(scope))


def match_exact(actual: 'RuntimeValue', rows: 'Sequence[Row]', scope: 'RuntimeValue') -> None:
    """Match records against rows positionally.

    Record `i` is compared with row `i`. All non-matching records are
    collected before failing.

    Args:
        actual: A record or an ordered sequence of records.
        rows: Expected rows.
        scope: Scope used to resolve expected-value expressions.

    Raises:
        MatchError: On a length mismatch, or listing every unmatched record.
    """
    records = as_records(actual)
    logger.debug('Matching %d record(s) against %d row(s)', len(records), len(rows))

    if len(records) != len(rows):
        raise MatchError(
            f'Array length mismatch: expected {len(rows)} record(s), got {len(records)}',
            offenders=records, context=_scenario_values(scope),
        )

    unmatched = [
        record
        for record, row in zip(records, rows, strict=True)
        if not does_row_match(row, record, scope)
    ]

    for record in unmatched:
        logger.debug("Couldn't match record: %r", record)

    if unmatched:
        raise MatchError('Some rows could not be matched', offenders=unmatched, context=_scenario_values(scope))


def match_at_least(actual: 'RuntimeValue', rows: 'Sequence[Row]', scope: 'RuntimeValue') -> None:
    """Match that every expected row is present among the records.

    Extra, unmatched records are allowed.

    Raises:
        MatchError: Listing every expected row not found.
    """
    records = as_records(actual)

    missing = [
        row
        for row in rows
        if not any(does_row_match(row, record, scope) for record in records)
    ]

    for row in missing:
        logger.debug('Expected row not found: %r', row)

    if missing:
        raise MatchError('Expected row not found', offenders=missing, context=_scenario_values(scope))


def match_excludes(actual: 'RuntimeValue', rows: 'Sequence[Row]', scope: 'RuntimeValue') -> None:
    """Match that no unwanted row is present among the records.

    Raises:
        MatchError: Listing every unwanted row found.
    """
    records = as_records(actual)

    found = [
        row
        for row in rows
        if any(does_row_match(row, record, scope) for record in records)
    ]

    for row in found:
        logger.debug('Unwanted row found: %r', row)

    if found:
        raise MatchError('Unwanted row found', offenders=found, context=_scenario_values(scope))
