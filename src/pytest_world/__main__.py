"""CLI utilities for evaluating references and tables outside pytest.

Data files are YAML documents loaded with the safe loader. They make it
possible to check how an expression resolves, or how a table of expected
rows matches actual records, without writing a scenario.
"""

from pathlib import Path
from sys import exit as sys_exit
from typing import TYPE_CHECKING

from click import Choice, argument, echo, group, option
from click import Path as PathParam
from yaml import safe_load

from pytest_world.context import ScenarioStore
from pytest_world.core import match_at_least, match_exact, match_excludes
from pytest_world.errors import MatchError, WorldError
from pytest_world.names import NULL_KEYWORD
from pytest_world.values import display

if TYPE_CHECKING:
    from pytest_world.values import RuntimeValue


POLICIES = {
    'exact': match_exact,
    'at-least': match_at_least,
    'excludes': match_excludes,
}

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


def _load(path: Path | None) -> 'RuntimeValue':
    """Load a YAML data file, `None` when no file is given."""
    if path is None:
        return None

    with path.open('rt', encoding='utf-8') as source:
        return safe_load(source)


def _load_store(path: Path | None) -> ScenarioStore:
    """Load a YAML mapping file into a scenario store."""
    values = _load(path) or {}
    if not isinstance(values, dict):
        raise WorldError(f'Expected a mapping of values in {path}')

    return ScenarioStore({str(key): value for key, value in values.items()})


@group(help='Command-line utilities for pytest-world references and tables.')
def cli() -> None:
    """Root CLI group for pytest-world tools."""
    return None


@cli.command(
    name='resolve',
    help='Resolve a reference expression and print its display string.',
)
@option(
    '-d', '--data',
    type=InputFilepath,
    default=None,
    help='YAML mapping used as the scenario store.',
)
@argument('expression')
def resolve_expression(expression: str, data: Path | None) -> None:
    """Resolve an expression against the values of a data file.

    Args:
        expression: Literal or braced reference expression.
        data: Optional YAML mapping of store values.
    """
    try:
        store = _load_store(data)
        value = display(store.resolve(expression))
    except WorldError as error:
        echo(str(error), err=True)
        sys_exit(2)

    echo(NULL_KEYWORD if value is None else value)


@cli.command(
    name='match',
    help='Match actual records against expected rows.',
)
@option(
    '-p', '--policy',
    type=Choice(sorted(POLICIES)),
    default='exact',
    show_default=True,
    help='Matching policy.',
)
@option(
    '-v', '--vars',
    'variables',
    type=InputFilepath,
    default=None,
    help='YAML mapping used to resolve expected-value expressions.',
)
@argument('actual', type=InputFilepath)
@argument('rows', type=InputFilepath)
def match_rows(actual: Path, rows: Path, policy: str, variables: Path | None) -> None:
    """Match the records of one file against the rows of another.

    Exits with status 1 when the records do not satisfy the policy.

    Args:
        actual: YAML file with a record or a sequence of records.
        rows: YAML file with a sequence of expected rows.
        policy: Matching policy name.
        variables: Optional YAML mapping of store values.
    """
    try:
        store = _load_store(variables)
        POLICIES[policy](_load(actual), _load(rows) or [], store)
    except MatchError as error:
        echo(str(error), err=True)
        sys_exit(1)
    except WorldError as error:
        echo(str(error), err=True)
        sys_exit(2)

    echo('OK')


if __name__ == '__main__':
    cli()
