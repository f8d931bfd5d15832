"""Core assertion and invocation engine.

This package holds the scenario-agnostic machinery behind the steps:

- reference resolution of `{path}` expressions against a scope;
- overload-resolving invocation of named operations;
- normalization of deferred results into concrete values or failures;
- table matching of actual records against expected rows;
- a registry of named asynchronous tasks.

The primary public entry points are re-exported here.
"""

from .deferred import Deferred, Lazy, Pending, Ready, normalize
from .invoker import invoke_callable, invoke_method
from .lookups import PathLookup
from .matching import does_row_match, match_at_least, match_exact, match_excludes, match_record
from .resolver import resolve, resolve_path
from .signatures import overloaded
from .tasks import TaskRegistry

__all__ = (
    'Deferred',
    'Lazy',
    'PathLookup',
    'Pending',
    'Ready',
    'TaskRegistry',
    'does_row_match',
    'invoke_callable',
    'invoke_method',
    'match_at_least',
    'match_exact',
    'match_excludes',
    'match_record',
    'normalize',
    'overloaded',
    'resolve',
    'resolve_path',
)
